import json
import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from estimator.ai.cache import InMemoryPricingCache, cache_key
from estimator.ai.prompts import create_pricing_research_prompt
from estimator.ai.providers import TextGenerator
from estimator.ai.research import PricingResearcher, parse_ai_response
from estimator.errors import PricingResearchError, ProviderError, ResponseParseError

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)

GOOD_RESPONSE = json.dumps({
    'averagePrice': 2400,
    'priceRange': {'min': 1800, 'max': 3200},
    'sources': [
        {'source': 'HomeAdvisor', 'price': 2300, 'url': 'https://example.com/a', 'description': '200A upgrade'},
        {'source': 'Local contractor', 'price': 2600, 'description': 'quote'},
    ],
    'confidence': 'high',
    'searchQuery': '200 amp panel upgrade cost Los Angeles',
})


class FakeProvider(TextGenerator):
    name = 'fake'

    def __init__(self, response=GOOD_RESPONSE, error=None):
        self.response = response
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.response


def make_researcher():
    cache = InMemoryPricingCache(clock=lambda: NOW)
    return PricingResearcher(cache, clock=lambda: NOW), cache


def test_second_call_is_served_from_cache():
    researcher, cache = make_researcher()
    provider = FakeProvider()
    first = researcher.research('200A panel upgrade', 'Los Angeles', 'residential_panel_upgrade', provider)
    second = researcher.research('200A panel upgrade', 'Los Angeles', 'residential_panel_upgrade', provider)
    assert len(provider.prompts) == 1
    assert first == second
    assert first.average_price == 2400
    assert first.price_range.max == 3200
    assert first.sources[1].url is None
    assert first.confidence == 'high'
    assert first.last_updated == NOW


def test_refresh_skips_cache_read_but_updates_it():
    researcher, cache = make_researcher()
    provider = FakeProvider()
    researcher.research('rewire', 'Austin', 'residential_rewiring', provider)
    provider.response = json.dumps({'averagePrice': 9000})
    data = researcher.research('rewire', 'Austin', 'residential_rewiring', provider, refresh=True)
    assert len(provider.prompts) == 2
    assert data.average_price == 9000
    assert cache.get(cache_key('rewire', 'Austin', 'residential_rewiring')).average_price == 9000


def test_stale_entry_triggers_new_call():
    researcher, cache = make_researcher()
    key = cache_key('outlets', 'Denver', 'residential_outlets')
    old = parse_ai_response(GOOD_RESPONSE, now=NOW - timedelta(days=31))
    cache.put(key, old)
    provider = FakeProvider()
    data = researcher.research('outlets', 'Denver', 'residential_outlets', provider)
    assert len(provider.prompts) == 1
    assert data.last_updated == NOW


def test_malformed_response_leaves_cache_untouched():
    researcher, cache = make_researcher()
    provider = FakeProvider(response='not json')
    with pytest.raises(ResponseParseError) as exc:
        researcher.research('service call', 'Miami', 'service_call', provider)
    assert exc.value.message == 'Failed to parse AI response'
    assert isinstance(exc.value, PricingResearchError)
    assert len(cache) == 0


def test_non_object_json_is_a_parse_error():
    researcher, cache = make_researcher()
    with pytest.raises(ResponseParseError):
        researcher.research('repair', 'Miami', 'repair', FakeProvider(response='[1, 2]'))
    assert len(cache) == 0


def test_provider_failure_is_research_error_and_not_cached():
    researcher, cache = make_researcher()
    provider = FakeProvider(error=RuntimeError('rate limited'))
    with pytest.raises(ProviderError) as exc:
        researcher.research('repair', 'Boston', 'repair', provider)
    assert 'rate limited' in exc.value.message
    assert len(cache) == 0


def test_missing_fields_get_defaults():
    data = parse_ai_response('{"averagePrice":500}', now=NOW)
    assert data.average_price == 500
    assert data.price_range.min == 0 and data.price_range.max == 0
    assert data.sources == []
    assert data.confidence == 'low'
    assert data.search_query == ''
    assert data.last_updated == NOW


def test_unknown_confidence_and_fenced_json():
    raw = '```json\n{"averagePrice": 100, "confidence": "very sure"}\n```'
    data = parse_ai_response(raw, now=NOW)
    assert data.average_price == 100
    assert data.confidence == 'low'


def test_prompt_contents():
    prompt = create_pricing_research_prompt('Install 6 outlets', 'Portland', 'residential_outlets')
    assert '- Type: residential outlets' in prompt
    assert '- Location: Portland' in prompt
    assert '- Scope: Install 6 outlets' in prompt
    assert '"averagePrice"' in prompt and '"searchQuery"' in prompt
    assert 'HIGH: Found 3+' in prompt
    assert prompt.rstrip().endswith('Return ONLY the JSON, no other text.')


def test_non_finite_numbers_become_zero():
    raw = '{"averagePrice": NaN, "priceRange": {"min": Infinity, "max": -Infinity}, "sources": [{"source": "x", "price": NaN}]}'
    data = parse_ai_response(raw, now=NOW)
    assert data.average_price == 0
    assert data.price_range.min == 0 and data.price_range.max == 0
    assert data.sources[0].price == 0
    json.dumps(data.to_dict(), allow_nan=False)
