"""AI market pricing research.

:class:`PricingResearcher` answers "what does this job usually cost in this
city" by checking the cache, and on a miss asking a
:class:`~estimator.ai.providers.TextGenerator` and caching the parsed
answer.  A failed call or an unparseable answer raises a
``PricingResearchError`` and leaves the cache untouched.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime
from typing import Any, Optional

from estimator.ai.cache import Clock, PricingCache, cache_key, utcnow
from estimator.ai.prompts import create_pricing_research_prompt
from estimator.ai.providers import TextGenerator
from estimator.errors import PricingResearchError, ProviderError, ResponseParseError
from estimator.pricing.models import CONFIDENCE_LEVELS, AIPricingData, PriceRange, PricingSource

log = logging.getLogger(__name__)


def _number(value: Any) -> float:
    try:
        num = float(value) if value else 0.0
    except (TypeError, ValueError):
        return 0.0
    # json.loads lets NaN and Infinity through
    return num if math.isfinite(num) else 0.0


def _strip_code_fence(text: str) -> str:
    content = text.strip()
    if content.startswith('```json'):
        content = content[7:]
    elif content.startswith('```'):
        content = content[3:]
    if content.endswith('```'):
        content = content[:-3]
    return content.strip()


def parse_ai_response(raw: str, now: Optional[datetime] = None) -> AIPricingData:
    """Turn a provider's raw answer into :class:`AIPricingData`.

    Missing or empty fields fall back to zero / empty / ``low``.  Text that
    is not a JSON object raises ``ResponseParseError``.
    """
    try:
        parsed = json.loads(_strip_code_fence(raw or ''))
    except json.JSONDecodeError as e:
        raise ResponseParseError(details={'parse_error': str(e), 'raw_content': (raw or '')[:500]}) from e
    if not isinstance(parsed, dict):
        raise ResponseParseError(details={'raw_content': (raw or '')[:500]})

    rng = parsed.get('priceRange') or {}
    if not isinstance(rng, dict):
        rng = {}

    sources = []
    for s in parsed.get('sources') or []:
        if not isinstance(s, dict):
            continue
        sources.append(PricingSource(
            source=str(s.get('source') or ''),
            price=_number(s.get('price')),
            description=str(s.get('description') or ''),
            url=s.get('url') or None,
        ))

    confidence = parsed.get('confidence') or 'low'
    if confidence not in CONFIDENCE_LEVELS:
        confidence = 'low'

    return AIPricingData(
        average_price=_number(parsed.get('averagePrice')),
        price_range=PriceRange(min=_number(rng.get('min')), max=_number(rng.get('max'))),
        sources=sources,
        confidence=confidence,
        last_updated=now or utcnow(),
        search_query=str(parsed.get('searchQuery') or ''),
    )


class PricingResearcher:
    """Cache-first market pricing lookups against a text-generation provider."""

    def __init__(self, cache: PricingCache, clock: Clock = utcnow) -> None:
        self.cache = cache
        self.clock = clock

    def research(
        self,
        scope_of_work: str,
        city: str,
        work_type,
        provider: TextGenerator,
        refresh: bool = False,
    ) -> AIPricingData:
        key = cache_key(scope_of_work, city, work_type)

        if not refresh:
            cached = self.cache.get(key)
            if cached is not None:
                log.info("ai pricing cache hit key=%s", key)
                return cached

        prompt = create_pricing_research_prompt(scope_of_work, city, work_type)
        log.info("ai pricing research key=%s provider=%s", key, provider.name)
        try:
            raw = provider.generate(prompt)
        except PricingResearchError:
            raise
        except Exception as e:
            log.exception("provider %s failed", provider.name)
            raise ProviderError(f"Pricing research failed: {e}") from e

        data = parse_ai_response(raw, now=self.clock())
        self.cache.put(key, data)
        log.info(
            "ai pricing cached key=%s average=%.2f confidence=%s",
            key, data.average_price, data.confidence,
        )
        return data
