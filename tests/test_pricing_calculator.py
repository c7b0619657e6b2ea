import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from estimator.errors import ValidationError
from estimator.pricing import LineItem, PricingBreakdown, calculate_estimate, recalculate_pricing
from estimator.pricing.formatters import format_currency, format_quantity, parse_formatted_currency


def test_breaker_scenario():
    p = calculate_estimate(8, 75, [{'description': 'Breaker', 'quantity': 2, 'unit_cost': 15}], 20)
    assert p.labor.total == 600
    assert p.materials.subtotal == 30
    assert p.subtotal == 630
    assert p.markup_amount == pytest.approx(126)
    assert p.total == pytest.approx(756)
    assert p.labor.description == '8 hours @ $75.00/hr'
    item = p.materials.items[0]
    assert item.total == 30 and item.type == 'material'


@pytest.mark.parametrize('hours,rate,materials,markup', [
    (0, 0, [], 0),
    (2.5, 90, [{'description': 'Wire', 'quantity': 100, 'unit_cost': 0.45}], 15),
    (12, 110, [
        {'description': 'Panel', 'quantity': 1, 'unit_cost': 350},
        {'description': 'Breaker', 'quantity': 6, 'unit_cost': 12.5},
    ], 33.3),
])
def test_total_formula(hours, rate, materials, markup):
    p = calculate_estimate(hours, rate, materials, markup)
    expected = (hours * rate + sum(m['quantity'] * m['unit_cost'] for m in materials)) * (1 + markup / 100)
    assert p.total == pytest.approx(expected)


def test_deterministic_ids_and_totals():
    materials = [
        {'description': 'Outlet', 'quantity': 4, 'unit_cost': 3},
        {'description': 'Box', 'quantity': 4, 'unit_cost': 1.25},
    ]
    a = calculate_estimate(3, 80, materials, 10)
    b = calculate_estimate(3, 80, materials, 10)
    assert a == b
    assert [i.id for i in a.materials.items] == ['mat-0', 'mat-1']


@pytest.mark.parametrize('args', [
    (-1, 75, [], 20),
    (8, -75, [], 20),
    (8, 75, [], -5),
    (8, 75, [{'description': 'x', 'quantity': -1, 'unit_cost': 2}], 20),
    (8, 75, [{'description': 'x', 'quantity': 1, 'unit_cost': -2}], 20),
])
def test_negative_inputs_rejected(args):
    with pytest.raises(ValidationError):
        calculate_estimate(*args)


def test_recalculate_keeps_ids_and_recomputes_item_totals():
    items = [LineItem(id='keep-me', description='Breaker', quantity=3, unit_cost=15, total=999)]
    p = recalculate_pricing(1, 100, items, 0)
    assert p.materials.items[0].id == 'keep-me'
    assert p.materials.items[0].total == 45
    assert p.total == 145


def test_breakdown_dict_rebuild_ignores_stored_totals():
    stored = calculate_estimate(8, 75, [{'description': 'Breaker', 'quantity': 2, 'unit_cost': 15}], 20).to_dict()
    stored['total'] = 1
    stored['materials']['subtotal'] = 1
    rebuilt = PricingBreakdown.from_dict(stored)
    assert rebuilt.total == pytest.approx(756)
    assert rebuilt.materials.items[0].id == 'mat-0'


def test_currency_formatting():
    assert format_currency(1234.5) == '$1,234.50'
    assert format_currency(-12) == '-$12.00'
    assert parse_formatted_currency('$1,234.50') == 1234.5
    assert parse_formatted_currency('n/a') == 0.0


def test_labor_description_keeps_plain_hours():
    assert calculate_estimate(1234567, 75, [], 0).labor.description == '1234567 hours @ $75.00/hr'
    assert calculate_estimate(2.5, 80, [], 0).labor.description == '2.5 hours @ $80.00/hr'
    assert format_quantity(8.0) == '8'
    assert format_quantity(0.125) == '0.125'
