# estimator/pricing/calculator.py

"""Labor + materials + markup pricing."""

from typing import Any, Iterable, Mapping, Sequence

from estimator.errors import ValidationError
from estimator.pricing.formatters import format_number, format_quantity
from estimator.pricing.models import (
    LaborEstimate,
    LineItem,
    MaterialEstimate,
    PricingBreakdown,
)


def _require_non_negative(**values: float) -> None:
    bad = {name: v for name, v in values.items() if v < 0}
    if bad:
        raise ValidationError(
            'Pricing inputs must not be negative',
            details=[{'field': name, 'value': v} for name, v in bad.items()],
        )


def _labor(hours: float, rate: float) -> LaborEstimate:
    return LaborEstimate(
        hours=hours,
        hourly_rate=rate,
        total=hours * rate,
        description=f"{format_quantity(hours)} hours @ ${format_number(rate)}/hr",
    )


def _breakdown(labor: LaborEstimate, items: Sequence[LineItem],
               markup_percentage: float) -> PricingBreakdown:
    materials_subtotal = sum(i.total for i in items)
    subtotal = labor.total + materials_subtotal
    markup_amount = subtotal * (markup_percentage / 100)
    return PricingBreakdown(
        labor=labor,
        materials=MaterialEstimate(items=tuple(items), subtotal=materials_subtotal),
        subtotal=subtotal,
        markup_percentage=markup_percentage,
        markup_amount=markup_amount,
        total=subtotal + markup_amount,
    )


def calculate_estimate(
    labor_hours: float,
    hourly_rate: float,
    material_items: Iterable[Mapping[str, Any]],
    markup_percentage: float,
) -> PricingBreakdown:
    """Price a job from raw labor and material inputs.

    ``material_items`` is an ordered list of ``{description, quantity,
    unit_cost}`` mappings.  Each item gets an index based id (``mat-0``,
    ``mat-1`` ...) so repeated calls with the same inputs return equal
    breakdowns.

    Raises ``ValidationError`` if any number is negative.
    """
    labor_hours = float(labor_hours)
    hourly_rate = float(hourly_rate)
    markup_percentage = float(markup_percentage)
    _require_non_negative(
        labor_hours=labor_hours,
        hourly_rate=hourly_rate,
        markup_percentage=markup_percentage,
    )

    items = []
    for idx, raw in enumerate(material_items):
        qty = float(raw.get('quantity', 0))
        unit_cost = float(raw.get('unit_cost', 0))
        _require_non_negative(**{
            f'materials[{idx}].quantity': qty,
            f'materials[{idx}].unit_cost': unit_cost,
        })
        items.append(LineItem(
            id=f'mat-{idx}',
            description=raw.get('description', ''),
            quantity=qty,
            unit_cost=unit_cost,
            total=qty * unit_cost,
            type='material',
        ))

    return _breakdown(_labor(labor_hours, hourly_rate), items, markup_percentage)


def recalculate_pricing(
    labor_hours: float,
    hourly_rate: float,
    materials: Sequence[LineItem],
    markup_percentage: float,
) -> PricingBreakdown:
    """Re-price existing line items, keeping their ids.

    Item totals are recomputed from quantity and unit cost rather than
    trusted as given.
    """
    _require_non_negative(
        labor_hours=labor_hours,
        hourly_rate=hourly_rate,
        markup_percentage=markup_percentage,
    )
    items = [
        LineItem(
            id=i.id,
            description=i.description,
            quantity=i.quantity,
            unit_cost=i.unit_cost,
            total=i.quantity * i.unit_cost,
            type=i.type,
        )
        for i in materials
    ]
    for idx, it in enumerate(items):
        _require_non_negative(**{
            f'materials[{idx}].quantity': it.quantity,
            f'materials[{idx}].unit_cost': it.unit_cost,
        })
    return _breakdown(_labor(labor_hours, hourly_rate), items, markup_percentage)
