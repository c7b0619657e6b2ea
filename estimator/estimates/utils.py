# estimator/estimates/utils.py

"""Utility functions for the estimates blueprint."""

from flask import abort

from estimator.models import Estimate
from estimator.pricing import PricingBreakdown, calculate_estimate, recalculate_pricing
from estimator.utils import current_user_id


def estimate_or_404(estimate_id: int) -> Estimate:
    """Fetch an estimate owned by the current user or abort with 404."""
    est = Estimate.query.filter_by(id=estimate_id, user_id=current_user_id()).first()
    if est is None:
        abort(404)
    return est


def price_estimate(pricing: dict, settings) -> PricingBreakdown:
    """Price new estimate inputs, filling rate and markup from settings.

    ``pricing`` is the validated ``{labor_hours, hourly_rate,
    markup_percentage, materials}`` payload.
    """
    rate = pricing.get('hourly_rate')
    markup = pricing.get('markup_percentage')
    return calculate_estimate(
        pricing.get('labor_hours') or 0,
        settings.default_hourly_rate if rate is None else rate,
        pricing.get('materials') or [],
        settings.default_markup_percentage if markup is None else markup,
    )


def reprice_estimate(est: Estimate, changes: dict) -> PricingBreakdown:
    """
    Apply a partial pricing update on top of what the estimate has stored.
    Fields not in ``changes`` keep their stored value; a new ``materials``
    list replaces the old items wholesale.
    """
    current = est.breakdown
    hours = changes.get('labor_hours')
    rate = changes.get('hourly_rate')
    markup = changes.get('markup_percentage')
    hours = current.labor.hours if hours is None else hours
    rate = current.labor.hourly_rate if rate is None else rate
    markup = current.markup_percentage if markup is None else markup

    if changes.get('materials') is not None:
        return calculate_estimate(hours, rate, changes['materials'], markup)
    return recalculate_pricing(hours, rate, current.materials.items, markup)
