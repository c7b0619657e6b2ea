from estimator.pricing.calculator import calculate_estimate, recalculate_pricing
from estimator.pricing.models import (
    AIPricingData,
    LineItem,
    PriceRange,
    PricingBreakdown,
    PricingSource,
    WorkType,
)

__all__ = [
    'AIPricingData',
    'LineItem',
    'PriceRange',
    'PricingBreakdown',
    'PricingSource',
    'WorkType',
    'calculate_estimate',
    'recalculate_pricing',
]
