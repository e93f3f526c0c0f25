"""Engine subpackage - core price calculation and rule matching."""
from .price_calculator import PriceCalculator, calculate_price, calculate_default_price, round_to_nearest_50_or_100
from .models import PricingRule, TraceStep, PriceTrace

__all__ = [
    'PriceCalculator', 'calculate_price', 'calculate_default_price', 'round_to_nearest_50_or_100',
    'PricingRule', 'TraceStep', 'PriceTrace',
]
