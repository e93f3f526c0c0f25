"""
Price Calculator - Maps a raw listing rate to the viewer's display price.

Resolution order for each price:
1. Reject anything that is not a positive finite number (absent price)
2. First rule in the viewer's list whose range contains the price
3. Default formula when no rule list is assigned or nothing matched
4. Round to the nearest 50 or 100

The calculator is pure: no I/O, no logging, no shared state. Callers that
want to see the evaluation steps pass a trace hook.
"""
import math
from numbers import Real
from typing import Optional, Sequence

from .models import PricingRule, TraceHook, TraceStep
from .rule_matcher import RuleMatcher


DEFAULT_THRESHOLD = 500
DEFAULT_FLAT_ADDITION = 150
DEFAULT_PERCENT_MULTIPLIER = 0.35


def round_to_nearest_50_or_100(num: float) -> float:
    """
    Round to a value ending in 00 or 50.

    Remainder (mod 100) below 25 rounds down to the hundred, below 75 goes
    to the hundred plus 50, anything else rounds up to the next hundred.
    """
    remainder = num % 100
    if remainder < 25:
        return float(math.floor(num / 100) * 100)
    elif remainder < 75:
        return float(math.floor(num / 100) * 100 + 50)
    else:
        return float(math.ceil(num / 100) * 100)


def calculate_default_price(price: float) -> float:
    """Markup used when a viewer has no factor or no rule matched."""
    if price <= DEFAULT_THRESHOLD:
        return price + DEFAULT_FLAT_ADDITION
    return price + price * DEFAULT_PERCENT_MULTIPLIER


def is_valid_price(raw_price) -> bool:
    """True for a positive finite number."""
    if isinstance(raw_price, bool) or not isinstance(raw_price, Real):
        return False
    return math.isfinite(raw_price) and raw_price > 0


class PriceCalculator:
    """
    Applies a viewer's rule list to raw prices.

    One instance per rule list; the same instance is reused for every row of
    a listing. rules=None means the viewer has no assigned factor, an empty
    list means the factor has no rules. Both end at the default formula for
    every price, but only the list is searched first.
    """

    def __init__(self, rules: Optional[Sequence[PricingRule]] = None, on_step: Optional[TraceHook] = None):
        self.rules = list(rules) if rules is not None else None
        self.on_step = on_step
        self.matcher = RuleMatcher(self.rules or [], on_step=on_step)

    def _trace(self, step: str, description: str, value: Optional[str] = None):
        if self.on_step is not None:
            self.on_step(TraceStep(step=step, description=description, value=value))

    def calculate(self, raw_price) -> Optional[float]:
        """
        Calculate the display price for one raw price.

        Returns None when the raw price is not a positive finite number, or
        when the marked-up price overflows.
        """
        if not is_valid_price(raw_price):
            self._trace("Validation", f"Invalid price {raw_price!r}, leaving blank")
            return None

        price = float(raw_price)
        self._trace("Input", "Original price", f"${price:,.2f}")

        calculated = None
        if self.rules is not None:
            self._trace("Rules", f"Using custom pricing factor with {len(self.rules)} rules")
            matched = self.matcher.find_matching_rule(price)
            if matched is not None:
                calculated = self.matcher.apply_rule_to_price(matched, price)
        else:
            self._trace("Rules", "No pricing factor assigned")

        if calculated is None:
            calculated = calculate_default_price(price)
            self._trace("Fallback", "Default formula", f"${calculated:,.2f}")

        try:
            if not math.isfinite(calculated):
                raise OverflowError(calculated)
            final = round_to_nearest_50_or_100(calculated)
        except OverflowError:
            self._trace("Validation", f"Marked-up price {calculated!r} is out of range, leaving blank")
            return None

        self._trace("Rounding", f"${calculated:,.2f} rounded to nearest 50/100", f"${final:,.2f}")
        return final


def calculate_price(raw_price, rules: Optional[Sequence[PricingRule]] = None,
                    on_step: Optional[TraceHook] = None) -> Optional[float]:
    """Calculate a single display price (see PriceCalculator.calculate)."""
    return PriceCalculator(rules, on_step=on_step).calculate(raw_price)
