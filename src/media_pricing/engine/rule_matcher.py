"""
Rule Matcher - Finds the pricing rule that applies to a raw price.

Used by the price calculator. Rules are evaluated in the order supplied
and the first matching range wins.
"""
from dataclasses import dataclass
from typing import Optional, Sequence

from .models import FIXED, PricingRule, TraceHook, TraceStep


@dataclass
class MatchedRule:
    """A rule that matched with context."""
    position: int  # 1-based position in the evaluated list
    rule: PricingRule
    match_reason: str


class RuleMatcher:
    """
    Matches a price against an ordered rule list.

    The list is not re-sorted. Overlapping ranges are allowed and resolved
    by list order.
    """

    def __init__(self, rules: Sequence[PricingRule], on_step: Optional[TraceHook] = None):
        self.rules = list(rules)
        self.on_step = on_step

    def _trace(self, step: str, description: str, value: Optional[str] = None):
        if self.on_step is not None:
            self.on_step(TraceStep(step=step, description=description, value=value))

    def find_matching_rule(self, price: float) -> Optional[MatchedRule]:
        """Return the first rule whose range contains price, or None."""
        for position, rule in enumerate(self.rules, start=1):
            if rule.matches(price):
                reason = f"${price:,.2f} in {rule.describe_range()}"
                matched = MatchedRule(position=position, rule=rule, match_reason=reason)
                self._trace("Rule Match", f"Rule {position} matched: {matched.match_reason}", rule.addition_type)
                return matched
            self._trace("Rule Check", f"Rule {position} ({rule.describe_range()}) skipped")

        self._trace("Rule Check", f"No rule matched ${price:,.2f} out of {len(self.rules)}")
        return None

    def apply_rule_to_price(self, matched: MatchedRule, base_price: float) -> float:
        """Apply the matched rule's addition to base_price."""
        rule = matched.rule

        if rule.addition_type == FIXED:
            new_price = base_price + rule.addition_value
            self._trace(
                "Rule Applied",
                f"Fixed: ${base_price:,.2f} + ${rule.addition_value:,.2f}",
                f"${new_price:,.2f}",
            )
        else:
            # Anything that is not fixed is a percentage addition
            amount = base_price * rule.addition_value / 100
            new_price = base_price + amount
            self._trace(
                "Rule Applied",
                f"Percentage: ${base_price:,.2f} + {rule.addition_value:g}% (${amount:,.2f})",
                f"${new_price:,.2f}",
            )

        return new_price
