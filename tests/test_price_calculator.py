"""
Price calculator tests: rule precedence, default formula, rounding and
invalid input handling.
"""
import math

import pytest

from media_pricing.engine import (
    PriceCalculator,
    PriceTrace,
    PricingRule,
    calculate_default_price,
    calculate_price,
    round_to_nearest_50_or_100,
)


def fixed(min_price, max_price, value):
    return PricingRule(min_price=min_price, max_price=max_price, addition_type="fixed", addition_value=value)


def percentage(min_price, max_price, value):
    return PricingRule(min_price=min_price, max_price=max_price, addition_type="percentage", addition_value=value)


@pytest.mark.parametrize("value, expected", [
    (124, 100),
    (125, 150),
    (174, 150),
    (175, 200),
    (400, 400),
    (810, 800),
    (1350, 1350),
    (1399.99, 1400),
    (20, 0),
])
def test_rounding_boundaries(value, expected):
    assert round_to_nearest_50_or_100(value) == expected


def test_rounding_is_idempotent_and_multiple_of_50():
    for cents in range(1, 500000, 737):
        once = round_to_nearest_50_or_100(cents / 100)
        assert once % 50 == 0
        assert round_to_nearest_50_or_100(once) == once


def test_default_formula_boundary():
    assert calculate_default_price(500) == 650
    assert calculate_default_price(500.01) == 500.01 + 500.01 * 0.35
    assert calculate_default_price(100) == 250


def test_no_rules_uses_default_formula():
    """price=250, rules=None → 250 + 150 = 400."""
    assert calculate_price(250, None) == 400


def test_no_rules_large_price():
    """price=600 → 600 + 210 = 810 → 800."""
    assert calculate_price(600, None) == 800


def test_matching_fixed_rule():
    """price=250 within 0-500 fixed 100 → 350."""
    assert calculate_price(250, [fixed(0, 500, 100)]) == 350


def test_matching_percentage_rule():
    # 333 + 333 * 15 / 100 = 382.95 → 400
    assert calculate_price(333, [percentage(0, None, 15)]) == 400
    assert calculate_price(1000, [percentage(0, None, 10)]) == 1100


def test_exhausted_rules_fall_back_to_default():
    """price=1000 misses 0-999, default 1000 * 1.35 = 1350."""
    assert calculate_price(1000, [percentage(0, 999, 10)]) == 1350


def test_empty_rule_list_falls_back_to_default():
    assert calculate_price(250, []) == 400
    assert calculate_price(600, []) == 800


def test_first_match_wins_on_overlap():
    wide = fixed(0, 1000, 100)
    narrow = fixed(200, 400, 300)

    assert calculate_price(300, [wide, narrow]) == 400
    assert calculate_price(300, [narrow, wide]) == 600


def test_rules_are_not_resorted():
    # Caller order decides precedence even when min_price is descending
    rules = [percentage(100, None, 50), fixed(0, None, 10)]
    assert calculate_price(200, rules) == 300


def test_max_price_is_inclusive():
    assert calculate_price(500, [fixed(0, 500, 100)]) == 600
    # 500.5 misses the rule: 500.5 * 1.35 = 675.675 → 700
    assert calculate_price(500.5, [fixed(0, 500, 100)]) == 700


def test_min_price_is_inclusive():
    assert calculate_price(100, [fixed(100, 200, 0)]) == 100


def test_unbounded_rule_matches_large_prices():
    assert calculate_price(1_000_000, [fixed(0, None, 0)]) == 1_000_000


def test_markup_beyond_float_range_is_absent():
    # 1000 + 1000 * 1e308 / 100 is inf
    assert calculate_price(1000, [percentage(0, None, 1e308)]) is None
    assert calculate_price(1.7e308, None) is None
    assert calculate_price(1000, [fixed(0, None, math.inf)]) is None


def test_out_of_range_markup_is_traced():
    trace = PriceTrace()
    assert calculate_price(1000, [percentage(0, None, 1e308)], on_step=trace) is None
    assert trace.steps[-1].step == "Validation"
    assert "out of range" in trace.steps[-1].description
    assert "Rounding" not in [s.step for s in trace.steps]


@pytest.mark.parametrize("raw", [0, -5, -0.01, math.nan, math.inf, -math.inf, None, "250", True])
def test_invalid_prices_are_absent(raw):
    assert calculate_price(raw, None) is None
    assert calculate_price(raw, [fixed(0, None, 100)]) is None


def test_calculator_output_is_multiple_of_50_for_rule_sets():
    rule_sets = [
        None,
        [],
        [fixed(0, 500, 100), percentage(501, None, 20)],
        [percentage(0, 250, 12.5), fixed(250, 2000, 75)],
    ]
    for rules in rule_sets:
        calculator = PriceCalculator(rules)
        for price in range(1, 5000, 37):
            result = calculator.calculate(price + 0.33)
            assert result is not None
            assert result % 50 == 0


def test_default_path_matches_formula():
    for price in (1, 99.99, 250, 499, 500, 500.01, 777, 12345.67):
        assert calculate_price(price, None) == round_to_nearest_50_or_100(calculate_default_price(price))


def test_trace_records_rule_match():
    trace = PriceTrace()
    calculate_price(250, [fixed(600, None, 1), fixed(0, 500, 100)], on_step=trace)

    steps = [s.step for s in trace.steps]
    assert "Rule Check" in steps
    assert "Rule Match" in steps
    assert "Fallback" not in steps
    assert trace.steps[-1].step == "Rounding"
    assert "$350.00" in trace.get_trace_text()


def test_trace_names_the_matched_range():
    trace = PriceTrace()
    calculate_price(750, [fixed(0, 500, 100), percentage(501, None, 20)], on_step=trace)

    match = [s for s in trace.steps if s.step == "Rule Match"]
    assert len(match) == 1
    assert match[0].description == "Rule 2 matched: $750.00 in $501.00 - ∞"
    assert match[0].value == "percentage"


def test_trace_records_fallback():
    trace = PriceTrace()
    calculate_price(1000, [percentage(0, 999, 10)], on_step=trace)

    fallback = [s for s in trace.steps if s.step == "Fallback"]
    assert len(fallback) == 1
    assert fallback[0].value == "$1,350.00"


def test_trace_records_invalid_price():
    trace = PriceTrace()
    assert calculate_price(0, None, on_step=trace) is None
    assert [s.step for s in trace.steps] == ["Validation"]


def test_rule_from_row_coerces_numbers():
    rule = PricingRule.from_row({
        'min_price': '100.00', 'max_price': None, 'addition_type': 'fixed', 'addition_value': '25',
    })
    assert rule == fixed(100.0, None, 25.0)
    assert rule.matches(10_000)
    assert not rule.matches(99.99)
