"""
Unit tests for pricing rule variants and day-of-week filters.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from bnb_booking.errors import InvalidInputError
from bnb_booking.pricing.rules import (
    AbsolutePrice,
    FixedAmount,
    PricingRule,
    SurchargeRate,
    applicable_rules,
    normalize_days,
    round_cents,
    rule_value,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "rule_type,expected",
    [
        ("surcharge_rate", SurchargeRate(Decimal("0.2"))),
        ("fixed_amount", FixedAmount(Decimal("0.2"))),
        ("absolute_price", AbsolutePrice(Decimal("0.2"))),
    ],
)
def test_rule_value_builds_variant(rule_type: str, expected: object) -> None:
    variant = rule_value(rule_type, "0.2")

    assert variant == expected
    assert variant.rule_type == rule_type
    assert variant.value == Decimal("0.2")


@pytest.mark.unit
def test_rule_value_rejects_unknown_type() -> None:
    with pytest.raises(InvalidInputError) as exc_info:
        rule_value("percentage", "10")

    assert exc_info.value.details == {"rule_type": "percentage"}


@pytest.mark.unit
def test_rule_value_rejects_negative_value() -> None:
    with pytest.raises(InvalidInputError):
        rule_value("fixed_amount", "-5")


@pytest.mark.unit
def test_normalize_days_lowercases_and_dedupes() -> None:
    assert normalize_days(["Saturday", " sunday", "saturday"]) == frozenset(
        {"saturday", "sunday"}
    )


@pytest.mark.unit
def test_normalize_days_none_means_every_day() -> None:
    assert normalize_days(None) is None


@pytest.mark.unit
def test_normalize_days_rejects_empty_filter() -> None:
    with pytest.raises(InvalidInputError):
        normalize_days([])


@pytest.mark.unit
def test_normalize_days_rejects_unknown_names() -> None:
    with pytest.raises(InvalidInputError) as exc_info:
        normalize_days(["monday", "funday"])

    assert exc_info.value.details == {"days_of_week": ["funday"]}


@pytest.mark.unit
def test_from_row_reads_stored_rule() -> None:
    rule = PricingRule.from_row(
        {
            "id": "rule-1",
            "name": "Summer",
            "rule_type": "surcharge_rate",
            "value": Decimal("0.1500"),
            "start_date": date(2025, 6, 1),
            "end_date": date(2025, 8, 31),
            "days_of_week": ["friday", "saturday"],
        }
    )

    assert rule.rule_type == "surcharge_rate"
    assert rule.value == SurchargeRate(Decimal("0.1500"))
    assert rule.days_of_week == frozenset({"friday", "saturday"})


@pytest.mark.unit
def test_applicable_rules_filters_and_orders() -> None:
    def make(rule_id: str, start: date, end: date) -> PricingRule:
        return PricingRule(rule_id, rule_id, FixedAmount(Decimal("1")), start, end)

    late = make("late", date(2025, 9, 9), date(2025, 9, 20))
    early = make("early", date(2025, 9, 1), date(2025, 9, 20))
    outside = make("outside", date(2025, 10, 1), date(2025, 10, 20))

    fired = applicable_rules([late, outside, early], date(2025, 9, 10), date(2025, 9, 12))

    assert [rule.id for rule in fired] == ["early", "late"]


@pytest.mark.unit
def test_round_cents_rounds_halves_up() -> None:
    assert round_cents(Decimal("1.005")) == Decimal("1.01")
    assert round_cents(Decimal("1.004")) == Decimal("1.00")
