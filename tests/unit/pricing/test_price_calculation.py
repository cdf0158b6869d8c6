"""
Unit tests for stay price calculation.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Optional

import pytest

from bnb_booking.errors import InvalidInputError, InvalidRangeError
from bnb_booking.pricing.evaluator import calculate_price
from bnb_booking.pricing.rules import PricingRule, rule_value


def _room(**overrides: Any) -> dict[str, Any]:
    room = {
        "base_price": Decimal("100.00"),
        "service_fee_rate": Decimal("0"),
        "state_tax_rate": Decimal("0"),
        "local_tax_rate": Decimal("0"),
    }
    room.update(overrides)
    return room


def _rule(
    rule_id: str,
    rule_type: str,
    value: str,
    start: date,
    end: date,
    days: Optional[frozenset[str]] = None,
) -> PricingRule:
    return PricingRule(
        id=rule_id,
        name=f"Rule {rule_id}",
        value=rule_value(rule_type, value),
        start_date=start,
        end_date=end,
        days_of_week=days,
    )


CHECK_IN = date(2025, 9, 10)
CHECK_OUT = date(2025, 9, 13)


@pytest.mark.unit
def test_surcharge_rate_applies_to_every_night() -> None:
    """Base 100, +20% surcharge, 3 nights -> 360.00."""
    rules = [_rule("r1", "surcharge_rate", "0.20", date(2025, 9, 1), date(2025, 9, 30))]

    quote = calculate_price(_room(), rules, CHECK_IN, CHECK_OUT)

    assert quote.nights == 3
    assert quote.price_per_night == Decimal("120.00")
    assert quote.base_amount == Decimal("360.00")
    assert [r.applied_amount for r in quote.applied_rules] == [Decimal("20.00")]


@pytest.mark.unit
def test_later_absolute_price_overrides_surcharge() -> None:
    """The absolute rule wins and the surcharge reports a zero contribution."""
    rules = [
        _rule("r1", "surcharge_rate", "0.20", date(2025, 9, 1), date(2025, 9, 30)),
        _rule("r2", "absolute_price", "200", date(2025, 9, 5), date(2025, 9, 30)),
    ]

    quote = calculate_price(_room(), rules, CHECK_IN, CHECK_OUT)

    assert quote.base_amount == Decimal("600.00")
    assert quote.price_per_night == Decimal("200.00")
    fired = {r.id: r for r in quote.applied_rules}
    assert fired["r1"].applied_amount == Decimal("0")
    assert fired["r2"].applied_amount == Decimal("100.00")
    assert fired["r2"].rule_type == "absolute_price"


@pytest.mark.unit
def test_rules_after_absolute_price_contribute_nothing() -> None:
    rules = [
        _rule("r1", "absolute_price", "200", date(2025, 9, 1), date(2025, 9, 30)),
        _rule("r2", "fixed_amount", "25", date(2025, 9, 5), date(2025, 9, 30)),
    ]

    quote = calculate_price(_room(), rules, CHECK_IN, CHECK_OUT)

    assert quote.base_amount == Decimal("600.00")
    assert [r.applied_amount for r in quote.applied_rules] == [Decimal("100.00"), Decimal("0.00")]


@pytest.mark.unit
def test_last_absolute_price_wins() -> None:
    rules = [
        _rule("r1", "absolute_price", "200", date(2025, 9, 1), date(2025, 9, 30)),
        _rule("r2", "absolute_price", "180", date(2025, 9, 8), date(2025, 9, 30)),
    ]

    quote = calculate_price(_room(), rules, CHECK_IN, CHECK_OUT)

    assert quote.base_amount == Decimal("540.00")
    fired = {r.id: r.applied_amount for r in quote.applied_rules}
    assert fired == {"r1": Decimal("0"), "r2": Decimal("80.00")}


@pytest.mark.unit
def test_same_start_date_orders_by_rule_id() -> None:
    rules = [
        _rule("b", "absolute_price", "180", date(2025, 9, 1), date(2025, 9, 30)),
        _rule("a", "absolute_price", "200", date(2025, 9, 1), date(2025, 9, 30)),
    ]

    quote = calculate_price(_room(), rules, CHECK_IN, CHECK_OUT)

    assert [r.id for r in quote.applied_rules] == ["a", "b"]
    assert quote.price_per_night == Decimal("180.00")


@pytest.mark.unit
def test_fixed_amount_and_surcharge_accumulate() -> None:
    rules = [
        _rule("r1", "surcharge_rate", "0.10", date(2025, 9, 1), date(2025, 9, 30)),
        _rule("r2", "fixed_amount", "15", date(2025, 9, 2), date(2025, 9, 30)),
    ]

    quote = calculate_price(_room(), rules, CHECK_IN, CHECK_OUT)

    assert quote.price_per_night == Decimal("125.00")
    assert quote.base_amount == Decimal("375.00")


@pytest.mark.unit
def test_end_to_end_fees_and_taxes() -> None:
    """Base 150, fee 12%, state 6%, local 7%, 3 nights, 2 guests -> 562.50."""
    room = _room(
        base_price=Decimal("150.00"),
        service_fee_rate=Decimal("0.12"),
        state_tax_rate=Decimal("0.06"),
        local_tax_rate=Decimal("0.07"),
    )

    quote = calculate_price(room, [], CHECK_IN, CHECK_OUT, guest_count=2)

    assert quote.base_amount == Decimal("450.00")
    assert quote.fees_amount == Decimal("54.00")
    assert quote.state_tax_amount == Decimal("27.00")
    assert quote.local_tax_amount == Decimal("31.50")
    assert quote.tax_amount == Decimal("58.50")
    assert quote.total_amount == Decimal("562.50")
    assert quote.tax_breakdown()["taxable_amount"] == Decimal("450.00")


@pytest.mark.unit
def test_large_party_multiplier_applies_before_fees_and_taxes() -> None:
    room = _room(service_fee_rate=Decimal("0.10"), state_tax_rate=Decimal("0.05"))

    quote = calculate_price(room, [], CHECK_IN, CHECK_OUT, guest_count=5)

    assert quote.guest_multiplier == Decimal("1.10")
    assert quote.base_amount == Decimal("330.00")
    assert quote.fees_amount == Decimal("33.00")
    assert quote.state_tax_amount == Decimal("16.50")
    assert quote.total_amount == Decimal("379.50")


@pytest.mark.unit
def test_four_guests_pay_no_multiplier() -> None:
    quote = calculate_price(_room(), [], CHECK_IN, CHECK_OUT, guest_count=4)

    assert quote.guest_multiplier == Decimal("1")
    assert quote.base_amount == Decimal("300.00")


@pytest.mark.unit
def test_components_round_half_up_independently() -> None:
    room = _room(base_price=Decimal("33.33"), state_tax_rate=Decimal("0.075"))

    quote = calculate_price(room, [], date(2025, 9, 10), date(2025, 9, 11))

    # 33.33 * 0.075 = 2.49975
    assert quote.state_tax_amount == Decimal("2.50")
    assert quote.total_amount == quote.base_amount + quote.fees_amount + quote.tax_amount


@pytest.mark.unit
def test_day_of_week_filter_skips_rules_for_other_days() -> None:
    # 2025-09-10 is a Wednesday; the stay covers Wed, Thu, Fri nights
    weekend = frozenset({"saturday", "sunday"})
    friday = frozenset({"friday"})
    rules = [
        _rule("weekend", "fixed_amount", "50", date(2025, 9, 1), date(2025, 9, 30), weekend),
        _rule("friday", "fixed_amount", "10", date(2025, 9, 1), date(2025, 9, 30), friday),
    ]

    quote = calculate_price(_room(), rules, CHECK_IN, CHECK_OUT)

    assert [r.id for r in quote.applied_rules] == ["friday"]
    assert quote.base_amount == Decimal("330.00")


@pytest.mark.unit
def test_rule_ending_on_check_in_still_fires() -> None:
    rules = [_rule("r1", "fixed_amount", "10", date(2025, 9, 1), CHECK_IN)]

    quote = calculate_price(_room(), rules, CHECK_IN, CHECK_OUT)

    assert len(quote.applied_rules) == 1


@pytest.mark.unit
def test_rule_starting_on_check_out_does_not_fire() -> None:
    rules = [_rule("r1", "fixed_amount", "10", CHECK_OUT, date(2025, 9, 30))]

    quote = calculate_price(_room(), rules, CHECK_IN, CHECK_OUT)

    assert quote.applied_rules == []
    assert quote.base_amount == Decimal("300.00")


@pytest.mark.unit
@pytest.mark.parametrize(
    "check_in,check_out",
    [
        (date(2025, 9, 13), date(2025, 9, 10)),
        (date(2025, 9, 10), date(2025, 9, 10)),
    ],
)
def test_non_positive_nights_rejected(check_in: date, check_out: date) -> None:
    with pytest.raises(InvalidRangeError) as exc_info:
        calculate_price(_room(), [], check_in, check_out)

    assert isinstance(exc_info.value, InvalidInputError)
    assert exc_info.value.details["start"] == check_in.isoformat()


@pytest.mark.unit
@pytest.mark.parametrize("guests", [0, 21])
def test_guest_count_out_of_range_rejected(guests: int) -> None:
    with pytest.raises(InvalidInputError):
        calculate_price(_room(), [], CHECK_IN, CHECK_OUT, guest_count=guests)
