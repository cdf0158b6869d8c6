"""
Pricing rule variants.

A stored rule carries one numeric `value` whose meaning depends on `rule_type`.
In code each type is its own class, so the evaluator dispatches on the variant
instead of re-reading the type string:

    SurchargeRate(rate)   add base_price * rate to the nightly price
    FixedAmount(amount)   add a fixed amount to the nightly price
    AbsolutePrice(price)  replace the nightly price outright
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional, Union

from bnb_booking.errors import InvalidInputError
from bnb_booking.utils.datetime import nights_between

CENT = Decimal("0.01")

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def round_cents(amount: Decimal) -> Decimal:
    """Round to the nearest cent, halves away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class SurchargeRate:
    rate: Decimal
    rule_type = "surcharge_rate"

    @property
    def value(self) -> Decimal:
        return self.rate


@dataclass(frozen=True)
class FixedAmount:
    amount: Decimal
    rule_type = "fixed_amount"

    @property
    def value(self) -> Decimal:
        return self.amount


@dataclass(frozen=True)
class AbsolutePrice:
    price: Decimal
    rule_type = "absolute_price"

    @property
    def value(self) -> Decimal:
        return self.price


RuleValue = Union[SurchargeRate, FixedAmount, AbsolutePrice]

_VARIANTS: dict[str, type] = {
    "surcharge_rate": SurchargeRate,
    "fixed_amount": FixedAmount,
    "absolute_price": AbsolutePrice,
}


def rule_value(rule_type: str, value: Any) -> RuleValue:
    """
    Build the tagged variant for a stored (rule_type, value) pair.

    Raises:
        InvalidInputError: Unknown rule type or negative value
    """
    variant = _VARIANTS.get(rule_type)
    if variant is None:
        raise InvalidInputError(f"Unknown rule type {rule_type}", {"rule_type": rule_type})
    amount = Decimal(str(value))
    if amount < 0:
        raise InvalidInputError("Rule value must not be negative", {"value": str(value)})
    return variant(amount)  # type: ignore[no-any-return]


def normalize_days(days: Optional[Iterable[str]]) -> Optional[frozenset[str]]:
    """
    Validate a day-of-week filter.

    None means "every day". An empty filter or an unknown weekday name is rejected.
    """
    if days is None:
        return None
    normalized = frozenset(day.strip().lower() for day in days)
    if not normalized:
        raise InvalidInputError("Day-of-week filter must not be empty", {"days_of_week": []})
    unknown = sorted(normalized.difference(WEEKDAY_NAMES))
    if unknown:
        raise InvalidInputError("Unknown weekday names", {"days_of_week": unknown})
    return normalized


@dataclass(frozen=True)
class PricingRule:
    """A pricing rule as the evaluator sees it."""

    id: str
    name: str
    value: RuleValue
    start_date: date
    end_date: date
    days_of_week: Optional[frozenset[str]] = None

    @property
    def rule_type(self) -> str:
        return self.value.rule_type

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "PricingRule":
        return cls(
            id=row["id"],
            name=row["name"],
            value=rule_value(row["rule_type"], row["value"]),
            start_date=row["start_date"],
            end_date=row["end_date"],
            days_of_week=normalize_days(row.get("days_of_week")),
        )

    def overlaps(self, check_in: date, check_out: date) -> bool:
        """Inclusive rule range against the half-open stay range."""
        return self.start_date < check_out and self.end_date >= check_in

    def matches_days(self, check_in: date, check_out: date) -> bool:
        if self.days_of_week is None:
            return True
        return any(
            WEEKDAY_NAMES[night.weekday()] in self.days_of_week
            for night in nights_between(check_in, check_out)
        )

    def applies_to(self, check_in: date, check_out: date) -> bool:
        return self.overlaps(check_in, check_out) and self.matches_days(check_in, check_out)


def applicable_rules(
    rules: Iterable[PricingRule], check_in: date, check_out: date
) -> list[PricingRule]:
    """Rules that fire for the stay, in start-date order (ties by id)."""
    fired = [rule for rule in rules if rule.applies_to(check_in, check_out)]
    return sorted(fired, key=lambda rule: (rule.start_date, rule.id))
