"""
Stay price calculation.

calculate_price() is a pure function of a room's rates, its pricing rules and
the requested stay. quote_stay() loads those inputs from the database first.

Nightly price:
    Rules are applied in start-date order to a running price seeded at the
    room's base price. Surcharges and fixed amounts accumulate until an
    absolute price fires; from then on only later absolute prices change the
    running price (the last one wins) and every rule before it reports a zero
    contribution.

Amounts:
    base   = nightly price * nights * guest multiplier (1.10 above 4 guests)
    fee    = base * service_fee_rate
    taxes  = base * state_tax_rate, base * local_tax_rate
    total  = base + fee + state tax + local tax

Every amount is rounded to the cent independently (halves away from zero);
the total is the sum of the rounded components.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Iterable

import structlog
from sqlalchemy.engine import Connection

from bnb_booking.config import MAX_GUESTS
from bnb_booking.db.readers.pricing_rules import get_active_rules_for_stay
from bnb_booking.db.readers.rooms import get_room
from bnb_booking.errors import InvalidInputError, InvalidRangeError, RoomNotFoundError
from bnb_booking.metrics import price_quotes
from bnb_booking.pricing.rules import (
    AbsolutePrice,
    FixedAmount,
    PricingRule,
    SurchargeRate,
    applicable_rules,
    round_cents,
)

logger = structlog.get_logger(__name__)

LARGE_PARTY_THRESHOLD = 4
LARGE_PARTY_MULTIPLIER = Decimal("1.10")


@dataclass
class AppliedRule:
    id: str
    name: str
    rule_type: str
    value: Decimal
    applied_amount: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "rule_type": self.rule_type,
            "value": self.value,
            "applied_amount": self.applied_amount,
        }


@dataclass
class PriceQuote:
    """Price breakdown for one stay. applied_amount on each rule is per night."""

    nights: int
    guest_count: int
    price_per_night: Decimal
    guest_multiplier: Decimal
    base_amount: Decimal
    fees_amount: Decimal
    state_tax_amount: Decimal
    local_tax_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    state_tax_rate: Decimal
    local_tax_rate: Decimal
    service_fee_rate: Decimal
    applied_rules: list[AppliedRule] = field(default_factory=list)

    def tax_breakdown(self) -> dict[str, Decimal]:
        return {
            "state_tax_rate": self.state_tax_rate,
            "local_tax_rate": self.local_tax_rate,
            "state_tax_amount": self.state_tax_amount,
            "local_tax_amount": self.local_tax_amount,
            "total_tax_amount": self.tax_amount,
            "taxable_amount": self.base_amount,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "nights": self.nights,
            "guest_count": self.guest_count,
            "price_per_night": self.price_per_night,
            "guest_multiplier": self.guest_multiplier,
            "base_amount": self.base_amount,
            "fees_amount": self.fees_amount,
            "state_tax_amount": self.state_tax_amount,
            "local_tax_amount": self.local_tax_amount,
            "tax_amount": self.tax_amount,
            "total_amount": self.total_amount,
            "tax_breakdown": self.tax_breakdown(),
            "applied_rules": [rule.to_dict() for rule in self.applied_rules],
        }


def validate_guest_count(guest_count: int) -> None:
    if not 1 <= guest_count <= MAX_GUESTS:
        raise InvalidInputError(
            f"Guest count must be between 1 and {MAX_GUESTS}",
            {"guest_count": guest_count},
        )


def _decimal(value: Any) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def calculate_price(
    room: dict[str, Any],
    rules: Iterable[PricingRule],
    check_in: date,
    check_out: date,
    guest_count: int = 1,
) -> PriceQuote:
    """
    Price a stay.

    Args:
        room: Room row with base_price, service_fee_rate, state_tax_rate, local_tax_rate
        rules: Candidate pricing rules for the room (filtered here)
        check_in: First night
        check_out: Checkout day
        guest_count: Party size

    Returns:
        PriceQuote: Amount breakdown and the rules that fired

    Raises:
        InvalidRangeError: check_in is not before check_out
        InvalidInputError: guest_count out of range
    """
    nights = (check_out - check_in).days
    if nights <= 0:
        raise InvalidRangeError(check_in, check_out)
    validate_guest_count(guest_count)

    base_price = _decimal(room["base_price"])
    price_per_night = base_price
    absolute_mode = False
    applied: list[AppliedRule] = []

    for rule in applicable_rules(rules, check_in, check_out):
        amount = Decimal("0")
        variant = rule.value
        if isinstance(variant, AbsolutePrice):
            # Overrides everything accumulated so far, earlier absolutes included
            for earlier in applied:
                earlier.applied_amount = Decimal("0")
            amount = variant.price - base_price
            price_per_night = variant.price
            absolute_mode = True
        elif absolute_mode:
            pass
        elif isinstance(variant, SurchargeRate):
            amount = base_price * variant.rate
            price_per_night += amount
        elif isinstance(variant, FixedAmount):
            amount = variant.amount
            price_per_night += amount

        applied.append(
            AppliedRule(
                id=rule.id,
                name=rule.name,
                rule_type=rule.rule_type,
                value=variant.value,
                applied_amount=round_cents(amount),
            )
        )

    guest_multiplier = (
        LARGE_PARTY_MULTIPLIER if guest_count > LARGE_PARTY_THRESHOLD else Decimal("1")
    )
    raw_base = price_per_night * nights * guest_multiplier

    service_fee_rate = _decimal(room["service_fee_rate"])
    state_tax_rate = _decimal(room["state_tax_rate"])
    local_tax_rate = _decimal(room["local_tax_rate"])

    base_amount = round_cents(raw_base)
    fees_amount = round_cents(raw_base * service_fee_rate)
    state_tax_amount = round_cents(raw_base * state_tax_rate)
    local_tax_amount = round_cents(raw_base * local_tax_rate)
    tax_amount = state_tax_amount + local_tax_amount

    return PriceQuote(
        nights=nights,
        guest_count=guest_count,
        price_per_night=round_cents(price_per_night),
        guest_multiplier=guest_multiplier,
        base_amount=base_amount,
        fees_amount=fees_amount,
        state_tax_amount=state_tax_amount,
        local_tax_amount=local_tax_amount,
        tax_amount=tax_amount,
        total_amount=base_amount + fees_amount + tax_amount,
        state_tax_rate=state_tax_rate,
        local_tax_rate=local_tax_rate,
        service_fee_rate=service_fee_rate,
        applied_rules=applied,
    )


def quote_stay(
    conn: Connection,
    room_id: str,
    check_in: date,
    check_out: date,
    guest_count: int = 1,
) -> PriceQuote:
    """
    Load a room and its active rules, then price the stay.

    Raises:
        RoomNotFoundError: room_id does not resolve
        InvalidRangeError: check_in is not before check_out
    """
    if check_in >= check_out:
        raise InvalidRangeError(check_in, check_out)

    room = get_room(conn, room_id)
    if room is None:
        raise RoomNotFoundError(room_id)

    rows = get_active_rules_for_stay(conn, room_id, check_in, check_out)
    rules = [PricingRule.from_row(row) for row in rows]
    quote = calculate_price(room, rules, check_in, check_out, guest_count)

    price_quotes.inc()
    logger.debug(
        "price_quoted",
        room_id=room_id,
        check_in=check_in.isoformat(),
        check_out=check_out.isoformat(),
        nights=quote.nights,
        total_amount=str(quote.total_amount),
        rules_fired=len(quote.applied_rules),
    )
    return quote
