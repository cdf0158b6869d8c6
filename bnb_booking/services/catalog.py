"""Administrative management of rooms, pricing rules and blocked periods."""

from __future__ import annotations

import uuid
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from bnb_booking.db.readers.blocked_periods import get_blocked_period, list_blocked_periods
from bnb_booking.db.readers.pricing_rules import get_pricing_rule, list_pricing_rules
from bnb_booking.db.readers.rooms import get_room, get_room_by_ref, list_rooms
from bnb_booking.db.writers.blocked_periods import delete_blocked_period, insert_blocked_period
from bnb_booking.db.writers.pricing_rules import (
    delete_pricing_rule,
    insert_pricing_rule,
    update_pricing_rule,
)
from bnb_booking.db.writers.rooms import insert_room, update_room
from bnb_booking.errors import (
    BlockedPeriodNotFoundError,
    ConflictError,
    InvalidInputError,
    InvalidRangeError,
    PricingRuleNotFoundError,
    RoomNotFoundError,
)
from bnb_booking.pricing.rules import normalize_days, rule_value

logger = structlog.get_logger(__name__)


def _stringify_urls(data: dict[str, Any]) -> dict[str, Any]:
    return {
        key: str(value) if key.endswith("_ical_url") and value is not None else value
        for key, value in data.items()
    }


# =============================================================================
# Rooms
# =============================================================================


def create_room(engine: Engine, data: dict[str, Any]) -> dict[str, Any]:
    """
    Create a room.

    Raises:
        ConflictError: id or slug already taken
    """
    values = _stringify_urls({**data, "id": data.get("id") or str(uuid.uuid4())})
    try:
        with engine.begin() as conn:
            insert_room(conn, values)
            room = get_room(conn, values["id"])
    except IntegrityError as e:
        raise ConflictError(
            "Room id or slug already exists", {"id": values["id"], "slug": values["slug"]}
        ) from e
    return room or values


def update_room_fields(engine: Engine, room_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """
    Update a room.

    Args:
        engine: SQLAlchemy Engine
        room_id: Room id
        data: Fields to change (only keys present are written)

    Raises:
        RoomNotFoundError: Unknown room
    """
    with engine.begin() as conn:
        if data and not update_room(conn, room_id, _stringify_urls(data)):
            raise RoomNotFoundError(room_id)
        room = get_room(conn, room_id)
    if room is None:
        raise RoomNotFoundError(room_id)
    logger.info("room_updated", room_id=room_id, fields=sorted(data))
    return room


def list_all_rooms(engine: Engine, status: Optional[str] = None) -> list[dict[str, Any]]:
    with engine.connect() as conn:
        return list_rooms(conn, status=status)


def get_room_or_404(engine: Engine, room_ref: str) -> dict[str, Any]:
    with engine.connect() as conn:
        room = get_room_by_ref(conn, room_ref)
    if room is None:
        raise RoomNotFoundError(room_ref)
    return room


# =============================================================================
# Pricing rules
# =============================================================================


def _validate_rule(values: dict[str, Any]) -> dict[str, Any]:
    if values["start_date"] >= values["end_date"]:
        raise InvalidRangeError(values["start_date"], values["end_date"])
    rule_value(values["rule_type"], values["value"])
    days = normalize_days(values.get("days_of_week"))
    values["days_of_week"] = sorted(days) if days is not None else None
    return values


def create_pricing_rule(engine: Engine, room_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """
    Attach a pricing rule to a room.

    Raises:
        RoomNotFoundError: Unknown room
        InvalidRangeError: start_date is not before end_date
        InvalidInputError: Negative value or bad day-of-week filter
    """
    values = _validate_rule({**data, "id": str(uuid.uuid4()), "room_id": room_id})
    with engine.begin() as conn:
        if get_room(conn, room_id) is None:
            raise RoomNotFoundError(room_id)
        insert_pricing_rule(conn, values)
        rule = get_pricing_rule(conn, values["id"])
    logger.info("pricing_rule_created", room_id=room_id, rule_id=values["id"])
    return rule or values


def update_pricing_rule_fields(
    engine: Engine, rule_id: str, data: dict[str, Any]
) -> dict[str, Any]:
    """
    Change a pricing rule; the merged rule is validated as a whole.

    Raises:
        PricingRuleNotFoundError: Unknown rule
        InvalidRangeError, InvalidInputError: The merged rule is invalid
    """
    with engine.begin() as conn:
        current = get_pricing_rule(conn, rule_id)
        if current is None:
            raise PricingRuleNotFoundError(rule_id)
        merged = _validate_rule({**current, **data})
        changes = {key: merged[key] for key in data}
        if changes:
            update_pricing_rule(conn, rule_id, changes)
        rule = get_pricing_rule(conn, rule_id)
    logger.info("pricing_rule_updated", rule_id=rule_id, fields=sorted(data))
    return rule or merged


def remove_pricing_rule(engine: Engine, rule_id: str) -> None:
    with engine.begin() as conn:
        if not delete_pricing_rule(conn, rule_id):
            raise PricingRuleNotFoundError(rule_id)
    logger.info("pricing_rule_deleted", rule_id=rule_id)


def room_pricing_rules(engine: Engine, room_id: str) -> list[dict[str, Any]]:
    with engine.connect() as conn:
        if get_room(conn, room_id) is None:
            raise RoomNotFoundError(room_id)
        return list_pricing_rules(conn, room_id)


# =============================================================================
# Blocked periods
# =============================================================================


def create_blocked_period(engine: Engine, room_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """
    Block a room for maintenance or personal use (inclusive dates).

    Raises:
        RoomNotFoundError: Unknown room
        InvalidInputError: end_date before start_date
    """
    if data["end_date"] < data["start_date"]:
        raise InvalidInputError(
            "Blocked period end date must not be before its start date",
            {
                "start_date": data["start_date"].isoformat(),
                "end_date": data["end_date"].isoformat(),
            },
        )
    values = {**data, "id": str(uuid.uuid4()), "room_id": room_id}
    with engine.begin() as conn:
        if get_room(conn, room_id) is None:
            raise RoomNotFoundError(room_id)
        insert_blocked_period(conn, values)
        period = get_blocked_period(conn, values["id"])
    logger.info("blocked_period_created", room_id=room_id, period_id=values["id"])
    return period or values


def remove_blocked_period(engine: Engine, period_id: str) -> None:
    with engine.begin() as conn:
        if not delete_blocked_period(conn, period_id):
            raise BlockedPeriodNotFoundError(period_id)
    logger.info("blocked_period_deleted", period_id=period_id)


def room_blocked_periods(engine: Engine, room_id: str) -> list[dict[str, Any]]:
    with engine.connect() as conn:
        if get_room(conn, room_id) is None:
            raise RoomNotFoundError(room_id)
        return list_blocked_periods(conn, room_id)
