from datetime import date
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from bnb_booking.models.pricing_rules import RoomPricingRule

pricing_rules = RoomPricingRule.__table__


def get_active_rules_for_stay(
    conn: Connection, room_id: str, check_in: date, check_out: date
) -> list[dict[str, Any]]:
    """
    Load active rules whose inclusive [start_date, end_date] overlaps [check_in, check_out).

    Rules are ordered by start date ascending (ties broken by id), which is the
    order the evaluator applies them in.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        room_id (str): Room id.
        check_in (date): First night of the stay.
        check_out (date): Checkout day (not a night of the stay).

    Returns:
        list[dict[str, Any]]: Rule rows.
    """
    stmt = (
        select(pricing_rules)
        .where(
            pricing_rules.c.room_id == room_id,
            pricing_rules.c.is_active.is_(True),
            pricing_rules.c.start_date < check_out,
            pricing_rules.c.end_date >= check_in,
        )
        .order_by(pricing_rules.c.start_date, pricing_rules.c.id)
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]


def list_pricing_rules(conn: Connection, room_id: str) -> list[dict[str, Any]]:
    stmt = (
        select(pricing_rules)
        .where(pricing_rules.c.room_id == room_id)
        .order_by(pricing_rules.c.start_date, pricing_rules.c.id)
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]


def get_pricing_rule(conn: Connection, rule_id: str) -> Optional[dict[str, Any]]:
    row = (
        conn.execute(select(pricing_rules).where(pricing_rules.c.id == rule_id))
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None
