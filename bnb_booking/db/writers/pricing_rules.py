from typing import Any

from sqlalchemy import delete, insert, update
from sqlalchemy.engine import Connection

from bnb_booking.models.pricing_rules import RoomPricingRule
from bnb_booking.utils.datetime import utc_now

pricing_rules = RoomPricingRule.__table__


def insert_pricing_rule(conn: Connection, data: dict[str, Any]) -> None:
    now = utc_now()
    conn.execute(insert(pricing_rules).values({**data, "created_at": now, "updated_at": now}))


def update_pricing_rule(conn: Connection, rule_id: str, data: dict[str, Any]) -> int:
    result = conn.execute(
        update(pricing_rules)
        .where(pricing_rules.c.id == rule_id)
        .values({**data, "updated_at": utc_now()})
    )
    return result.rowcount


def delete_pricing_rule(conn: Connection, rule_id: str) -> int:
    result = conn.execute(delete(pricing_rules).where(pricing_rules.c.id == rule_id))
    return result.rowcount
