from typing import Any

from sqlalchemy import delete, insert
from sqlalchemy.engine import Connection

from bnb_booking.models.blocked_periods import RoomBlockedPeriod
from bnb_booking.utils.datetime import utc_now

blocked_periods = RoomBlockedPeriod.__table__


def insert_blocked_period(conn: Connection, data: dict[str, Any]) -> None:
    conn.execute(insert(blocked_periods).values({**data, "created_at": utc_now()}))


def delete_blocked_period(conn: Connection, period_id: str) -> int:
    result = conn.execute(delete(blocked_periods).where(blocked_periods.c.id == period_id))
    return result.rowcount
