from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from bnb_booking.models.blocked_periods import RoomBlockedPeriod

blocked_periods = RoomBlockedPeriod.__table__


def list_blocked_periods(conn: Connection, room_id: str) -> list[dict[str, Any]]:
    """
    List a room's manual blocks ordered by start date.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        room_id (str): Room id.

    Returns:
        list[dict[str, Any]]: Blocked period rows.
    """
    stmt = (
        select(blocked_periods)
        .where(blocked_periods.c.room_id == room_id)
        .order_by(blocked_periods.c.start_date, blocked_periods.c.id)
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]


def get_blocked_period(conn: Connection, period_id: str) -> Optional[dict[str, Any]]:
    row = (
        conn.execute(select(blocked_periods).where(blocked_periods.c.id == period_id))
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None
