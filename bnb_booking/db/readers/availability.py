from datetime import date
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from bnb_booking.models.availability import RoomAvailability

ledger = RoomAvailability.__table__


def get_blocked_dates(
    conn: Connection, room_id: str, start: date, end: date
) -> list[dict[str, Any]]:
    """
    Fetch blocked ledger rows for nights in the half-open range [start, end).

    The checkout day is not a night of the stay, so a block on it is never a
    conflict: a stay may end on the day the next booking begins.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        room_id (str): Room id.
        start (date): First night to check.
        end (date): Checkout day, excluded.

    Returns:
        list[dict[str, Any]]: Rows with date, source and external_booking_id, ordered by date.
    """
    stmt = (
        select(ledger.c.date, ledger.c.source, ledger.c.external_booking_id)
        .where(
            ledger.c.room_id == room_id,
            ledger.c.is_blocked.is_(True),
            ledger.c.date >= start,
            ledger.c.date < end,
        )
        .order_by(ledger.c.date)
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]


def get_ledger_rows(
    conn: Connection,
    room_id: str,
    start: date,
    end: date,
    source: Optional[str] = None,
) -> list[dict[str, Any]]:
    """
    Fetch every ledger row for a room in [start, end), blocked or not.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        room_id (str): Room id.
        start (date): First date.
        end (date): End date, excluded.
        source (Optional[str]): Restrict to one ledger source.

    Returns:
        list[dict[str, Any]]: Ledger rows ordered by date.
    """
    stmt = (
        select(ledger)
        .where(ledger.c.room_id == room_id, ledger.c.date >= start, ledger.c.date < end)
        .order_by(ledger.c.date)
    )
    if source is not None:
        stmt = stmt.where(ledger.c.source == source)
    return [dict(row) for row in conn.execute(stmt).mappings()]

