from typing import Any

from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from bnb_booking.models.reservations import Reservation
from bnb_booking.utils.datetime import utc_now

reservations = Reservation.__table__


def insert_reservation(conn: Connection, data: dict[str, Any]) -> None:
    """
    Insert a new reservation row.

    Args:
        conn: Active database connection (within transaction)
        data: Column values, including id and confirmation_code
    """
    now = utc_now()
    conn.execute(insert(reservations).values({**data, "created_at": now, "updated_at": now}))


def update_reservation(
    conn: Connection,
    reservation_id: str,
    data: dict[str, Any],
    expected_status: str | None = None,
) -> int:
    """
    Update reservation fields, optionally guarded by its current status.

    The status guard turns a lifecycle transition into a compare-and-set: a
    concurrent writer that already moved the row makes this update a no-op.

    Args:
        conn: Active database connection (within transaction)
        reservation_id: Reservation id
        data: Columns to overwrite
        expected_status: Only update if the row is still in this status

    Returns:
        int: Number of rows updated
    """
    stmt = update(reservations).where(reservations.c.id == reservation_id)
    if expected_status is not None:
        stmt = stmt.where(reservations.c.status == expected_status)
    result = conn.execute(stmt.values({**data, "updated_at": utc_now()}))
    return result.rowcount
