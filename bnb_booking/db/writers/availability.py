"""
Writers for the availability ledger.

Two write paths feed the ledger: calendar reconciliation replaces every row of
one external source for a room, and reservation confirmation upserts one row per
booked night. Both rely on the (room_id, date) unique constraint.
"""

from datetime import date
from typing import Any, Iterable

import structlog
from sqlalchemy import and_, delete, select
from sqlalchemy.engine import Connection

from bnb_booking.db.writers._upsert import upsert_rows
from bnb_booking.models.availability import RoomAvailability
from bnb_booking.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

ledger = RoomAvailability.__table__

# Sources written by the engine itself; external syncs never overwrite them
INTERNAL_SOURCES = ("booking_confirmed", "manual", "direct")

BLOCK_UPDATE_COLUMNS = [
    "is_available",
    "is_blocked",
    "source",
    "external_booking_id",
    "updated_at",
]


def _blocked_row(room_id: str, night: date, source: str, booking_id: str | None) -> dict[str, Any]:
    now = utc_now()
    return {
        "room_id": room_id,
        "date": night,
        "is_available": False,
        "is_blocked": True,
        "source": source,
        "external_booking_id": booking_id,
        "created_at": now,
        "updated_at": now,
    }


def replace_source_nights(
    conn: Connection,
    room_id: str,
    source: str,
    nights: Iterable[tuple[date, str]],
) -> int:
    """
    Replace all ledger rows of one source for a room.

    Deletes every row tagged with `source`, then writes a blocked row for each
    night. A night already held by an internal source (a confirmed booking or a
    manual block) keeps its row; a night held by the other external platform is
    taken over.

    Args:
        conn: Active database connection (within transaction)
        room_id: Room id
        source: Ledger source, the platform name ('airbnb' or 'expedia')
        nights: (night, external_booking_id) pairs

    Returns:
        int: Number of nights written, internal nights left in place excluded
    """
    conn.execute(delete(ledger).where(and_(ledger.c.room_id == room_id, ledger.c.source == source)))

    # Last event wins when a feed lists overlapping events
    by_night: dict[date, str] = {}
    for night, booking_id in nights:
        by_night[night] = booking_id

    held: set[date] = set()
    if by_night:
        held = set(
            conn.execute(
                select(ledger.c.date).where(
                    ledger.c.room_id == room_id,
                    ledger.c.source.in_(INTERNAL_SOURCES),
                    ledger.c.date.in_(list(by_night)),
                )
            ).scalars()
        )

    rows = [
        _blocked_row(room_id, night, source, booking_id)
        for night, booking_id in sorted(by_night.items())
        if night not in held
    ]
    upsert_rows(
        conn,
        RoomAvailability,
        rows,
        conflict_columns=["room_id", "date"],
        update_columns=BLOCK_UPDATE_COLUMNS,
        where=RoomAvailability.source.notin_(INTERNAL_SOURCES),
    )
    return len(rows)


def commit_booked_nights(
    conn: Connection, room_id: str, nights: Iterable[date], reservation_id: str
) -> int:
    """
    Block each night of a confirmed reservation.

    Args:
        conn: Active database connection (within transaction)
        room_id: Room id
        nights: Nights of the stay, checkout day excluded
        reservation_id: Reservation id stored as the booking reference

    Returns:
        int: Number of nights written
    """
    rows = [_blocked_row(room_id, night, "booking_confirmed", reservation_id) for night in nights]
    upsert_rows(
        conn,
        RoomAvailability,
        rows,
        conflict_columns=["room_id", "date"],
        update_columns=BLOCK_UPDATE_COLUMNS,
    )
    return len(rows)
