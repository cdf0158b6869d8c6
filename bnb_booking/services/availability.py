"""
Availability checks against the ledger and confirmed reservations.

A room is bookable for [start, end) when it is active, none of its nights are
blocked in the ledger, and no confirmed reservation overlaps the range. The two
conflict sources are queried separately because they have different write paths:
external calendars and confirmations write the ledger, while reservations only
block once confirmed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.engine import Connection

from bnb_booking.db.readers.availability import get_blocked_dates, get_ledger_rows
from bnb_booking.db.readers.reservations import get_confirmed_overlapping
from bnb_booking.db.readers.rooms import get_room, get_room_by_ref, list_active_rooms
from bnb_booking.errors import InvalidRangeError, RoomNotFoundError, RoomUnavailableError
from bnb_booking.utils.datetime import nights_between


@dataclass
class AvailabilityResult:
    room_id: str
    start: date
    end: date
    blocked_dates: list[dict[str, Any]] = field(default_factory=list)
    conflicting_reservations: list[dict[str, Any]] = field(default_factory=list)

    @property
    def available(self) -> bool:
        return not self.blocked_dates and not self.conflicting_reservations

    def to_dict(self) -> dict[str, Any]:
        return {
            "room_id": self.room_id,
            "start": self.start,
            "end": self.end,
            "available": self.available,
            "blocked_dates": self.blocked_dates,
            "conflicting_reservations": self.conflicting_reservations,
        }


def check_availability(
    conn: Connection,
    room_id: str,
    start: date,
    end: date,
    exclude_reservation_id: Optional[str] = None,
) -> AvailabilityResult:
    """
    Decide whether a room is free for the half-open range [start, end).

    Both conflict lists are returned whatever the outcome, for diagnostics.

    Args:
        conn: Active database connection
        room_id: Room id
        start: First night
        end: Checkout day, not occupied
        exclude_reservation_id: Reservation to ignore (used when re-checking its own range)

    Returns:
        AvailabilityResult

    Raises:
        InvalidRangeError: start is not before end
        RoomUnavailableError: room missing or not active
    """
    if start >= end:
        raise InvalidRangeError(start, end)

    room = get_room(conn, room_id)
    if room is None or room["status"] != "active":
        raise RoomUnavailableError(room_id)

    return AvailabilityResult(
        room_id=room_id,
        start=start,
        end=end,
        blocked_dates=get_blocked_dates(conn, room_id, start, end),
        conflicting_reservations=get_confirmed_overlapping(
            conn, room_id, start, end, exclude_id=exclude_reservation_id
        ),
    )


def check_bulk(
    conn: Connection,
    start: date,
    end: date,
    room_ids: Optional[list[str]] = None,
) -> list[dict[str, Any]]:
    """
    Check every active room (or the given subset) for one range.

    Returns:
        list[dict]: Per room: id, slug, name, available, conflict counts and last sync stamps
    """
    if start >= end:
        raise InvalidRangeError(start, end)

    results = []
    for room in list_active_rooms(conn):
        if room_ids is not None and room["id"] not in room_ids:
            continue
        result = check_availability(conn, room["id"], start, end)
        results.append(
            {
                "room_id": room["id"],
                "slug": room["slug"],
                "name": room["name"],
                "available": result.available,
                "blocked_nights": len(result.blocked_dates),
                "conflicting_reservations": len(result.conflicting_reservations),
                "last_airbnb_sync": room["last_airbnb_sync"],
                "last_expedia_sync": room["last_expedia_sync"],
            }
        )
    return results


def room_calendar(conn: Connection, room_ref: str, start: date, end: date) -> dict[str, Any]:
    """
    Day-by-day view of a room for [start, end), for the guest-facing calendar.

    Each day reports whether it can be booked, the ledger source that blocks it,
    and its nightly price (the ledger price override when present, otherwise the
    room's base price).

    Raises:
        InvalidRangeError: start is not before end
        RoomNotFoundError: no room with this id or slug
    """
    if start >= end:
        raise InvalidRangeError(start, end)

    room = get_room_by_ref(conn, room_ref)
    if room is None:
        raise RoomNotFoundError(room_ref)

    ledger_by_date = {row["date"]: row for row in get_ledger_rows(conn, room["id"], start, end)}
    reserved: dict[date, str] = {}
    for reservation in get_confirmed_overlapping(conn, room["id"], start, end):
        for night in nights_between(reservation["check_in"], reservation["check_out"]):
            reserved[night] = reservation["confirmation_code"]

    base_price: Decimal = room["base_price"]
    days = []
    for night in nights_between(start, end):
        row = ledger_by_date.get(night)
        blocked = bool(row and row["is_blocked"])
        days.append(
            {
                "date": night,
                "available": room["status"] == "active" and not blocked and night not in reserved,
                "blocked": blocked,
                "source": row["source"] if row else None,
                "confirmation_code": reserved.get(night),
                "price": row["price_override"]
                if row and row["price_override"] is not None
                else base_price,
            }
        )

    last_synced: list[datetime] = [
        stamp for stamp in (room["last_airbnb_sync"], room["last_expedia_sync"]) if stamp
    ]
    return {
        "room_id": room["id"],
        "slug": room["slug"],
        "status": room["status"],
        "last_synced": max(last_synced) if last_synced else None,
        "days": days,
    }
