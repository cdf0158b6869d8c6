from datetime import date
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from bnb_booking.models.reservations import Reservation
from bnb_booking.models.rooms import Room

reservations = Reservation.__table__
rooms = Room.__table__


def get_reservation(
    conn: Connection, reservation_id: str, for_update: bool = False
) -> Optional[dict[str, Any]]:
    """
    Fetch a reservation by id.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        reservation_id (str): Reservation id.
        for_update (bool): Lock the row until the transaction ends (no-op on SQLite).

    Returns:
        Optional[dict[str, Any]]: Reservation row or None.
    """
    stmt = select(reservations).where(reservations.c.id == reservation_id)
    if for_update:
        stmt = stmt.with_for_update()
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def get_reservation_by_session(
    conn: Connection, session_id: str, for_update: bool = False
) -> Optional[dict[str, Any]]:
    """Fetch the reservation a checkout session was created for."""
    stmt = select(reservations).where(reservations.c.stripe_session_id == session_id)
    if for_update:
        stmt = stmt.with_for_update()
    row = conn.execute(stmt).mappings().first()
    return dict(row) if row else None


def confirmation_code_exists(conn: Connection, confirmation_code: str) -> bool:
    result = conn.execute(
        select(reservations.c.id).where(reservations.c.confirmation_code == confirmation_code)
    )
    return result.first() is not None


def get_confirmed_overlapping(
    conn: Connection,
    room_id: str,
    start: date,
    end: date,
    exclude_id: Optional[str] = None,
) -> list[dict[str, Any]]:
    """
    Fetch confirmed reservations whose [check_in, check_out) overlaps [start, end).

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        room_id (str): Room id.
        start (date): Range start.
        end (date): Range end, excluded.
        exclude_id (Optional[str]): Reservation to leave out (the one being confirmed).

    Returns:
        list[dict[str, Any]]: id, confirmation_code, check_in and check_out per conflict.
    """
    stmt = (
        select(
            reservations.c.id,
            reservations.c.confirmation_code,
            reservations.c.check_in,
            reservations.c.check_out,
        )
        .where(
            reservations.c.room_id == room_id,
            reservations.c.status == "confirmed",
            reservations.c.check_in < end,
            reservations.c.check_out > start,
        )
        .order_by(reservations.c.check_in)
    )
    if exclude_id is not None:
        stmt = stmt.where(reservations.c.id != exclude_id)
    return [dict(row) for row in conn.execute(stmt).mappings()]


def list_confirmed_for_room(conn: Connection, room_id: str) -> list[dict[str, Any]]:
    stmt = (
        select(reservations)
        .where(reservations.c.room_id == room_id, reservations.c.status == "confirmed")
        .order_by(reservations.c.check_in, reservations.c.id)
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]


def list_user_reservations(
    conn: Connection,
    user_id: str,
    status: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """
    List a user's reservations, newest first.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        user_id (str): Owner id supplied by the identity provider.
        status (Optional[str]): Only return reservations in this status.
        limit (int): Page size.
        offset (int): Rows to skip.

    Returns:
        list[dict[str, Any]]: Reservation rows.
    """
    stmt = (
        select(reservations)
        .where(reservations.c.user_id == user_id)
        .order_by(reservations.c.created_at.desc(), reservations.c.id)
        .limit(limit)
        .offset(offset)
    )
    if status is not None:
        stmt = stmt.where(reservations.c.status == status)
    return [dict(row) for row in conn.execute(stmt).mappings()]


def list_reservations(
    conn: Connection,
    status: Optional[str] = None,
    payment_status: Optional[str] = None,
    room_id: Optional[str] = None,
    check_in_from: Optional[date] = None,
    check_in_to: Optional[date] = None,
    limit: int = 20,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """
    List reservations across all guests, newest first, with room slug and name.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        status (Optional[str]): Reservation status filter.
        payment_status (Optional[str]): Payment status filter.
        room_id (Optional[str]): Room filter.
        check_in_from (Optional[date]): Earliest check-in, inclusive.
        check_in_to (Optional[date]): Latest check-in, inclusive.
        limit (int): Page size.
        offset (int): Rows to skip.

    Returns:
        list[dict[str, Any]]: Reservation rows plus room_slug and room_name.
    """
    stmt = (
        select(
            reservations,
            rooms.c.slug.label("room_slug"),
            rooms.c.name.label("room_name"),
        )
        .select_from(reservations.join(rooms, reservations.c.room_id == rooms.c.id))
        .order_by(reservations.c.created_at.desc(), reservations.c.id)
        .limit(limit)
        .offset(offset)
    )
    if status is not None:
        stmt = stmt.where(reservations.c.status == status)
    if payment_status is not None:
        stmt = stmt.where(reservations.c.payment_status == payment_status)
    if room_id is not None:
        stmt = stmt.where(reservations.c.room_id == room_id)
    if check_in_from is not None:
        stmt = stmt.where(reservations.c.check_in >= check_in_from)
    if check_in_to is not None:
        stmt = stmt.where(reservations.c.check_in <= check_in_to)
    return [dict(row) for row in conn.execute(stmt).mappings()]


def count_by_status(conn: Connection) -> dict[str, int]:
    stmt = select(reservations.c.status, func.count()).group_by(reservations.c.status)
    return {status: count for status, count in conn.execute(stmt)}


def total_amount_by_payment_status(conn: Connection) -> dict[str, Any]:
    """Sum of total_amount per payment status; statuses with no rows are absent."""
    stmt = select(
        reservations.c.payment_status, func.sum(reservations.c.total_amount)
    ).group_by(reservations.c.payment_status)
    return {payment_status: total for payment_status, total in conn.execute(stmt)}
