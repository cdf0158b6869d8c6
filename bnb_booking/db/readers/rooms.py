from typing import Any, Optional

from sqlalchemy import or_, select
from sqlalchemy.engine import Connection

from bnb_booking.models.rooms import Room

rooms = Room.__table__


def get_room(conn: Connection, room_id: str) -> Optional[dict[str, Any]]:
    """
    Fetch a room by id regardless of status.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        room_id (str): Room id.

    Returns:
        Optional[dict[str, Any]]: Room row as a dict, or None if not found.
    """
    row = conn.execute(select(rooms).where(rooms.c.id == room_id)).mappings().fetchone()
    return dict(row) if row else None


def get_room_by_ref(conn: Connection, room_ref: str) -> Optional[dict[str, Any]]:
    """
    Fetch a room by id or slug.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        room_ref (str): Room id or slug.

    Returns:
        Optional[dict[str, Any]]: Room row as a dict, or None if neither matches.
    """
    row = (
        conn.execute(
            select(rooms)
            .where(or_(rooms.c.id == room_ref, rooms.c.slug == room_ref))
            .order_by((rooms.c.id == room_ref).desc())
        )
        .mappings()
        .first()
    )
    return dict(row) if row else None


def list_rooms(conn: Connection, status: Optional[str] = None) -> list[dict[str, Any]]:
    """
    List rooms ordered by name, optionally filtered by lifecycle status.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        status (Optional[str]): Only return rooms with this status.

    Returns:
        list[dict[str, Any]]: Room rows.
    """
    stmt = select(rooms).order_by(rooms.c.name, rooms.c.id)
    if status is not None:
        stmt = stmt.where(rooms.c.status == status)
    return [dict(row) for row in conn.execute(stmt).mappings()]


def list_active_rooms(conn: Connection) -> list[dict[str, Any]]:
    return list_rooms(conn, status="active")
