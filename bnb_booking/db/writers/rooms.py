from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from bnb_booking.models.rooms import Room
from bnb_booking.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

rooms = Room.__table__

LAST_SYNC_COLUMNS = {
    "airbnb": "last_airbnb_sync",
    "expedia": "last_expedia_sync",
}


def insert_room(conn: Connection, data: dict[str, Any]) -> None:
    """
    Insert a new room.

    Args:
        conn: Active database connection (within transaction)
        data: Column values, including the room id
    """
    now = utc_now()
    conn.execute(insert(rooms).values({**data, "created_at": now, "updated_at": now}))
    logger.info("room_inserted", room_id=data["id"], slug=data.get("slug"))


def update_room(conn: Connection, room_id: str, data: dict[str, Any]) -> int:
    """
    Update room fields.

    Args:
        conn: Active database connection (within transaction)
        room_id: Room id
        data: Columns to overwrite

    Returns:
        int: Number of rows updated (0 if the room does not exist)
    """
    result = conn.execute(
        update(rooms).where(rooms.c.id == room_id).values({**data, "updated_at": utc_now()})
    )
    return result.rowcount


def update_last_sync(conn: Connection, room_id: str, platform: str, synced_at: datetime) -> None:
    """
    Record the last successful calendar sync time for a platform.

    Args:
        conn: Active database connection (within transaction)
        room_id: Room id
        platform: 'airbnb' or 'expedia'
        synced_at: Time the sync completed
    """
    column = LAST_SYNC_COLUMNS[platform]
    conn.execute(
        update(rooms)
        .where(rooms.c.id == room_id)
        .values({column: synced_at, "updated_at": synced_at})
    )
