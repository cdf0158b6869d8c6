from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from bnb_booking.models.sync_log import ICalSyncLog

sync_log = ICalSyncLog.__table__


def list_sync_logs(
    conn: Connection,
    room_id: Optional[str] = None,
    platform: Optional[str] = None,
    limit: int = 50,
) -> list[dict[str, Any]]:
    """
    List recent sync attempts, newest first.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        room_id (Optional[str]): Filter by room.
        platform (Optional[str]): Filter by platform (airbnb, expedia).
        limit (int): Maximum rows returned.

    Returns:
        list[dict[str, Any]]: Sync log rows.
    """
    stmt = select(sync_log).order_by(sync_log.c.created_at.desc(), sync_log.c.id.desc())
    if room_id is not None:
        stmt = stmt.where(sync_log.c.room_id == room_id)
    if platform is not None:
        stmt = stmt.where(sync_log.c.platform == platform)
    return [dict(row) for row in conn.execute(stmt.limit(limit)).mappings()]
