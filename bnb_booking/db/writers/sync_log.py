from datetime import datetime
from typing import Optional

from sqlalchemy import delete, insert
from sqlalchemy.engine import Connection

from bnb_booking.models.sync_log import ICalSyncLog
from bnb_booking.utils.datetime import utc_now

sync_log = ICalSyncLog.__table__


def insert_sync_log(
    conn: Connection,
    room_id: str,
    platform: str,
    status: str,
    bookings_processed: int,
    duration_ms: int,
    error_message: Optional[str] = None,
) -> None:
    """
    Append one sync attempt to the audit trail.

    Args:
        conn: Active database connection (within transaction)
        room_id: Room id the sync ran for
        platform: 'airbnb' or 'expedia'
        status: 'success', 'partial' or 'error'
        bookings_processed: External bookings applied to the ledger
        duration_ms: Wall time of the attempt
        error_message: Failure text when status is not success
    """
    conn.execute(
        insert(sync_log).values(
            room_id=room_id,
            platform=platform,
            status=status,
            bookings_processed=bookings_processed,
            error_message=error_message,
            sync_duration_ms=duration_ms,
            created_at=utc_now(),
        )
    )


def delete_sync_logs_before(conn: Connection, cutoff: datetime) -> int:
    """Delete sync log rows created before cutoff. Returns the number removed."""
    result = conn.execute(delete(sync_log).where(sync_log.c.created_at < cutoff))
    return result.rowcount
