from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from bnb_booking.models.base import Base


class ICalSyncLog(Base):
    """
    Append-only audit row written after every external calendar sync attempt.

    status is one of success, partial or error. Rows older than the retention
    window are pruned by the weekly cleanup job.
    """

    __tablename__ = "ical_sync_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(String(64), nullable=False, index=True)
    platform = Column(String(32), nullable=False)
    status = Column(String(16), nullable=False)
    bookings_processed = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    sync_duration_ms = Column(Integer, nullable=True)
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
