"""SQLAlchemy model for the per-room, per-date availability ledger."""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    false,
    true,
)
from sqlalchemy.sql import func

from bnb_booking.models.base import Base

LEDGER_SOURCES = ("direct", "airbnb", "expedia", "manual", "booking_confirmed")


class RoomAvailability(Base):
    """
    ORM model for one ledger row: the state of a single room on a single night.

    Rows are written by the calendar reconciler (one per night of each external
    booking, tagged with the platform as source) and by reservation confirmation
    (source 'booking_confirmed'). The (room_id, date) pair is unique, so writers
    upsert instead of inserting duplicates.
    """

    __tablename__ = "room_availability"
    __table_args__ = (UniqueConstraint("room_id", "date", name="uq_room_availability_room_date"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(
        String(64), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date = Column(Date, nullable=False, index=True)
    is_available = Column(Boolean, nullable=False, default=True, server_default=true())
    is_blocked = Column(Boolean, nullable=False, default=False, server_default=false())
    source = Column(String(32), nullable=False, default="direct", server_default="direct")
    external_booking_id = Column(String(255), nullable=True)
    price_override = Column(Numeric(10, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
