from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, String, Text
from sqlalchemy.sql import func

from bnb_booking.models.base import Base


class RoomBlockedPeriod(Base):
    """
    ORM model for a manual maintenance or personal-use block.

    Start and end dates are both inclusive. Blocked periods are published in the
    outbound calendar feed; they are not part of the availability ledger.
    """

    __tablename__ = "room_blocked_periods"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_blocked_periods_date_order"),
    )

    id = Column(String(64), primary_key=True)
    room_id = Column(
        String(64), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    reason = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
