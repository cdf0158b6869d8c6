"""SQLAlchemy model for bookable rooms."""

from sqlalchemy import CheckConstraint, Column, DateTime, Numeric, String, Text
from sqlalchemy.sql import func

from bnb_booking.models.base import Base

ROOM_STATUSES = ("active", "inactive", "archived")


class Room(Base):
    """
    ORM model for a bookable room.

    Holds the nightly base price and the rates applied on top of it (service fee,
    state and local occupancy tax). Each room may be listed on Airbnb and Expedia;
    their iCal export URLs and last successful sync time are stored per platform.
    Only rooms with status 'active' can be booked or synced.
    """

    __tablename__ = "rooms"
    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'inactive', 'archived')", name="ck_rooms_status"
        ),
    )

    id = Column(String(64), primary_key=True)
    slug = Column(String(128), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    base_price = Column(Numeric(10, 2), nullable=False)
    service_fee_rate = Column(Numeric(6, 4), nullable=False, default=0)
    state_tax_rate = Column(Numeric(6, 4), nullable=False, default=0)
    local_tax_rate = Column(Numeric(6, 4), nullable=False, default=0)
    status = Column(String(16), nullable=False, default="active", server_default="active")
    airbnb_ical_url = Column(Text, nullable=True)
    expedia_ical_url = Column(Text, nullable=True)
    last_airbnb_sync = Column(DateTime(timezone=True), nullable=True)
    last_expedia_sync = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
