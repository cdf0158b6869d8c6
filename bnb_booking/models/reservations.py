"""SQLAlchemy model for guest reservations."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.sql import func

from bnb_booking.models.base import Base

RESERVATION_STATUSES = ("pending", "confirmed", "cancelled", "completed")
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded")


class Reservation(Base):
    """
    ORM model for a reservation.

    A reservation is created as pending before payment and moves to confirmed
    only when the payment processor reports a completed checkout. Rows are never
    deleted; the confirmed_at and cancelled_at stamps record the status history.
    Amount columns hold the pricing breakdown at booking time, and total_amount
    is always the sum of base, fees and both taxes.
    """

    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("check_in < check_out", name="ck_reservations_date_order"),
        Index("ix_reservations_room_status_dates", "room_id", "status", "check_in", "check_out"),
    )

    id = Column(String(64), primary_key=True)
    confirmation_code = Column(String(16), nullable=False, unique=True, index=True)
    room_id = Column(String(64), ForeignKey("rooms.id"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    number_of_nights = Column(Integer, nullable=False)
    number_of_guests = Column(Integer, nullable=False)

    base_amount = Column(Numeric(10, 2), nullable=False)
    fees_amount = Column(Numeric(10, 2), nullable=False)
    state_tax_amount = Column(Numeric(10, 2), nullable=False)
    local_tax_amount = Column(Numeric(10, 2), nullable=False)
    tax_amount = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)

    status = Column(String(16), nullable=False, default="pending", server_default="pending")
    payment_status = Column(
        String(16), nullable=False, default="pending", server_default="pending"
    )

    guest_name = Column(String(255), nullable=False)
    guest_email = Column(String(255), nullable=False)
    guest_phone = Column(String(64), nullable=True)
    special_requests = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    stripe_session_id = Column(String(255), nullable=True, index=True)
    stripe_payment_intent_id = Column(String(255), nullable=True)
    stripe_customer_id = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
