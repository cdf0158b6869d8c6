"""SQLAlchemy model for time-boxed pricing rules."""

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    true,
)
from sqlalchemy.sql import func

from bnb_booking.models.base import Base

RULE_TYPES = ("surcharge_rate", "fixed_amount", "absolute_price")


class RoomPricingRule(Base):
    """
    ORM model for a pricing rule attached to one room.

    The meaning of `value` depends on `rule_type`: a fractional surcharge on the
    base price, a fixed per-night amount, or an absolute nightly price. The date
    range is inclusive on both ends. `days_of_week`, when set, is a list of
    lowercase weekday names restricting which stays the rule applies to.
    """

    __tablename__ = "room_pricing_rules"
    __table_args__ = (
        CheckConstraint("start_date < end_date", name="ck_pricing_rules_date_order"),
        CheckConstraint(
            "rule_type IN ('surcharge_rate', 'fixed_amount', 'absolute_price')",
            name="ck_pricing_rules_rule_type",
        ),
    )

    id = Column(String(64), primary_key=True)
    room_id = Column(
        String(64), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    rule_type = Column(String(32), nullable=False)
    value = Column(Numeric(10, 4), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    days_of_week = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
