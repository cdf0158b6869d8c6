"""Create rooms, pricing, ledger, reservation and sync log tables

Revision ID: 3a1f9c2d7b10
Revises:
Create Date: 2026-10-18 09:12:31.204118

"""

import sqlalchemy as sa

from alembic import op  # type: ignore[attr-defined]

# revision identifiers, used by Alembic.
revision = "3a1f9c2d7b10"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "rooms",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("slug", sa.String(128), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("service_fee_rate", sa.Numeric(6, 4), nullable=False),
        sa.Column("state_tax_rate", sa.Numeric(6, 4), nullable=False),
        sa.Column("local_tax_rate", sa.Numeric(6, 4), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("airbnb_ical_url", sa.Text(), nullable=True),
        sa.Column("expedia_ical_url", sa.Text(), nullable=True),
        sa.Column("last_airbnb_sync", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_expedia_sync", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status IN ('active', 'inactive', 'archived')", name="ck_rooms_status"),
    )
    op.create_index("ix_rooms_slug", "rooms", ["slug"], unique=True)

    op.create_table(
        "room_pricing_rules",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "room_id", sa.String(64), sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("rule_type", sa.String(32), nullable=False),
        sa.Column("value", sa.Numeric(10, 4), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("days_of_week", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("start_date < end_date", name="ck_pricing_rules_date_order"),
        sa.CheckConstraint(
            "rule_type IN ('surcharge_rate', 'fixed_amount', 'absolute_price')",
            name="ck_pricing_rules_rule_type",
        ),
    )
    op.create_index("ix_room_pricing_rules_room_id", "room_pricing_rules", ["room_id"])

    op.create_table(
        "room_availability",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "room_id", sa.String(64), sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_blocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("source", sa.String(32), nullable=False, server_default="direct"),
        sa.Column("external_booking_id", sa.String(255), nullable=True),
        sa.Column("price_override", sa.Numeric(10, 2), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("room_id", "date", name="uq_room_availability_room_date"),
    )
    op.create_index("ix_room_availability_room_id", "room_availability", ["room_id"])
    op.create_index("ix_room_availability_date", "room_availability", ["date"])

    op.create_table(
        "room_blocked_periods",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "room_id", sa.String(64), sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("reason", sa.String(255), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.CheckConstraint("start_date <= end_date", name="ck_blocked_periods_date_order"),
    )
    op.create_index("ix_room_blocked_periods_room_id", "room_blocked_periods", ["room_id"])

    op.create_table(
        "reservations",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("confirmation_code", sa.String(16), nullable=False),
        sa.Column("room_id", sa.String(64), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("check_in", sa.Date(), nullable=False),
        sa.Column("check_out", sa.Date(), nullable=False),
        sa.Column("number_of_nights", sa.Integer(), nullable=False),
        sa.Column("number_of_guests", sa.Integer(), nullable=False),
        sa.Column("base_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("fees_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("state_tax_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("local_tax_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("tax_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("payment_status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("guest_name", sa.String(255), nullable=False),
        sa.Column("guest_email", sa.String(255), nullable=False),
        sa.Column("guest_phone", sa.String(64), nullable=True),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("stripe_session_id", sa.String(255), nullable=True),
        sa.Column("stripe_payment_intent_id", sa.String(255), nullable=True),
        sa.Column("stripe_customer_id", sa.String(255), nullable=True),
        *_timestamps(),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("check_in < check_out", name="ck_reservations_date_order"),
    )
    op.create_index(
        "ix_reservations_confirmation_code", "reservations", ["confirmation_code"], unique=True
    )
    op.create_index("ix_reservations_room_id", "reservations", ["room_id"])
    op.create_index("ix_reservations_user_id", "reservations", ["user_id"])
    op.create_index("ix_reservations_stripe_session_id", "reservations", ["stripe_session_id"])
    op.create_index(
        "ix_reservations_room_status_dates",
        "reservations",
        ["room_id", "status", "check_in", "check_out"],
    )

    op.create_table(
        "ical_sync_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("room_id", sa.String(64), nullable=False),
        sa.Column("platform", sa.String(32), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("bookings_processed", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("sync_duration_ms", sa.Integer(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_index("ix_ical_sync_log_room_id", "ical_sync_log", ["room_id"])
    op.create_index("ix_ical_sync_log_created_at", "ical_sync_log", ["created_at"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("ical_sync_log")
    op.drop_table("reservations")
    op.drop_table("room_blocked_periods")
    op.drop_table("room_availability")
    op.drop_table("room_pricing_rules")
    op.drop_table("rooms")
