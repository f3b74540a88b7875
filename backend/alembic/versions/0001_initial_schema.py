"""Initial booking engine schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    user_role_enum = sa.Enum("user", "owner", "admin", name="userrole")
    user_status_enum = sa.Enum("active", "suspended", name="userstatus")
    space_type_enum = sa.Enum(
        "outdoor",
        "covered",
        "garage",
        "driveway",
        "carport",
        "street",
        name="spacetype",
    )
    space_status_enum = sa.Enum(
        "active", "inactive", "maintenance", "unavailable", name="spacestatus"
    )
    booking_mode_enum = sa.Enum("instant", "request", "both", name="bookingmode")
    promo_type_enum = sa.Enum(
        "percentage", "fixed_amount", "free_hours", name="promotype"
    )
    booking_status_enum = sa.Enum(
        "pending",
        "confirmed",
        "active",
        "completed",
        "cancelled",
        "no_show",
        name="bookingstatus",
    )
    payment_status_enum = sa.Enum(
        "pending",
        "paid",
        "refunded",
        "partially_refunded",
        "failed",
        name="paymentstatus",
    )
    payment_record_status_enum = sa.Enum(
        "pending", "succeeded", "failed", name="paymentrecordstatus"
    )
    refund_status_enum = sa.Enum(
        "pending",
        "processing",
        "completed",
        "failed",
        "cancelled",
        name="refundstatus",
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("phone_number", sa.String(length=32)),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("status", user_status_enum, nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "owners",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("business_name", sa.String(length=255)),
        *_timestamps(),
    )

    op.create_table(
        "user_vehicles",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("registration_number", sa.String(length=32), nullable=False),
        sa.Column("make", sa.String(length=120), nullable=False),
        sa.Column("model", sa.String(length=120), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_user_vehicles_user_id", "user_vehicles", ["user_id"])

    op.create_table(
        "parking_spaces",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "owner_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("owners.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("space_number", sa.String(length=64), nullable=False),
        sa.Column("space_type", space_type_enum, nullable=False),
        sa.Column("description", sa.String(length=1024)),
        sa.Column("latitude", sa.Float()),
        sa.Column("longitude", sa.Float()),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("daily_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("monthly_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", space_status_enum, nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False),
        sa.Column("booking_mode", booking_mode_enum, nullable=False),
        sa.Column("has_ev_charging", sa.Boolean(), nullable=False),
        sa.CheckConstraint(
            "hourly_rate >= 0 AND daily_rate >= 0 AND monthly_rate >= 0",
            name="ck_parking_spaces_rates_non_negative",
        ),
        *_timestamps(),
    )
    op.create_index("ix_parking_spaces_owner_id", "parking_spaces", ["owner_id"])

    op.create_table(
        "space_availability",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "space_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("parking_spaces.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("available_from", sa.String(length=5), nullable=False),
        sa.Column("available_to", sa.String(length=5), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False),
        sa.CheckConstraint(
            "day_of_week BETWEEN 0 AND 6", name="ck_space_availability_day"
        ),
        sa.CheckConstraint(
            "available_from < available_to", name="ck_space_availability_range"
        ),
        *_timestamps(),
    )
    op.create_index(
        "ix_space_availability_space_day",
        "space_availability",
        ["space_id", "day_of_week"],
    )

    op.create_table(
        "promo_codes",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(length=64), nullable=False, unique=True),
        sa.Column("promo_type", promo_type_enum, nullable=False),
        sa.Column("discount_value", sa.Numeric(10, 2), nullable=False),
        sa.Column("max_discount_amount", sa.Numeric(10, 2)),
        sa.Column("valid_from", sa.DateTime(timezone=True), nullable=False),
        sa.Column("valid_to", sa.DateTime(timezone=True), nullable=False),
        sa.Column("usage_limit_total", sa.Integer()),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("booking_number", sa.String(length=32), nullable=False, unique=True),
        sa.Column(
            "user_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "owner_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("owners.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "space_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("parking_spaces.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "vehicle_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("user_vehicles.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "promo_code_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("promo_codes.id", ondelete="SET NULL"),
        ),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_hours", sa.Numeric(12, 4), nullable=False),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("discount_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("overtime_charge", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("status", booking_status_enum, nullable=False),
        sa.Column("payment_status", payment_status_enum, nullable=False),
        sa.Column("verification_code", sa.String(length=8)),
        sa.Column("check_in_time", sa.DateTime(timezone=True)),
        sa.Column("check_out_time", sa.DateTime(timezone=True)),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        sa.Column("cancellation_reason", sa.String(length=500)),
        sa.Column("refund_amount", sa.Numeric(10, 2)),
        sa.CheckConstraint("end_time > start_time", name="ck_bookings_interval"),
        sa.CheckConstraint("total_amount >= 0", name="ck_bookings_total_non_negative"),
        *_timestamps(),
    )
    op.create_index(
        "ix_bookings_space_interval", "bookings", ["space_id", "start_time", "end_time"]
    )
    op.create_index("ix_bookings_user_status", "bookings", ["user_id", "status"])
    op.create_index("ix_bookings_owner_status", "bookings", ["owner_id", "status"])

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE bookings
            ADD CONSTRAINT ex_bookings_space_interval
            EXCLUDE USING gist (
                space_id WITH =,
                tstzrange(start_time, end_time, '[)') WITH &&
            )
            WHERE (status IN ('pending', 'confirmed', 'active'))
            """
        )

    op.create_table(
        "booking_extensions",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "booking_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("old_end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("new_end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("extension_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("extended_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_booking_extensions_booking_id", "booking_extensions", ["booking_id"]
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "booking_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("payment_method", sa.String(length=32), nullable=False),
        sa.Column("status", payment_record_status_enum, nullable=False),
        sa.Column(
            "transaction_reference", sa.String(length=64), nullable=False, unique=True
        ),
        *_timestamps(),
    )
    op.create_index("ix_payments_booking_id", "payments", ["booking_id"])

    op.create_table(
        "refunds",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "booking_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "payment_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("payments.id", ondelete="SET NULL"),
        ),
        sa.Column(
            "user_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "initiated_by",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
        ),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("refund_percentage", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=500), nullable=False),
        sa.Column("status", refund_status_enum, nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("ix_refunds_booking_id", "refunds", ["booking_id"])


def downgrade() -> None:
    op.drop_index("ix_refunds_booking_id", table_name="refunds")
    op.drop_table("refunds")
    op.drop_index("ix_payments_booking_id", table_name="payments")
    op.drop_table("payments")
    op.drop_index("ix_booking_extensions_booking_id", table_name="booking_extensions")
    op.drop_table("booking_extensions")
    op.drop_index("ix_bookings_owner_status", table_name="bookings")
    op.drop_index("ix_bookings_user_status", table_name="bookings")
    op.drop_index("ix_bookings_space_interval", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("promo_codes")
    op.drop_index("ix_space_availability_space_day", table_name="space_availability")
    op.drop_table("space_availability")
    op.drop_index("ix_parking_spaces_owner_id", table_name="parking_spaces")
    op.drop_table("parking_spaces")
    op.drop_index("ix_user_vehicles_user_id", table_name="user_vehicles")
    op.drop_table("user_vehicles")
    op.drop_table("owners")
    op.drop_table("users")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum_name in (
            "refundstatus",
            "paymentrecordstatus",
            "paymentstatus",
            "bookingstatus",
            "promotype",
            "bookingmode",
            "spacestatus",
            "spacetype",
            "userstatus",
            "userrole",
        ):
            op.execute(f"DROP TYPE IF EXISTS {enum_name}")
