"""Booking (reservation) models."""
from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parkshare.db.base import Base
from parkshare.models.mixins import TimestampMixin, enum_values

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from parkshare.models.owner import Owner
    from parkshare.models.parking_space import ParkingSpace
    from parkshare.models.payment import Payment
    from parkshare.models.promo_code import PromoCode
    from parkshare.models.refund import Refund
    from parkshare.models.user import User
    from parkshare.models.vehicle import UserVehicle


class BookingStatus(str, enum.Enum):
    """Lifecycle states for bookings."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class PaymentStatus(str, enum.Enum):
    """Settlement state of a booking, tracked apart from its lifecycle."""

    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"
    FAILED = "failed"


# Statuses that no longer hold the space.
RELEASED_STATUSES = frozenset(
    {BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.NO_SHOW}
)
HOLDING_STATUSES = frozenset(set(BookingStatus) - RELEASED_STATUSES)


class Booking(TimestampMixin, Base):
    """A claim on a parking space for the half-open interval [start, end)."""

    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_space_interval", "space_id", "start_time", "end_time"),
        Index("ix_bookings_user_status", "user_id", "status"),
        Index("ix_bookings_owner_status", "owner_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    booking_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("owners.id", ondelete="CASCADE"), nullable=False
    )
    space_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("parking_spaces.id", ondelete="CASCADE"), nullable=False
    )
    vehicle_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("user_vehicles.id", ondelete="RESTRICT"), nullable=False
    )
    promo_code_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("promo_codes.id", ondelete="SET NULL")
    )
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration_hours: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0"), nullable=False
    )
    overtime_charge: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0"), nullable=False
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, name="bookingstatus", values_callable=enum_values),
        default=BookingStatus.PENDING,
        nullable=False,
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="paymentstatus", values_callable=enum_values),
        default=PaymentStatus.PENDING,
        nullable=False,
    )
    verification_code: Mapped[str | None] = mapped_column(String(8))
    check_in_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    check_out_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancellation_reason: Mapped[str | None] = mapped_column(String(500))
    refund_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))

    user: Mapped["User"] = relationship("User")
    owner: Mapped["Owner"] = relationship("Owner")
    space: Mapped["ParkingSpace"] = relationship("ParkingSpace")
    vehicle: Mapped["UserVehicle"] = relationship("UserVehicle")
    promo_code: Mapped["PromoCode | None"] = relationship("PromoCode")
    extensions: Mapped[list["BookingExtension"]] = relationship(
        "BookingExtension",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingExtension.extended_at",
    )
    payments: Mapped[list["Payment"]] = relationship(
        "Payment", back_populates="booking", cascade="all, delete-orphan"
    )
    refunds: Mapped[list["Refund"]] = relationship(
        "Refund", back_populates="booking", cascade="all, delete-orphan"
    )


class BookingExtension(Base):
    """Append-only record of an end-time extension."""

    __tablename__ = "booking_extensions"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    old_end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    new_end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    extension_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    extended_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    booking: Mapped[Booking] = relationship("Booking", back_populates="extensions")
