"""Parking space listings and their rate cards."""

from __future__ import annotations

import enum
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Enum, Float, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parkshare.db.base import Base
from parkshare.models.mixins import TimestampMixin, enum_values

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from parkshare.models.owner import Owner
    from parkshare.models.space_availability import SpaceAvailability


class SpaceType(str, enum.Enum):
    """Physical kind of parking space."""

    OUTDOOR = "outdoor"
    COVERED = "covered"
    GARAGE = "garage"
    DRIVEWAY = "driveway"
    CARPORT = "carport"
    STREET = "street"


class SpaceStatus(str, enum.Enum):
    """Listing status controlled by the owner."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"
    UNAVAILABLE = "unavailable"


class BookingMode(str, enum.Enum):
    """How booking requests for a space are accepted."""

    INSTANT = "instant"
    REQUEST = "request"
    BOTH = "both"


class ParkingSpace(TimestampMixin, Base):
    """A bookable space; the rate columns form its rate card."""

    __tablename__ = "parking_spaces"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("owners.id", ondelete="CASCADE"), nullable=False, index=True
    )
    space_number: Mapped[str] = mapped_column(String(64), nullable=False)
    space_type: Mapped[SpaceType] = mapped_column(
        Enum(SpaceType, name="spacetype", values_callable=enum_values),
        default=SpaceType.OUTDOOR,
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(String(1024))
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)
    hourly_rate: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0"), nullable=False
    )
    daily_rate: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0"), nullable=False
    )
    monthly_rate: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0"), nullable=False
    )
    status: Mapped[SpaceStatus] = mapped_column(
        Enum(SpaceStatus, name="spacestatus", values_callable=enum_values),
        default=SpaceStatus.ACTIVE,
        nullable=False,
    )
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    booking_mode: Mapped[BookingMode] = mapped_column(
        Enum(BookingMode, name="bookingmode", values_callable=enum_values),
        default=BookingMode.INSTANT,
        nullable=False,
    )
    has_ev_charging: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    owner: Mapped["Owner"] = relationship("Owner", back_populates="spaces")
    availability_windows: Mapped[list["SpaceAvailability"]] = relationship(
        "SpaceAvailability", back_populates="space", cascade="all, delete-orphan"
    )
