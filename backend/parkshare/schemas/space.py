"""Schemas for parking spaces, search and availability checks."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from parkshare.models.parking_space import BookingMode, SpaceStatus, SpaceType


class ParkingSpaceRead(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    space_number: str
    space_type: SpaceType
    description: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    hourly_rate: Decimal
    daily_rate: Decimal
    monthly_rate: Decimal
    status: SpaceStatus
    is_available: bool
    booking_mode: BookingMode
    has_ev_charging: bool

    model_config = ConfigDict(from_attributes=True)


class ParkingSpaceSearchHit(ParkingSpaceRead):
    distance_km: float | None = None


class ParkingSpaceSearchPage(BaseModel):
    items: list[ParkingSpaceSearchHit]
    page: int
    limit: int
    total: int
    total_pages: int


class PricingUpdate(BaseModel):
    hourly_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    daily_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    monthly_rate: Decimal | None = Field(default=None, ge=Decimal("0"))

    @model_validator(mode="after")
    def _require_rate(self) -> "PricingUpdate":
        if self.hourly_rate is None and self.daily_rate is None and self.monthly_rate is None:
            raise ValueError("At least one rate must be provided")
        return self


class PriceEstimate(BaseModel):
    duration_hours: Decimal
    tier: str
    base_price: Decimal
    total_amount: Decimal


class ConflictingInterval(BaseModel):
    start_time: datetime
    end_time: datetime


class SpaceAvailabilityCheck(BaseModel):
    space_id: uuid.UUID
    is_available: bool
    reason: str | None = None
    conflict: ConflictingInterval | None = None
    booking_mode: BookingMode | None = None
    price_estimate: PriceEstimate | None = None
