"""Pydantic schemas for bookings."""
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parkshare.core.clock import coerce_utc
from parkshare.models.booking import BookingStatus, PaymentStatus
from parkshare.models.payment import PaymentRecordStatus


class BookingCreate(BaseModel):
    """Payload for booking a space."""

    space_id: uuid.UUID
    vehicle_id: uuid.UUID
    start_time: datetime
    end_time: datetime
    promo_code: str | None = Field(default=None, max_length=64)

    @field_validator("promo_code")
    @classmethod
    def _normalize_code(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().upper()
        return value or None


class BookingUpdate(BaseModel):
    """Reschedule payload; omitted fields keep their current value."""

    vehicle_id: uuid.UUID | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None


class BookingExtensionRead(BaseModel):
    id: uuid.UUID
    old_end_time: datetime
    new_end_time: datetime
    extension_price: Decimal
    extended_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("old_end_time", "new_end_time", "extended_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return coerce_utc(value)


class BookingRead(BaseModel):
    """Serialized booking representation."""

    id: uuid.UUID
    booking_number: str
    user_id: uuid.UUID
    owner_id: uuid.UUID
    space_id: uuid.UUID
    vehicle_id: uuid.UUID
    promo_code_id: uuid.UUID | None = None
    start_time: datetime
    end_time: datetime
    duration_hours: Decimal
    base_price: Decimal
    discount_amount: Decimal
    overtime_charge: Decimal
    total_amount: Decimal
    currency: str
    status: BookingStatus
    payment_status: PaymentStatus
    check_in_time: datetime | None = None
    check_out_time: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    refund_amount: Decimal | None = None
    extensions: list[BookingExtensionRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    # SQLite returns naive datetimes; every stored instant is UTC.
    @field_validator(
        "start_time",
        "end_time",
        "check_in_time",
        "check_out_time",
        "cancelled_at",
        "created_at",
        "updated_at",
    )
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        return coerce_utc(value) if value is not None else None


class BookingDetail(BookingRead):
    """Booking as seen by its booker, including the check-in verification code."""

    verification_code: str | None = None


class BookingPage(BaseModel):
    items: list[BookingRead]
    page: int
    limit: int
    total: int
    total_pages: int


class BookingCancelRequest(BaseModel):
    cancellation_reason: str | None = Field(default=None, max_length=500)


class RefundSummary(BaseModel):
    refund_amount: Decimal
    refund_percentage: int
    status: Literal["pending", "not_applicable"]


class BookingCancelResponse(BaseModel):
    booking: BookingRead
    refund: RefundSummary


class BookingCheckInRequest(BaseModel):
    verification_code: str | None = Field(default=None, max_length=8)


class OvertimeSummary(BaseModel):
    hours: int
    charge: Decimal
    message: str = "Overtime charges applied"


class BookingCheckOutResponse(BaseModel):
    booking: BookingRead
    overtime: OvertimeSummary | None = None


class BookingExtendRequest(BaseModel):
    new_end_time: datetime


class ExtensionSummary(BaseModel):
    old_end_time: datetime
    new_end_time: datetime
    additional_charge: Decimal


class BookingExtendResponse(BaseModel):
    booking: BookingRead
    extension: ExtensionSummary


class BookingPaymentRequest(BaseModel):
    """Simulated settlement; the amount must match the booking total."""

    amount: Decimal = Field(ge=Decimal("0"))
    payment_method: str = Field(default="card", max_length=32)


class PaymentRead(BaseModel):
    id: uuid.UUID
    booking_id: uuid.UUID
    amount: Decimal
    currency: str
    payment_method: str
    status: PaymentRecordStatus
    transaction_reference: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingPaymentResponse(BaseModel):
    booking: BookingRead
    payment: PaymentRead


class NoShowSweepResult(BaseModel):
    marked_count: int
    booking_numbers: list[str]
