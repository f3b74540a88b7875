"""Schemas for promo codes."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from parkshare.models.promo_code import PromoType


class PromoCodeCreate(BaseModel):
    code: str = Field(min_length=3, max_length=64)
    promo_type: PromoType
    discount_value: Decimal = Field(gt=Decimal("0"))
    max_discount_amount: Decimal | None = Field(default=None, gt=Decimal("0"))
    valid_from: datetime
    valid_to: datetime
    usage_limit_total: int | None = Field(default=None, ge=1)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def _check(self) -> "PromoCodeCreate":
        if self.valid_to <= self.valid_from:
            raise ValueError("valid_to must be after valid_from")
        if self.promo_type is PromoType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("Percentage discounts cannot exceed 100")
        return self


class PromoCodeRead(BaseModel):
    id: uuid.UUID
    code: str
    promo_type: PromoType
    discount_value: Decimal
    max_discount_amount: Decimal | None = None
    valid_from: datetime
    valid_to: datetime
    usage_limit_total: int | None = None
    usage_count: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class PromoCodeValidateRequest(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    booking_amount: Decimal = Field(ge=Decimal("0"), decimal_places=2)


class PromoDiscountPreview(BaseModel):
    code: str
    promo_type: PromoType
    discount_value: Decimal
    discount_amount: Decimal
    free_hours: Decimal | None = None
    max_discount_amount: Decimal | None = None


class PromoCodeValidation(BaseModel):
    valid: bool = True
    promo_code: PromoDiscountPreview


class PromoCodeUsageRead(BaseModel):
    id: uuid.UUID
    booking_id: uuid.UUID
    user_id: uuid.UUID
    discount_applied: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PromoCodeUsagePage(BaseModel):
    code: str
    usage_count: int
    usage_limit_total: int | None = None
    total_discount_given: Decimal
    items: list[PromoCodeUsageRead]
    page: int
    limit: int
    total: int
    total_pages: int
