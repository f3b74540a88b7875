"""Tiered pricing, promo discounts, refunds and overtime for bookings."""

from __future__ import annotations

import datetime
import enum
import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP

from parkshare.core.clock import coerce_utc
from parkshare.core.errors import ValidationFailedError
from parkshare.models import ParkingSpace, PromoCode, PromoType

MONEY_PLACES = Decimal("0.01")
HOUR_PLACES = Decimal("0.0001")
HOURS_PER_DAY = Decimal(24)
HOURS_PER_MONTH = Decimal(24 * 30)
ZERO = Decimal("0.00")


class PricingTier(str, enum.Enum):
    """Rate-card column used to price a duration."""

    HOURLY = "hourly"
    DAILY = "daily"
    MONTHLY = "monthly"


@dataclass(slots=True, frozen=True)
class RateCard:
    """Per-space hourly/daily/monthly rates."""

    hourly_rate: Decimal
    daily_rate: Decimal
    monthly_rate: Decimal

    @classmethod
    def from_space(cls, space: ParkingSpace) -> "RateCard":
        return cls(
            hourly_rate=Decimal(space.hourly_rate or 0),
            daily_rate=Decimal(space.daily_rate or 0),
            monthly_rate=Decimal(space.monthly_rate or 0),
        )


@dataclass(slots=True, frozen=True)
class BasePrice:
    """Result of applying the rate card to a duration."""

    tier: PricingTier
    units: Decimal
    unit_rate: Decimal
    amount: Decimal


@dataclass(slots=True, frozen=True)
class PromoDiscount:
    """Discount produced by a promo code.

    ``free_hours`` promos carry an hours value and a zero ``amount``; the
    booking engine converts hours to money with :func:`resolve_discount_amount`.
    """

    promo_type: PromoType
    amount: Decimal
    free_hours: Decimal | None = None


@dataclass(slots=True, frozen=True)
class OvertimeCharge:
    hours: int
    charge: Decimal


@dataclass(slots=True)
class PricingQuote:
    """Aggregate pricing output for a requested interval."""

    duration_hours: Decimal
    tier: PricingTier
    base_price: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    promo_code: str | None = None


def _to_money(value: Decimal | float | str | int) -> Decimal:
    return Decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def _ceil(value: Decimal) -> Decimal:
    return value.to_integral_value(rounding=ROUND_CEILING)


def duration_hours(start: datetime.datetime, end: datetime.datetime) -> Decimal:
    """Exact length of ``[start, end)`` in hours."""
    delta = coerce_utc(end) - coerce_utc(start)
    microseconds = Decimal(
        (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
    )
    return microseconds / Decimal(3_600_000_000)


def calculate_base_price(rate_card: RateCard, hours: Decimal) -> BasePrice:
    """Apply the tiered rate card to a duration.

    Up to 24 hours is billed hourly, up to 30 days per started day and
    anything longer per started 30-day month.
    """
    if hours <= 0:
        raise ValidationFailedError("Duration must be positive")
    if hours <= HOURS_PER_DAY:
        units = hours
        return BasePrice(
            tier=PricingTier.HOURLY,
            units=units,
            unit_rate=rate_card.hourly_rate,
            amount=_to_money(rate_card.hourly_rate * units),
        )
    if hours <= HOURS_PER_MONTH:
        units = _ceil(hours / HOURS_PER_DAY)
        return BasePrice(
            tier=PricingTier.DAILY,
            units=units,
            unit_rate=rate_card.daily_rate,
            amount=_to_money(rate_card.daily_rate * units),
        )
    units = _ceil(hours / HOURS_PER_MONTH)
    return BasePrice(
        tier=PricingTier.MONTHLY,
        units=units,
        unit_rate=rate_card.monthly_rate,
        amount=_to_money(rate_card.monthly_rate * units),
    )


def validate_promo(promo: PromoCode, *, now: datetime.datetime) -> None:
    """Reject promo codes that are inactive, out of window or used up."""
    if not promo.is_active:
        raise ValidationFailedError("Promo code is not active")
    current = coerce_utc(now)
    if current < coerce_utc(promo.valid_from) or current > coerce_utc(promo.valid_to):
        raise ValidationFailedError("Promo code is expired or not yet valid")
    if (
        promo.usage_limit_total is not None
        and promo.usage_count >= promo.usage_limit_total
    ):
        raise ValidationFailedError("Promo code has reached its usage limit")


def calculate_promo_discount(promo: PromoCode, base_price: Decimal) -> PromoDiscount:
    value = Decimal(promo.discount_value)
    if promo.promo_type is PromoType.PERCENTAGE:
        amount = _to_money(base_price * value / Decimal(100))
        if promo.max_discount_amount is not None:
            amount = min(amount, _to_money(promo.max_discount_amount))
        return PromoDiscount(promo_type=promo.promo_type, amount=amount)
    if promo.promo_type is PromoType.FIXED_AMOUNT:
        return PromoDiscount(
            promo_type=promo.promo_type, amount=min(_to_money(value), base_price)
        )
    return PromoDiscount(promo_type=promo.promo_type, amount=ZERO, free_hours=value)


def resolve_discount_amount(
    discount: PromoDiscount, *, base_price: Decimal, rate_card: RateCard
) -> Decimal:
    """Monetary discount, converting free hours at the hourly rate."""
    if discount.free_hours is None:
        return discount.amount
    amount = _to_money(discount.free_hours * rate_card.hourly_rate)
    return min(amount, base_price)


def final_price(base_price: Decimal, discount: Decimal) -> Decimal:
    return max(ZERO, _to_money(base_price - discount))


def quote(
    rate_card: RateCard,
    start: datetime.datetime,
    end: datetime.datetime,
    *,
    promo: PromoCode | None = None,
    now: datetime.datetime | None = None,
) -> PricingQuote:
    """Price ``[start, end)`` against ``rate_card`` with an optional promo."""
    if coerce_utc(end) <= coerce_utc(start):
        raise ValidationFailedError("End time must be after start time")
    hours = duration_hours(start, end)
    base = calculate_base_price(rate_card, hours)
    discount = ZERO
    if promo is not None:
        validate_promo(promo, now=now or datetime.datetime.now(datetime.UTC))
        discount = resolve_discount_amount(
            calculate_promo_discount(promo, base.amount),
            base_price=base.amount,
            rate_card=rate_card,
        )
    return PricingQuote(
        duration_hours=hours.quantize(HOUR_PLACES, rounding=ROUND_HALF_UP),
        tier=base.tier,
        base_price=base.amount,
        discount_amount=discount,
        total_amount=final_price(base.amount, discount),
        promo_code=promo.code if promo is not None else None,
    )


def refund_percentage(
    start_time: datetime.datetime,
    *,
    now: datetime.datetime,
    full_refund_hours: int = 48,
    partial_refund_hours: int = 24,
    partial_percentage: int = 50,
) -> int:
    """Share of the total refunded when cancelling at ``now``.

    Thresholds are strict: cancelling exactly ``full_refund_hours`` before the
    start falls into the partial tier.
    """
    until_start = coerce_utc(start_time) - coerce_utc(now)
    if until_start <= datetime.timedelta(0):
        return 0
    if until_start > datetime.timedelta(hours=full_refund_hours):
        return 100
    if until_start > datetime.timedelta(hours=partial_refund_hours):
        return partial_percentage
    return 0


def refund_amount(total: Decimal, percentage: int) -> Decimal:
    return _to_money(Decimal(total) * Decimal(percentage) / Decimal(100))


def calculate_overtime(
    end_time: datetime.datetime,
    checked_out_at: datetime.datetime,
    *,
    hourly_rate: Decimal,
    multiplier: Decimal,
) -> OvertimeCharge | None:
    """Penalty for holding the space past ``end_time``, per started hour."""
    overtime = duration_hours(end_time, checked_out_at)
    if overtime <= 0:
        return None
    hours = math.ceil(overtime)
    return OvertimeCharge(
        hours=hours,
        charge=_to_money(Decimal(hours) * Decimal(hourly_rate) * Decimal(multiplier)),
    )


__all__ = [
    "BasePrice",
    "MONEY_PLACES",
    "OvertimeCharge",
    "PricingQuote",
    "PricingTier",
    "PromoDiscount",
    "RateCard",
    "calculate_base_price",
    "calculate_overtime",
    "calculate_promo_discount",
    "duration_hours",
    "final_price",
    "quote",
    "refund_amount",
    "refund_percentage",
    "resolve_discount_amount",
    "validate_promo",
]
