"""Booking lifecycle: creation, payment, cancellation, check-in/out, extension."""
from __future__ import annotations

import logging
import math
import secrets
import string
import time
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from parkshare.core.clock import coerce_utc, utcnow
from parkshare.core.config import get_settings
from parkshare.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    OperationNotAllowedError,
    ValidationFailedError,
)
from parkshare.models import (
    RELEASED_STATUSES,
    Booking,
    BookingExtension,
    BookingStatus,
    Owner,
    ParkingSpace,
    Payment,
    PaymentRecordStatus,
    PaymentStatus,
    Refund,
    RefundStatus,
    User,
    UserVehicle,
)
from parkshare.services import (
    conflict_service,
    pricing_service,
    promo_code_service,
    space_service,
)
from parkshare.services.pricing_service import OvertimeCharge, RateCard

logger = logging.getLogger(__name__)

_ALLOWED_STATUS_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {
        BookingStatus.ACTIVE,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    },
    BookingStatus.ACTIVE: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
    BookingStatus.NO_SHOW: set(),
}

_ALLOWED_PAYMENT_TRANSITIONS: dict[PaymentStatus, set[PaymentStatus]] = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.PAID},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED, PaymentStatus.PARTIALLY_REFUNDED},
    PaymentStatus.REFUNDED: set(),
    PaymentStatus.PARTIALLY_REFUNDED: set(),
}

_RESCHEDULABLE = {BookingStatus.PENDING, BookingStatus.CONFIRMED}
_EXTENDABLE = {BookingStatus.CONFIRMED, BookingStatus.ACTIVE}
_PAYABLE = {BookingStatus.PENDING, BookingStatus.CONFIRMED}

_BASE36 = string.digits + string.ascii_uppercase

DEFAULT_CANCELLATION_REASON = "User cancelled"


@dataclass(slots=True)
class CancellationOutcome:
    refund_amount: Decimal
    refund_percentage: int
    status: str


@dataclass(slots=True)
class ExtensionOutcome:
    old_end_time: datetime
    new_end_time: datetime
    additional_charge: Decimal


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits)) or "0"


def generate_booking_number() -> str:
    """``BK-<base36 millis>-<5 random chars>``; uniqueness is enforced by the DB."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"BK-{_to_base36(time.time_ns() // 1_000_000)}-{suffix}"


def generate_verification_code() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


def _validate_status_transition(current: BookingStatus, target: BookingStatus) -> None:
    allowed = _ALLOWED_STATUS_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise OperationNotAllowedError(
            f"Invalid status transition from {current.value} to {target.value}"
        )


def _validate_payment_transition(current: PaymentStatus, target: PaymentStatus) -> None:
    allowed = _ALLOWED_PAYMENT_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise OperationNotAllowedError(
            f"Invalid payment status transition from {current.value} to {target.value}"
        )


def _transition(booking: Booking, target: BookingStatus) -> None:
    _validate_status_transition(booking.status, target)
    booking.status = target


def _transition_payment(booking: Booking, target: PaymentStatus) -> None:
    _validate_payment_transition(booking.payment_status, target)
    booking.payment_status = target


def _validate_times(start_time: datetime, end_time: datetime, *, now: datetime) -> None:
    if end_time <= start_time:
        raise ValidationFailedError("End time must be after start time")
    if start_time < now:
        raise ValidationFailedError("Start time cannot be in the past")


def _base_booking_query():
    return select(Booking).options(selectinload(Booking.extensions))


async def get_booking(session: AsyncSession, booking_id: uuid.UUID) -> Booking | None:
    stmt = (
        _base_booking_query()
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalars().unique().one_or_none()


async def _reload(session: AsyncSession, booking: Booking) -> Booking:
    refreshed = await get_booking(session, booking.id)
    if refreshed is None:  # pragma: no cover - deleted concurrently
        raise NotFoundError("Booking not found")
    return refreshed


async def _is_space_owner(session: AsyncSession, booking: Booking, user: User) -> bool:
    result = await session.execute(
        select(Owner.user_id).where(Owner.id == booking.owner_id)
    )
    return result.scalar_one_or_none() == user.id


async def _ensure_can_view(session: AsyncSession, booking: Booking, user: User) -> None:
    if user.is_admin or booking.user_id == user.id:
        return
    if not await _is_space_owner(session, booking, user):
        raise ForbiddenError("Not authorized to access this booking")


def _ensure_booker(booking: Booking, user: User, action: str) -> None:
    if not (user.is_admin or booking.user_id == user.id):
        raise ForbiddenError(f"Not authorized to {action} this booking")


async def _ensure_space_staff(
    session: AsyncSession, booking: Booking, user: User, action: str
) -> None:
    if user.is_admin:
        return
    if not await _is_space_owner(session, booking, user):
        raise ForbiddenError(f"Only the space owner can {action} this booking")


async def get_booking_for_user(
    session: AsyncSession, *, booking_id: uuid.UUID, user: User
) -> Booking:
    booking = await get_booking(session, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")
    await _ensure_can_view(session, booking, user)
    return booking


async def list_bookings(
    session: AsyncSession,
    *,
    user: User,
    status: BookingStatus | None = None,
    payment_status: PaymentStatus | None = None,
    space_id: uuid.UUID | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[Sequence[Booking], int]:
    """Bookings visible to ``user``, newest first, with the unpaged total."""
    filters = []
    if not user.is_admin:
        owned = select(Owner.id).where(Owner.user_id == user.id)
        filters.append(or_(Booking.user_id == user.id, Booking.owner_id.in_(owned)))
    if status is not None:
        filters.append(Booking.status == status)
    if payment_status is not None:
        filters.append(Booking.payment_status == payment_status)
    if space_id is not None:
        filters.append(Booking.space_id == space_id)

    total = (
        await session.execute(select(func.count()).select_from(Booking).where(*filters))
    ).scalar_one()
    stmt = (
        _base_booking_query()
        .where(*filters)
        .order_by(Booking.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return result.scalars().unique().all(), total


async def _load_verified_vehicle(
    session: AsyncSession, *, vehicle_id: uuid.UUID, user: User
) -> UserVehicle:
    vehicle = await session.get(UserVehicle, vehicle_id)
    if vehicle is None:
        raise NotFoundError("Vehicle not found")
    if vehicle.user_id != user.id:
        raise ForbiddenError("Vehicle does not belong to you")
    if not vehicle.is_verified:
        raise ValidationFailedError("Vehicle must be verified before booking")
    return vehicle


async def _ensure_no_conflict(
    session: AsyncSession,
    *,
    space_id: uuid.UUID,
    start_time: datetime,
    end_time: datetime,
    exclude_booking_id: uuid.UUID | None = None,
) -> None:
    conflict = await conflict_service.find_conflicting_booking(
        session,
        space_id=space_id,
        start_time=start_time,
        end_time=end_time,
        exclude_booking_id=exclude_booking_id,
    )
    if conflict is not None:
        raise ConflictError(
            "Space is already booked for the selected time",
            conflict_service.describe_conflict(conflict),
        )


async def _commit_booking_write(session: AsyncSession) -> None:
    """Commit, mapping an exclusion-constraint violation to a booking conflict."""
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("Space is already booked for the selected time") from exc


async def create_booking(
    session: AsyncSession,
    *,
    user: User,
    space_id: uuid.UUID,
    vehicle_id: uuid.UUID,
    start_time: datetime,
    end_time: datetime,
    promo_code: str | None = None,
    now: datetime | None = None,
) -> Booking:
    """Reserve ``[start_time, end_time)`` on a space in ``pending`` status."""
    current = coerce_utc(now or utcnow())
    start = coerce_utc(start_time)
    end = coerce_utc(end_time)
    _validate_times(start, end, now=current)

    space = await conflict_service.lock_space(session, space_id)
    if space is None:
        raise NotFoundError("Parking space not found")
    if not space_service.is_bookable(space):
        raise OperationNotAllowedError("Parking space is not available")
    await _load_verified_vehicle(session, vehicle_id=vehicle_id, user=user)
    await _ensure_no_conflict(session, space_id=space.id, start_time=start, end_time=end)

    rate_card = RateCard.from_space(space)
    hours = pricing_service.duration_hours(start, end)
    base = pricing_service.calculate_base_price(rate_card, hours)
    discount = Decimal("0.00")
    promo = None
    if promo_code:
        promo = await promo_code_service.resolve_for_booking(session, promo_code, now=current)
        discount = pricing_service.resolve_discount_amount(
            pricing_service.calculate_promo_discount(promo, base.amount),
            base_price=base.amount,
            rate_card=rate_card,
        )
        await promo_code_service.claim_usage(session, promo)

    booking = Booking(
        booking_number=generate_booking_number(),
        user_id=user.id,
        owner_id=space.owner_id,
        space_id=space.id,
        vehicle_id=vehicle_id,
        promo_code_id=promo.id if promo is not None else None,
        start_time=start,
        end_time=end,
        duration_hours=hours.quantize(pricing_service.HOUR_PLACES),
        base_price=base.amount,
        discount_amount=discount,
        overtime_charge=Decimal("0.00"),
        total_amount=pricing_service.final_price(base.amount, discount),
        currency=get_settings().default_currency,
        status=BookingStatus.PENDING,
        payment_status=PaymentStatus.PENDING,
        verification_code=generate_verification_code(),
    )
    session.add(booking)
    if promo is not None:
        promo_code_service.record_usage(
            session, promo=promo, booking=booking, user=user, discount=discount
        )
    await _commit_booking_write(session)
    logger.info(
        "Booking %s created on space %s (%s tier, total %s)",
        booking.booking_number,
        space.id,
        base.tier.value,
        booking.total_amount,
    )
    return await _reload(session, booking)


async def reschedule_booking(
    session: AsyncSession,
    *,
    booking: Booking,
    user: User,
    vehicle_id: uuid.UUID | None = None,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    now: datetime | None = None,
) -> Booking:
    """Move a pending/confirmed booking and reprice it.

    The discount granted at creation is kept, capped at the new base price.
    """
    _ensure_booker(booking, user, "update")
    if booking.status not in _RESCHEDULABLE:
        raise OperationNotAllowedError(
            "Only pending or confirmed bookings can be updated"
        )
    current = coerce_utc(now or utcnow())

    if vehicle_id is not None and vehicle_id != booking.vehicle_id:
        await _load_verified_vehicle(session, vehicle_id=vehicle_id, user=user)

    repriced = None
    if start_time is not None or end_time is not None:
        start = coerce_utc(start_time or booking.start_time)
        end = coerce_utc(end_time or booking.end_time)
        _validate_times(start, end, now=current)
        space = await conflict_service.lock_space(session, booking.space_id)
        if space is None:
            raise NotFoundError("Parking space not found")
        await _ensure_no_conflict(
            session,
            space_id=booking.space_id,
            start_time=start,
            end_time=end,
            exclude_booking_id=booking.id,
        )
        hours = pricing_service.duration_hours(start, end)
        base = pricing_service.calculate_base_price(RateCard.from_space(space), hours)
        repriced = (start, end, hours, base.amount)

    if vehicle_id is not None:
        booking.vehicle_id = vehicle_id
    if repriced is not None:
        start, end, hours, base_amount = repriced
        booking.start_time = start
        booking.end_time = end
        booking.duration_hours = hours.quantize(pricing_service.HOUR_PLACES)
        booking.base_price = base_amount
        booking.discount_amount = min(Decimal(booking.discount_amount), base_amount)
        booking.total_amount = pricing_service.final_price(
            base_amount, booking.discount_amount
        )

    await _commit_booking_write(session)
    logger.info("Booking %s rescheduled", booking.booking_number)
    return await _reload(session, booking)


async def record_payment(
    session: AsyncSession,
    *,
    booking: Booking,
    user: User,
    amount: Decimal,
    payment_method: str = "card",
) -> tuple[Booking, Payment]:
    """Settle the booking total and confirm the booking."""
    _ensure_booker(booking, user, "pay for")
    if booking.payment_status == PaymentStatus.PAID:
        raise ConflictError("Booking is already paid")
    if booking.status not in _PAYABLE:
        raise OperationNotAllowedError(
            "Only pending or confirmed bookings can be paid"
        )
    if Decimal(amount) != Decimal(booking.total_amount):
        raise ValidationFailedError(
            "Payment amount does not match booking total",
            {"expected": str(booking.total_amount), "received": str(amount)},
        )

    payment = Payment(
        booking_id=booking.id,
        user_id=booking.user_id,
        amount=Decimal(booking.total_amount),
        currency=booking.currency,
        payment_method=payment_method,
        status=PaymentRecordStatus.SUCCEEDED,
        transaction_reference=f"TX-{uuid.uuid4().hex[:24].upper()}",
    )
    session.add(payment)
    _transition_payment(booking, PaymentStatus.PAID)
    if booking.status == BookingStatus.PENDING:
        _transition(booking, BookingStatus.CONFIRMED)
    await session.commit()
    await session.refresh(payment)
    logger.info(
        "Booking %s paid (%s %s); status %s",
        booking.booking_number,
        payment.amount,
        payment.currency,
        booking.status.value,
    )
    return await _reload(session, booking), payment


async def _successful_payment(session: AsyncSession, booking: Booking) -> Payment | None:
    result = await session.execute(
        select(Payment)
        .where(
            Payment.booking_id == booking.id,
            Payment.status == PaymentRecordStatus.SUCCEEDED,
        )
        .order_by(Payment.created_at.desc())
        .limit(1)
    )
    return result.scalars().first()


async def cancel_booking(
    session: AsyncSession,
    *,
    booking: Booking,
    user: User,
    reason: str | None = None,
    now: datetime | None = None,
) -> tuple[Booking, CancellationOutcome]:
    """Cancel a booking that is still held and work out the refund due.

    Bookings that have already started (including checked-in ones) refund 0%.
    """
    await _ensure_can_view(session, booking, user)
    if booking.status in RELEASED_STATUSES:
        raise ConflictError(f"Booking is already {booking.status.value}")

    settings = get_settings()
    current = coerce_utc(now or utcnow())
    percentage = pricing_service.refund_percentage(
        booking.start_time,
        now=current,
        full_refund_hours=settings.full_refund_hours,
        partial_refund_hours=settings.partial_refund_hours,
        partial_percentage=settings.partial_refund_percentage,
    )
    amount = pricing_service.refund_amount(booking.total_amount, percentage)

    _transition(booking, BookingStatus.CANCELLED)
    booking.cancelled_at = current
    booking.cancellation_reason = reason or DEFAULT_CANCELLATION_REASON
    booking.refund_amount = amount

    refund_status = "not_applicable"
    if booking.payment_status == PaymentStatus.PAID and amount > 0:
        payment = await _successful_payment(session, booking)
        session.add(
            Refund(
                booking_id=booking.id,
                payment_id=payment.id if payment is not None else None,
                user_id=booking.user_id,
                initiated_by=user.id,
                amount=amount,
                refund_percentage=percentage,
                reason=booking.cancellation_reason,
                status=RefundStatus.PENDING,
            )
        )
        _transition_payment(
            booking,
            PaymentStatus.REFUNDED if percentage == 100 else PaymentStatus.PARTIALLY_REFUNDED,
        )
        refund_status = "pending"

    await session.commit()
    logger.info(
        "Booking %s cancelled; refund %s%% (%s)",
        booking.booking_number,
        percentage,
        amount,
    )
    outcome = CancellationOutcome(
        refund_amount=amount, refund_percentage=percentage, status=refund_status
    )
    return await _reload(session, booking), outcome


async def check_in(
    session: AsyncSession,
    *,
    booking: Booking,
    user: User,
    verification_code: str | None = None,
    now: datetime | None = None,
) -> Booking:
    """Activate a confirmed booking inside its check-in window.

    Arriving after the window closes marks the booking ``no_show`` and the
    check-in is rejected.
    """
    await _ensure_space_staff(session, booking, user, "check in")
    if booking.status != BookingStatus.CONFIRMED:
        raise OperationNotAllowedError("Only confirmed bookings can be checked in")

    current = coerce_utc(now or utcnow())
    window = timedelta(minutes=get_settings().check_in_window_minutes)
    start = coerce_utc(booking.start_time)
    if current < start - window:
        raise OperationNotAllowedError("Check-in window has not opened yet")
    if current > start + window:
        _transition(booking, BookingStatus.NO_SHOW)
        await session.commit()
        logger.info("Booking %s marked no_show on late check-in", booking.booking_number)
        raise OperationNotAllowedError(
            "Check-in window has passed. Booking marked as no-show"
        )
    if verification_code is not None and verification_code != booking.verification_code:
        raise ValidationFailedError("Invalid verification code")

    _transition(booking, BookingStatus.ACTIVE)
    booking.check_in_time = current
    await session.commit()
    logger.info("Booking %s checked in", booking.booking_number)
    return await _reload(session, booking)


async def check_out(
    session: AsyncSession,
    *,
    booking: Booking,
    user: User,
    now: datetime | None = None,
) -> tuple[Booking, OvertimeCharge | None]:
    """Complete an active booking, billing overtime past its end."""
    await _ensure_space_staff(session, booking, user, "check out")
    if booking.status != BookingStatus.ACTIVE:
        raise OperationNotAllowedError("Only active bookings can be checked out")

    current = coerce_utc(now or utcnow())
    space = await session.get(ParkingSpace, booking.space_id)
    hourly_rate = Decimal(space.hourly_rate) if space is not None else Decimal("0")
    overtime = pricing_service.calculate_overtime(
        booking.end_time,
        current,
        hourly_rate=hourly_rate,
        multiplier=get_settings().overtime_multiplier,
    )
    if overtime is not None:
        booking.overtime_charge = Decimal(booking.overtime_charge) + overtime.charge
        booking.total_amount = Decimal(booking.total_amount) + overtime.charge

    _transition(booking, BookingStatus.COMPLETED)
    booking.check_out_time = current
    await session.commit()
    logger.info(
        "Booking %s checked out; overtime %s",
        booking.booking_number,
        overtime.charge if overtime is not None else "none",
    )
    return await _reload(session, booking), overtime


async def extend_booking(
    session: AsyncSession,
    *,
    booking: Booking,
    user: User,
    new_end_time: datetime,
    now: datetime | None = None,
) -> tuple[Booking, ExtensionOutcome]:
    """Push the end of a confirmed/active booking out, pricing only the delta."""
    _ensure_booker(booking, user, "extend")
    if booking.status not in _EXTENDABLE:
        raise OperationNotAllowedError(
            "Only confirmed or active bookings can be extended"
        )

    current = coerce_utc(now or utcnow())
    old_end = coerce_utc(booking.end_time)
    new_end = coerce_utc(new_end_time)
    if new_end <= old_end:
        raise ValidationFailedError("New end time must be after current end time")
    if new_end <= current:
        raise ValidationFailedError("New end time must be in the future")

    space = await conflict_service.lock_space(session, booking.space_id)
    if space is None:
        raise NotFoundError("Parking space not found")
    await _ensure_no_conflict(
        session,
        space_id=booking.space_id,
        start_time=old_end,
        end_time=new_end,
        exclude_booking_id=booking.id,
    )

    extra = pricing_service.calculate_base_price(
        RateCard.from_space(space), pricing_service.duration_hours(old_end, new_end)
    ).amount
    booking.end_time = new_end
    booking.duration_hours = pricing_service.duration_hours(
        booking.start_time, new_end
    ).quantize(pricing_service.HOUR_PLACES)
    booking.base_price = Decimal(booking.base_price) + extra
    booking.total_amount = Decimal(booking.total_amount) + extra
    session.add(
        BookingExtension(
            booking_id=booking.id,
            old_end_time=old_end,
            new_end_time=new_end,
            extension_price=extra,
            extended_at=current,
        )
    )
    await _commit_booking_write(session)
    logger.info(
        "Booking %s extended to %s (+%s)",
        booking.booking_number,
        new_end.isoformat(),
        extra,
    )
    outcome = ExtensionOutcome(
        old_end_time=old_end, new_end_time=new_end, additional_charge=extra
    )
    return await _reload(session, booking), outcome


async def mark_no_shows(
    session: AsyncSession, *, now: datetime | None = None
) -> list[Booking]:
    """Sweep confirmed bookings whose check-in window has elapsed."""
    current = coerce_utc(now or utcnow())
    cutoff = current - timedelta(minutes=get_settings().check_in_window_minutes)
    result = await session.execute(
        select(Booking).where(
            Booking.status == BookingStatus.CONFIRMED,
            Booking.start_time < cutoff,
        )
    )
    bookings = list(result.scalars().all())
    for booking in bookings:
        _transition(booking, BookingStatus.NO_SHOW)
    await session.commit()
    if bookings:
        logger.info("No-show sweep marked %s booking(s)", len(bookings))
    return bookings


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0
