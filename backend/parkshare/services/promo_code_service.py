"""Promo code storage and usage accounting."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from parkshare.core.clock import utcnow
from parkshare.core.errors import ConflictError, NotFoundError, ValidationFailedError
from parkshare.models import Booking, PromoCode, PromoCodeUsage, User
from parkshare.schemas.promo_code import PromoCodeCreate
from parkshare.services import pricing_service
from parkshare.services.pricing_service import PromoDiscount

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PromoValidation:
    promo: PromoCode
    discount: PromoDiscount


@dataclass(slots=True)
class UsageHistory:
    promo: PromoCode
    items: list[PromoCodeUsage]
    total: int
    total_discount_given: Decimal


async def get_promo_code(session: AsyncSession, code: str) -> PromoCode | None:
    result = await session.execute(
        select(PromoCode).where(PromoCode.code == code.strip().upper())
    )
    return result.scalar_one_or_none()


async def lookup_promo_code(session: AsyncSession, code: str) -> PromoCode:
    promo = await get_promo_code(session, code)
    if promo is None:
        raise NotFoundError("Promo code not found")
    return promo


async def create_promo_code(
    session: AsyncSession, payload: PromoCodeCreate
) -> PromoCode:
    if await get_promo_code(session, payload.code) is not None:
        raise ConflictError("Promo code already exists", {"code": payload.code})
    promo = PromoCode(**payload.model_dump())
    session.add(promo)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("Promo code already exists", {"code": payload.code}) from exc
    await session.refresh(promo)
    logger.info("Promo code %s created (%s)", promo.code, promo.promo_type.value)
    return promo


async def resolve_for_booking(
    session: AsyncSession, code: str, *, now: datetime
) -> PromoCode:
    """Load a promo code and reject it unless it may be applied at ``now``."""
    promo = await get_promo_code(session, code)
    if promo is None:
        raise ValidationFailedError("Invalid promo code", {"promo_code": code})
    pricing_service.validate_promo(promo, now=now)
    return promo


async def claim_usage(session: AsyncSession, promo: PromoCode) -> None:
    """Atomically consume one use of ``promo`` inside the caller's transaction.

    The guard lives in the UPDATE itself so concurrent bookings cannot push
    ``usage_count`` past ``usage_limit_total``.
    """
    stmt = (
        update(PromoCode)
        .where(
            PromoCode.id == promo.id,
            or_(
                PromoCode.usage_limit_total.is_(None),
                PromoCode.usage_count < PromoCode.usage_limit_total,
            ),
        )
        .values(usage_count=PromoCode.usage_count + 1)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    if result.rowcount == 0:
        raise ValidationFailedError("Promo code has reached its usage limit")


def record_usage(
    session: AsyncSession,
    *,
    promo: PromoCode,
    booking: Booking,
    user: User,
    discount: Decimal,
) -> PromoCodeUsage:
    """Add the redemption row for ``booking``; the caller commits."""
    usage = PromoCodeUsage(
        promo_code_id=promo.id,
        user_id=user.id,
        booking=booking,
        discount_applied=discount,
    )
    session.add(usage)
    return usage


async def validate_code(
    session: AsyncSession,
    *,
    code: str,
    booking_amount: Decimal,
    now: datetime | None = None,
) -> PromoValidation:
    """Check a code against ``now`` and price it for ``booking_amount``.

    Free-hours promos report their hours; the money value depends on the
    space they end up applied to.
    """
    promo = await lookup_promo_code(session, code)
    pricing_service.validate_promo(promo, now=now or utcnow())
    return PromoValidation(
        promo=promo,
        discount=pricing_service.calculate_promo_discount(promo, Decimal(booking_amount)),
    )


async def usage_history(
    session: AsyncSession, promo_id: uuid.UUID, *, page: int, limit: int
) -> UsageHistory:
    promo = await session.get(PromoCode, promo_id)
    if promo is None:
        raise NotFoundError("Promo code not found")

    totals = await session.execute(
        select(
            func.count(PromoCodeUsage.id),
            func.coalesce(func.sum(PromoCodeUsage.discount_applied), 0),
        ).where(PromoCodeUsage.promo_code_id == promo.id)
    )
    total, discount_sum = totals.one()
    result = await session.execute(
        select(PromoCodeUsage)
        .where(PromoCodeUsage.promo_code_id == promo.id)
        .order_by(PromoCodeUsage.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return UsageHistory(
        promo=promo,
        items=list(result.scalars().all()),
        total=total,
        total_discount_given=Decimal(discount_sum).quantize(pricing_service.MONEY_PLACES),
    )
