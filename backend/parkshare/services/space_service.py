"""Parking space lookups, search, availability checks and pricing updates."""
from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from parkshare.core.clock import coerce_utc
from parkshare.core.errors import ForbiddenError, NotFoundError, ValidationFailedError
from parkshare.models import (
    HOLDING_STATUSES,
    Booking,
    Owner,
    ParkingSpace,
    SpaceStatus,
    SpaceType,
    User,
)
from parkshare.schemas.space import PricingUpdate
from parkshare.services import conflict_service, pricing_service

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


@dataclass(slots=True)
class SearchHit:
    space: ParkingSpace
    distance_km: float | None = None


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


async def get_space(session: AsyncSession, space_id: uuid.UUID) -> ParkingSpace:
    space = await session.get(ParkingSpace, space_id)
    if space is None:
        raise NotFoundError("Parking space not found")
    return space


async def is_owner_user(
    session: AsyncSession, *, owner_id: uuid.UUID, user: User
) -> bool:
    result = await session.execute(select(Owner.user_id).where(Owner.id == owner_id))
    return result.scalar_one_or_none() == user.id


async def ensure_space_manager(
    session: AsyncSession, *, space: ParkingSpace, user: User
) -> None:
    """Only the space's owner or an admin may change its configuration."""
    if user.is_admin:
        return
    if not await is_owner_user(session, owner_id=space.owner_id, user=user):
        raise ForbiddenError("Not authorized to manage this parking space")


def is_bookable(space: ParkingSpace) -> bool:
    return space.status == SpaceStatus.ACTIVE and space.is_available


async def check_availability(
    session: AsyncSession,
    *,
    space_id: uuid.UUID,
    start_time: datetime,
    end_time: datetime,
) -> dict:
    start = coerce_utc(start_time)
    end = coerce_utc(end_time)
    if end <= start:
        raise ValidationFailedError("End time must be after start time")
    space = await get_space(session, space_id)
    if not is_bookable(space):
        return {
            "space_id": space.id,
            "is_available": False,
            "reason": "Parking space is not available",
        }
    conflict = await conflict_service.find_conflicting_booking(
        session, space_id=space.id, start_time=start, end_time=end
    )
    if conflict is not None:
        return {
            "space_id": space.id,
            "is_available": False,
            "reason": "Space is already booked for the selected time",
            "conflict": {
                "start_time": coerce_utc(conflict.start_time),
                "end_time": coerce_utc(conflict.end_time),
            },
        }
    estimate = pricing_service.quote(pricing_service.RateCard.from_space(space), start, end)
    return {
        "space_id": space.id,
        "is_available": True,
        "booking_mode": space.booking_mode,
        "price_estimate": {
            "duration_hours": estimate.duration_hours,
            "tier": estimate.tier.value,
            "base_price": estimate.base_price,
            "total_amount": estimate.total_amount,
        },
    }


async def search_spaces(
    session: AsyncSession,
    *,
    space_type: SpaceType | None = None,
    has_ev_charging: bool | None = None,
    min_price: Decimal | None = None,
    max_price: Decimal | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
    radius_km: float | None = None,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[SearchHit], int]:
    """Filter bookable spaces; the radius filter is a linear Haversine scan."""
    if (latitude is None) != (longitude is None):
        raise ValidationFailedError("Both lat and lng are required for a location search")
    if (start_time is None) != (end_time is None):
        raise ValidationFailedError("Both start_time and end_time are required")
    if start_time is not None and coerce_utc(end_time) <= coerce_utc(start_time):
        raise ValidationFailedError("End time must be after start time")

    stmt = select(ParkingSpace).where(
        ParkingSpace.status == SpaceStatus.ACTIVE,
        ParkingSpace.is_available.is_(True),
    )
    if space_type is not None:
        stmt = stmt.where(ParkingSpace.space_type == space_type)
    if has_ev_charging is not None:
        stmt = stmt.where(ParkingSpace.has_ev_charging == has_ev_charging)
    if min_price is not None:
        stmt = stmt.where(ParkingSpace.hourly_rate >= min_price)
    if max_price is not None:
        stmt = stmt.where(ParkingSpace.hourly_rate <= max_price)
    spaces = (await session.execute(stmt.order_by(ParkingSpace.created_at))).scalars().all()

    if start_time is not None:
        busy = await session.execute(
            select(Booking.space_id)
            .where(
                Booking.status.in_(HOLDING_STATUSES),
                Booking.start_time < coerce_utc(end_time),
                Booking.end_time > coerce_utc(start_time),
            )
            .distinct()
        )
        busy_ids = set(busy.scalars().all())
        spaces = [space for space in spaces if space.id not in busy_ids]

    hits: list[SearchHit] = []
    for space in spaces:
        distance = None
        if latitude is not None:
            if space.latitude is None or space.longitude is None:
                continue
            distance = haversine_km(latitude, longitude, space.latitude, space.longitude)
            if radius_km is not None and distance > radius_km:
                continue
        hits.append(SearchHit(space=space, distance_km=distance))
    if latitude is not None:
        hits.sort(key=lambda hit: hit.distance_km)

    total = len(hits)
    offset = (page - 1) * limit
    return hits[offset : offset + limit], total


async def update_pricing(
    session: AsyncSession,
    *,
    space: ParkingSpace,
    user: User,
    payload: PricingUpdate,
) -> ParkingSpace:
    await ensure_space_manager(session, space=space, user=user)
    for field, value in payload.model_dump(exclude_none=True).items():
        setattr(space, field, value)
    session.add(space)
    await session.commit()
    await session.refresh(space)
    logger.info(
        "Pricing updated for space %s: hourly=%s daily=%s monthly=%s",
        space.id,
        space.hourly_rate,
        space.daily_rate,
        space.monthly_rate,
    )
    return space
