"""Interval conflict detection for bookings on a single space."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from parkshare.core.clock import coerce_utc
from parkshare.core.errors import StorageUnavailableError
from parkshare.models.booking import HOLDING_STATUSES, Booking
from parkshare.models.parking_space import ParkingSpace


def intervals_overlap(start_a: Any, end_a: Any, start_b: Any, end_b: Any) -> bool:
    """Half-open intersection test; touching endpoints do not overlap.

    Works for instants and for minutes-since-midnight alike.
    """
    return start_a < end_b and end_a > start_b


async def find_conflicting_booking(
    session: AsyncSession,
    *,
    space_id: uuid.UUID,
    start_time: datetime,
    end_time: datetime,
    exclude_booking_id: uuid.UUID | None = None,
) -> Booking | None:
    """Return a booking still holding ``space_id`` that overlaps the interval."""
    stmt = (
        select(Booking)
        .where(
            Booking.space_id == space_id,
            Booking.status.in_(HOLDING_STATUSES),
            Booking.start_time < coerce_utc(end_time),
            Booking.end_time > coerce_utc(start_time),
        )
        .limit(1)
    )
    if exclude_booking_id is not None:
        stmt = stmt.where(Booking.id != exclude_booking_id)
    try:
        result = await session.execute(stmt)
    except OperationalError as exc:
        raise StorageUnavailableError("Booking store is unreachable") from exc
    return result.scalars().first()


async def lock_space(
    session: AsyncSession, space_id: uuid.UUID
) -> ParkingSpace | None:
    """Load the space row with ``FOR UPDATE`` to serialize booking writes.

    Every create/extend/reschedule takes this lock before its conflict check
    so that the check and the write happen in one critical section. SQLite
    ignores the clause; its single-writer model gives the same effect.
    """
    stmt = (
        select(ParkingSpace)
        .where(ParkingSpace.id == space_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    try:
        result = await session.execute(stmt)
    except OperationalError as exc:
        raise StorageUnavailableError("Booking store is unreachable") from exc
    return result.scalars().first()


def describe_conflict(booking: Booking) -> dict[str, str]:
    return {
        "conflicting_booking_number": booking.booking_number,
        "conflicting_start_time": coerce_utc(booking.start_time).isoformat(),
        "conflicting_end_time": coerce_utc(booking.end_time).isoformat(),
    }


__all__ = [
    "describe_conflict",
    "find_conflicting_booking",
    "intervals_overlap",
    "lock_space",
]
