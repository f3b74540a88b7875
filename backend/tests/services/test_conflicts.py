"""Interval conflict detection against stored bookings."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from parkshare.core.errors import StorageUnavailableError
from parkshare.models import Booking, BookingStatus, PaymentStatus
from parkshare.services import conflict_service

pytestmark = pytest.mark.asyncio

T0 = datetime(2024, 1, 10, 10, 0, tzinfo=UTC)


def _at(hours: float) -> datetime:
    return T0 + timedelta(hours=hours)


async def _store_booking(
    session: AsyncSession,
    market,
    *,
    start: datetime,
    end: datetime,
    status: BookingStatus = BookingStatus.CONFIRMED,
    number: str = "BK-TEST-00001",
) -> Booking:
    booking = Booking(
        booking_number=number,
        user_id=market.booker.id,
        owner_id=market.owner.id,
        space_id=market.space.id,
        vehicle_id=market.vehicle.id,
        start_time=start,
        end_time=end,
        duration_hours=Decimal("4"),
        base_price=Decimal("40.00"),
        total_amount=Decimal("40.00"),
        status=status,
        payment_status=PaymentStatus.PENDING,
    )
    session.add(booking)
    await session.commit()
    return booking


async def test_intervals_overlap_is_half_open() -> None:
    assert conflict_service.intervals_overlap(_at(0), _at(4), _at(3), _at(5))
    assert conflict_service.intervals_overlap(_at(0), _at(4), _at(1), _at(2))
    assert conflict_service.intervals_overlap(_at(1), _at(2), _at(0), _at(4))
    assert not conflict_service.intervals_overlap(_at(0), _at(4), _at(4), _at(6))
    assert not conflict_service.intervals_overlap(_at(4), _at(6), _at(0), _at(4))
    assert conflict_service.intervals_overlap(540, 720, 660, 840)
    assert not conflict_service.intervals_overlap(540, 720, 720, 840)


async def test_find_conflicting_booking_detects_overlap(
    session: AsyncSession, market
) -> None:
    existing = await _store_booking(session, market, start=_at(0), end=_at(4))

    clash = await conflict_service.find_conflicting_booking(
        session, space_id=market.space.id, start_time=_at(3), end_time=_at(5)
    )
    assert clash is not None
    assert clash.id == existing.id

    adjacent = await conflict_service.find_conflicting_booking(
        session, space_id=market.space.id, start_time=_at(4), end_time=_at(6)
    )
    assert adjacent is None
    before = await conflict_service.find_conflicting_booking(
        session, space_id=market.space.id, start_time=_at(-2), end_time=_at(0)
    )
    assert before is None


async def test_find_conflicting_booking_excludes_self(
    session: AsyncSession, market
) -> None:
    existing = await _store_booking(session, market, start=_at(0), end=_at(4))
    clash = await conflict_service.find_conflicting_booking(
        session,
        space_id=market.space.id,
        start_time=_at(1),
        end_time=_at(6),
        exclude_booking_id=existing.id,
    )
    assert clash is None


@pytest.mark.parametrize(
    "status",
    [BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.NO_SHOW],
)
async def test_released_bookings_do_not_hold_the_space(
    session: AsyncSession, market, status: BookingStatus
) -> None:
    await _store_booking(session, market, start=_at(0), end=_at(4), status=status)
    clash = await conflict_service.find_conflicting_booking(
        session, space_id=market.space.id, start_time=_at(1), end_time=_at(3)
    )
    assert clash is None


@pytest.mark.parametrize(
    "status",
    [BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.ACTIVE],
)
async def test_holding_bookings_block_the_space(
    session: AsyncSession, market, status: BookingStatus
) -> None:
    await _store_booking(session, market, start=_at(0), end=_at(4), status=status)
    clash = await conflict_service.find_conflicting_booking(
        session, space_id=market.space.id, start_time=_at(1), end_time=_at(3)
    )
    assert clash is not None


async def test_describe_conflict_reports_interval(session: AsyncSession, market) -> None:
    existing = await _store_booking(session, market, start=_at(0), end=_at(4))
    details = conflict_service.describe_conflict(existing)
    assert details == {
        "conflicting_booking_number": "BK-TEST-00001",
        "conflicting_start_time": "2024-01-10T10:00:00+00:00",
        "conflicting_end_time": "2024-01-10T14:00:00+00:00",
    }


async def test_lock_space_returns_row(session: AsyncSession, market) -> None:
    space = await conflict_service.lock_space(session, market.space.id)
    assert space is not None
    assert space.id == market.space.id


async def test_unreachable_store_raises_storage_error(
    session: AsyncSession, market, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def _connection_refused(*args, **kwargs):
        raise OperationalError("SELECT", {}, ConnectionRefusedError("database is down"))

    monkeypatch.setattr(session, "execute", _connection_refused)

    with pytest.raises(StorageUnavailableError):
        await conflict_service.find_conflicting_booking(
            session, space_id=market.space.id, start_time=_at(0), end_time=_at(4)
        )
    with pytest.raises(StorageUnavailableError):
        await conflict_service.lock_space(session, market.space.id)
