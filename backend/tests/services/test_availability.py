"""Weekly availability window validation."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from parkshare.core.errors import ConflictError, ForbiddenError, ValidationFailedError
from parkshare.schemas.availability import AvailabilityCreate, AvailabilityUpdate
from parkshare.services import availability_service

pytestmark = pytest.mark.asyncio

MONDAY = 1


async def _window(
    session: AsyncSession,
    market,
    start: str,
    end: str,
    *,
    day: int = MONDAY,
    is_available: bool = True,
):
    return await availability_service.create_window(
        session,
        space=market.space,
        user=market.owner_user,
        payload=AvailabilityCreate(
            day_of_week=day,
            available_from=start,
            available_to=end,
            is_available=is_available,
        ),
    )


async def test_minutes_since_midnight() -> None:
    assert availability_service.minutes_since_midnight("00:00") == 0
    assert availability_service.minutes_since_midnight("09:30") == 570
    assert availability_service.minutes_since_midnight("23:59") == 1439
    for bad in ("24:00", "9:30", "12:60", "noon"):
        with pytest.raises(ValidationFailedError):
            availability_service.minutes_since_midnight(bad)


async def test_windows_overlap_is_half_open() -> None:
    assert availability_service.windows_overlap("09:00", "12:00", "11:00", "14:00")
    assert not availability_service.windows_overlap("09:00", "12:00", "12:00", "14:00")
    assert availability_service.windows_overlap("10:00", "11:00", "09:00", "17:00")


async def test_overlapping_window_same_day_is_rejected(session: AsyncSession, market) -> None:
    existing = await _window(session, market, "09:00", "12:00")

    with pytest.raises(ConflictError) as excinfo:
        await _window(session, market, "11:00", "14:00")
    assert excinfo.value.message == "Conflicts with existing schedule"
    assert excinfo.value.details["conflicting_schedule"]["id"] == str(existing.id)

    adjacent = await _window(session, market, "12:00", "14:00")
    other_day = await _window(session, market, "11:00", "14:00", day=MONDAY + 1)
    assert adjacent.available_from == "12:00"
    assert other_day.day_of_week == MONDAY + 1


async def test_inactive_windows_never_conflict(session: AsyncSession, market) -> None:
    await _window(session, market, "09:00", "12:00", is_available=False)
    active = await _window(session, market, "10:00", "11:00")
    assert active.is_available

    blocked = await _window(session, market, "10:30", "11:30", is_available=False)
    assert not blocked.is_available


async def test_only_space_owner_manages_windows(session: AsyncSession, market) -> None:
    with pytest.raises(ForbiddenError):
        await availability_service.create_window(
            session,
            space=market.space,
            user=market.booker,
            payload=AvailabilityCreate(
                day_of_week=MONDAY, available_from="09:00", available_to="10:00"
            ),
        )
    admin_window = await availability_service.create_window(
        session,
        space=market.space,
        user=market.admin,
        payload=AvailabilityCreate(
            day_of_week=MONDAY, available_from="09:00", available_to="10:00"
        ),
    )
    assert admin_window.space_id == market.space.id


async def test_bulk_create_reports_each_failure(session: AsyncSession, market) -> None:
    existing = await _window(session, market, "09:00", "12:00")

    result = await availability_service.bulk_create_windows(
        session,
        space=market.space,
        user=market.owner_user,
        schedules=[
            {"day_of_week": MONDAY, "available_from": "13:00", "available_to": "15:00"},
            {"day_of_week": MONDAY, "available_from": "11:00", "available_to": "13:00"},
            {"day_of_week": MONDAY, "available_from": "14:00", "available_to": "16:00"},
            {"day_of_week": MONDAY, "available_from": "18:00"},
            {"day_of_week": MONDAY, "available_from": "20:00", "available_to": "19:00"},
            {"day_of_week": 9, "available_from": "08:00", "available_to": "09:00"},
            {"day_of_week": 2, "available_from": "08:00", "available_to": "09:00"},
        ],
    )

    assert [window.available_from for window in result.created] == ["13:00", "08:00"]
    errors = {error["index"]: error for error in result.errors}
    assert sorted(errors) == [1, 2, 3, 4, 5]
    assert errors[1]["error"] == "Conflicts with existing schedule"
    assert errors[1]["conflicting_schedule"].id == existing.id
    assert errors[2]["error"] == "Conflicts with another schedule in this bulk request"
    assert errors[3]["error"] == (
        "Missing required fields: day_of_week, available_from, available_to"
    )
    assert errors[4]["error"] == "available_from must be before available_to"
    assert errors[5]["error"].startswith("Invalid day_of_week")

    stored = await availability_service.list_windows(session, space_id=market.space.id)
    assert len(stored) == 3


async def test_update_excludes_the_window_itself(session: AsyncSession, market) -> None:
    window = await _window(session, market, "09:00", "12:00")
    await _window(session, market, "13:00", "15:00")

    widened = await availability_service.update_window(
        session,
        space=market.space,
        user=market.owner_user,
        window=window,
        payload=AvailabilityUpdate(available_from="08:00", available_to="12:30"),
    )
    assert widened.available_from == "08:00"
    assert widened.available_to == "12:30"

    with pytest.raises(ConflictError):
        await availability_service.update_window(
            session,
            space=market.space,
            user=market.owner_user,
            window=window,
            payload=AvailabilityUpdate(available_to="14:00"),
        )
    with pytest.raises(ValidationFailedError):
        await availability_service.update_window(
            session,
            space=market.space,
            user=market.owner_user,
            window=window,
            payload=AvailabilityUpdate(available_from="13:00"),
        )


async def test_check_conflicts_and_delete(session: AsyncSession, market) -> None:
    window = await _window(session, market, "09:00", "12:00")

    clashes = await availability_service.check_conflicts(
        session,
        space_id=market.space.id,
        day_of_week=MONDAY,
        available_from="10:00",
        available_to="11:00",
    )
    assert [clash.id for clash in clashes] == [window.id]

    excluded = await availability_service.check_conflicts(
        session,
        space_id=market.space.id,
        day_of_week=MONDAY,
        available_from="10:00",
        available_to="11:00",
        exclude_id=window.id,
    )
    assert excluded == []

    await availability_service.delete_window(
        session, space=market.space, user=market.owner_user, window=window
    )
    assert await availability_service.list_windows(session, space_id=market.space.id) == []
