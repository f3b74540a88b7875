"""Owner-defined weekly availability windows for parking spaces."""
from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from parkshare.core.errors import ConflictError, NotFoundError, ValidationFailedError
from parkshare.models import ParkingSpace, SpaceAvailability, User
from parkshare.schemas.availability import (
    TIME_OF_DAY_PATTERN,
    AvailabilityCreate,
    AvailabilityRead,
    AvailabilityUpdate,
)
from parkshare.services import conflict_service, space_service

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(TIME_OF_DAY_PATTERN)
_REQUIRED_FIELDS = ("day_of_week", "available_from", "available_to")


@dataclass(slots=True)
class BulkCreateResult:
    created: list[SpaceAvailability] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)


def minutes_since_midnight(value: str) -> int:
    """Convert ``HH:MM`` to minutes; the pattern is checked before any arithmetic."""
    match = _TIME_RE.match(value)
    if match is None:
        raise ValidationFailedError(
            "Invalid time format. Use HH:MM (24-hour)", {"value": value}
        )
    return int(match.group(1)) * 60 + int(match.group(2))


def windows_overlap(from_a: str, to_a: str, from_b: str, to_b: str) -> bool:
    return conflict_service.intervals_overlap(
        minutes_since_midnight(from_a),
        minutes_since_midnight(to_a),
        minutes_since_midnight(from_b),
        minutes_since_midnight(to_b),
    )


def _validate_range(available_from: str, available_to: str) -> None:
    if minutes_since_midnight(available_from) >= minutes_since_midnight(available_to):
        raise ValidationFailedError("available_from must be before available_to")


def find_overlapping(
    windows: Iterable[SpaceAvailability],
    *,
    day_of_week: int,
    available_from: str,
    available_to: str,
    exclude_id: uuid.UUID | None = None,
) -> list[SpaceAvailability]:
    """Active windows on ``day_of_week`` that overlap the candidate range."""
    return [
        window
        for window in windows
        if window.is_available
        and window.day_of_week == day_of_week
        and window.id != exclude_id
        and windows_overlap(
            available_from, available_to, window.available_from, window.available_to
        )
    ]


async def _windows_for_space(
    session: AsyncSession, space_id: uuid.UUID, day_of_week: int | None = None
) -> list[SpaceAvailability]:
    stmt: Select[tuple[SpaceAvailability]] = (
        select(SpaceAvailability)
        .where(SpaceAvailability.space_id == space_id)
        .order_by(
            SpaceAvailability.day_of_week.asc(),
            SpaceAvailability.available_from.asc(),
        )
    )
    if day_of_week is not None:
        stmt = stmt.where(SpaceAvailability.day_of_week == day_of_week)
    result = await session.execute(stmt)
    return list(result.scalars().all())


def _conflict_details(window: SpaceAvailability) -> dict[str, Any]:
    return {
        "conflicting_schedule": AvailabilityRead.model_validate(window).model_dump(
            mode="json"
        )
    }


async def list_windows(
    session: AsyncSession,
    *,
    space_id: uuid.UUID,
    day_of_week: int | None = None,
) -> list[SpaceAvailability]:
    await space_service.get_space(session, space_id)
    return await _windows_for_space(session, space_id, day_of_week)


async def get_window(
    session: AsyncSession, *, space_id: uuid.UUID, window_id: uuid.UUID
) -> SpaceAvailability:
    window = await session.get(SpaceAvailability, window_id)
    if window is None or window.space_id != space_id:
        raise NotFoundError("Availability schedule not found")
    return window


async def create_window(
    session: AsyncSession,
    *,
    space: ParkingSpace,
    user: User,
    payload: AvailabilityCreate,
) -> SpaceAvailability:
    await space_service.ensure_space_manager(session, space=space, user=user)
    _validate_range(payload.available_from, payload.available_to)
    if payload.is_available:
        existing = await _windows_for_space(session, space.id, payload.day_of_week)
        overlapping = find_overlapping(
            existing,
            day_of_week=payload.day_of_week,
            available_from=payload.available_from,
            available_to=payload.available_to,
        )
        if overlapping:
            raise ConflictError(
                "Conflicts with existing schedule", _conflict_details(overlapping[0])
            )
    window = SpaceAvailability(space_id=space.id, **payload.model_dump())
    session.add(window)
    await session.commit()
    await session.refresh(window)
    logger.info(
        "Availability window %s-%s (day %s) added to space %s",
        window.available_from,
        window.available_to,
        window.day_of_week,
        space.id,
    )
    return window


def _parse_bulk_entry(raw: Any) -> AvailabilityCreate:
    if not isinstance(raw, dict):
        raise ValidationFailedError("Schedule entry must be an object")
    if any(raw.get(name) is None for name in _REQUIRED_FIELDS):
        raise ValidationFailedError(
            "Missing required fields: day_of_week, available_from, available_to"
        )
    try:
        return AvailabilityCreate.model_validate(raw)
    except ValidationError as exc:
        messages = [err.get("msg", "") for err in exc.errors()]
        if any("available_from must be before available_to" in msg for msg in messages):
            raise ValidationFailedError("available_from must be before available_to") from exc
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationFailedError(f"Invalid {location}: {first.get('msg', '')}") from exc


async def bulk_create_windows(
    session: AsyncSession,
    *,
    space: ParkingSpace,
    user: User,
    schedules: list[Any],
) -> BulkCreateResult:
    """Create windows one by one; failures are reported per index, never fatal."""
    await space_service.ensure_space_manager(session, space=space, user=user)
    existing = await _windows_for_space(session, space.id)
    result = BulkCreateResult()

    for index, raw in enumerate(schedules):
        try:
            payload = _parse_bulk_entry(raw)
        except ValidationFailedError as exc:
            result.errors.append({"index": index, "schedule": raw, "error": exc.message})
            continue

        if payload.is_available:
            clash = find_overlapping(
                existing,
                day_of_week=payload.day_of_week,
                available_from=payload.available_from,
                available_to=payload.available_to,
            )
            if clash:
                result.errors.append(
                    {
                        "index": index,
                        "schedule": raw,
                        "error": "Conflicts with existing schedule",
                        "conflicting_schedule": clash[0],
                    }
                )
                continue
            batch_clash = find_overlapping(
                result.created,
                day_of_week=payload.day_of_week,
                available_from=payload.available_from,
                available_to=payload.available_to,
            )
            if batch_clash:
                result.errors.append(
                    {
                        "index": index,
                        "schedule": raw,
                        "error": "Conflicts with another schedule in this bulk request",
                    }
                )
                continue

        window = SpaceAvailability(space_id=space.id, **payload.model_dump())
        session.add(window)
        await session.flush()
        result.created.append(window)

    await session.commit()
    for window in result.created:
        await session.refresh(window)
    logger.info(
        "Bulk availability for space %s: %s created, %s failed",
        space.id,
        len(result.created),
        len(result.errors),
    )
    return result


async def update_window(
    session: AsyncSession,
    *,
    space: ParkingSpace,
    user: User,
    window: SpaceAvailability,
    payload: AvailabilityUpdate,
) -> SpaceAvailability:
    await space_service.ensure_space_manager(session, space=space, user=user)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    day_of_week = changes.get("day_of_week", window.day_of_week)
    available_from = changes.get("available_from", window.available_from)
    available_to = changes.get("available_to", window.available_to)
    is_available = changes.get("is_available", window.is_available)
    _validate_range(available_from, available_to)

    if is_available:
        existing = await _windows_for_space(session, space.id, day_of_week)
        overlapping = find_overlapping(
            existing,
            day_of_week=day_of_week,
            available_from=available_from,
            available_to=available_to,
            exclude_id=window.id,
        )
        if overlapping:
            raise ConflictError(
                "Conflicts with existing schedule", _conflict_details(overlapping[0])
            )

    for key, value in changes.items():
        setattr(window, key, value)
    await session.commit()
    await session.refresh(window)
    return window


async def delete_window(
    session: AsyncSession,
    *,
    space: ParkingSpace,
    user: User,
    window: SpaceAvailability,
) -> None:
    await space_service.ensure_space_manager(session, space=space, user=user)
    await session.delete(window)
    await session.commit()
    logger.info("Availability window %s removed from space %s", window.id, space.id)


async def check_conflicts(
    session: AsyncSession,
    *,
    space_id: uuid.UUID,
    day_of_week: int,
    available_from: str,
    available_to: str,
    exclude_id: uuid.UUID | None = None,
) -> list[SpaceAvailability]:
    await space_service.get_space(session, space_id)
    _validate_range(available_from, available_to)
    existing = await _windows_for_space(session, space_id, day_of_week)
    return find_overlapping(
        existing,
        day_of_week=day_of_week,
        available_from=available_from,
        available_to=available_to,
        exclude_id=exclude_id,
    )
