"""Recurring availability windows for parking spaces."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Query, status

from parkshare.api import deps
from parkshare.schemas.availability import (
    AvailabilityBulkCreate,
    AvailabilityBulkError,
    AvailabilityBulkResult,
    AvailabilityConflictCheck,
    AvailabilityConflictResult,
    AvailabilityCreate,
    AvailabilityRead,
    AvailabilityUpdate,
)
from parkshare.services import availability_service, space_service

router = APIRouter(prefix="/spaces/{space_id}/availability")


@router.get("", response_model=list[AvailabilityRead], summary="List availability windows")
async def list_availability(
    space_id: uuid.UUID,
    session: deps.SessionDep,
    day_of_week: Annotated[int | None, Query(ge=0, le=6)] = None,
) -> list[AvailabilityRead]:
    windows = await availability_service.list_windows(
        session, space_id=space_id, day_of_week=day_of_week
    )
    return [AvailabilityRead.model_validate(window) for window in windows]


@router.post(
    "",
    response_model=AvailabilityRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create availability window",
)
async def create_availability(
    space_id: uuid.UUID,
    payload: AvailabilityCreate,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
) -> AvailabilityRead:
    space = await space_service.get_space(session, space_id)
    window = await availability_service.create_window(
        session, space=space, user=current_user, payload=payload
    )
    return AvailabilityRead.model_validate(window)


@router.post(
    "/bulk",
    response_model=AvailabilityBulkResult,
    status_code=status.HTTP_201_CREATED,
    summary="Create several availability windows",
)
async def bulk_create_availability(
    space_id: uuid.UUID,
    payload: AvailabilityBulkCreate,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
) -> AvailabilityBulkResult:
    space = await space_service.get_space(session, space_id)
    result = await availability_service.bulk_create_windows(
        session, space=space, user=current_user, schedules=payload.schedules
    )
    errors = []
    for error in result.errors:
        conflicting = error.get("conflicting_schedule")
        errors.append(
            AvailabilityBulkError(
                index=error["index"],
                schedule=error["schedule"],
                error=error["error"],
                conflicting_schedule=(
                    AvailabilityRead.model_validate(conflicting)
                    if conflicting is not None
                    else None
                ),
            )
        )
    return AvailabilityBulkResult(
        created=[AvailabilityRead.model_validate(window) for window in result.created],
        created_count=len(result.created),
        failed_count=len(errors),
        errors=errors,
    )


@router.post(
    "/check-conflict",
    response_model=AvailabilityConflictResult,
    summary="Probe a window for conflicts without saving it",
)
async def check_availability_conflict(
    space_id: uuid.UUID,
    payload: AvailabilityConflictCheck,
    session: deps.SessionDep,
) -> AvailabilityConflictResult:
    conflicts = await availability_service.check_conflicts(
        session,
        space_id=space_id,
        day_of_week=payload.day_of_week,
        available_from=payload.available_from,
        available_to=payload.available_to,
        exclude_id=payload.exclude_id,
    )
    return AvailabilityConflictResult(
        has_conflict=bool(conflicts),
        conflicts=[AvailabilityRead.model_validate(window) for window in conflicts],
        checked_time=datetime.now(UTC),
    )


@router.put(
    "/{window_id}",
    response_model=AvailabilityRead,
    summary="Update availability window",
)
async def update_availability(
    space_id: uuid.UUID,
    window_id: uuid.UUID,
    payload: AvailabilityUpdate,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
) -> AvailabilityRead:
    space = await space_service.get_space(session, space_id)
    window = await availability_service.get_window(
        session, space_id=space_id, window_id=window_id
    )
    updated = await availability_service.update_window(
        session, space=space, user=current_user, window=window, payload=payload
    )
    return AvailabilityRead.model_validate(updated)


@router.delete(
    "/{window_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete availability window",
)
async def delete_availability(
    space_id: uuid.UUID,
    window_id: uuid.UUID,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
) -> None:
    space = await space_service.get_space(session, space_id)
    window = await availability_service.get_window(
        session, space_id=space_id, window_id=window_id
    )
    await availability_service.delete_window(
        session, space=space, user=current_user, window=window
    )
