"""Parking space search, availability check and pricing API."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Query

from parkshare.api import deps
from parkshare.models.parking_space import SpaceType
from parkshare.schemas.space import (
    ParkingSpaceRead,
    ParkingSpaceSearchHit,
    ParkingSpaceSearchPage,
    PricingUpdate,
    SpaceAvailabilityCheck,
)
from parkshare.services import booking_service, space_service

router = APIRouter()


@router.get("/search", response_model=ParkingSpaceSearchPage, summary="Search spaces")
async def search_spaces(
    session: deps.SessionDep,
    space_type: SpaceType | None = None,
    has_ev_charging: bool | None = None,
    min_price: Annotated[Decimal | None, Query(ge=0)] = None,
    max_price: Annotated[Decimal | None, Query(ge=0)] = None,
    lat: Annotated[float | None, Query(ge=-90, le=90)] = None,
    lng: Annotated[float | None, Query(ge=-180, le=180)] = None,
    radius_km: Annotated[float | None, Query(gt=0)] = None,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> ParkingSpaceSearchPage:
    hits, total = await space_service.search_spaces(
        session,
        space_type=space_type,
        has_ev_charging=has_ev_charging,
        min_price=min_price,
        max_price=max_price,
        latitude=lat,
        longitude=lng,
        radius_km=radius_km,
        start_time=start_time,
        end_time=end_time,
        page=page,
        limit=limit,
    )
    items = []
    for hit in hits:
        item = ParkingSpaceSearchHit.model_validate(hit.space)
        item.distance_km = round(hit.distance_km, 3) if hit.distance_km is not None else None
        items.append(item)
    return ParkingSpaceSearchPage(
        items=items,
        page=page,
        limit=limit,
        total=total,
        total_pages=booking_service.total_pages(total, limit),
    )


@router.get("/{space_id}", response_model=ParkingSpaceRead, summary="Get space")
async def get_space(
    space_id: uuid.UUID,
    session: deps.SessionDep,
) -> ParkingSpaceRead:
    space = await space_service.get_space(session, space_id)
    return ParkingSpaceRead.model_validate(space)


@router.get(
    "/{space_id}/availability-check",
    response_model=SpaceAvailabilityCheck,
    summary="Check whether a space can be booked for an interval",
)
async def check_space_availability(
    space_id: uuid.UUID,
    start_time: datetime,
    end_time: datetime,
    session: deps.SessionDep,
) -> SpaceAvailabilityCheck:
    result = await space_service.check_availability(
        session, space_id=space_id, start_time=start_time, end_time=end_time
    )
    return SpaceAvailabilityCheck.model_validate(result)


@router.put(
    "/{space_id}/pricing",
    response_model=ParkingSpaceRead,
    summary="Update space rate card",
)
async def update_space_pricing(
    space_id: uuid.UUID,
    payload: PricingUpdate,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
) -> ParkingSpaceRead:
    space = await space_service.get_space(session, space_id)
    updated = await space_service.update_pricing(
        session, space=space, user=current_user, payload=payload
    )
    return ParkingSpaceRead.model_validate(updated)
