"""Booking lifecycle API."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from parkshare.api import deps
from parkshare.api.rate_limit import DEFAULT_RATE_DEP
from parkshare.core.errors import NotFoundError
from parkshare.models.booking import Booking, BookingStatus, PaymentStatus
from parkshare.models.user import User
from parkshare.schemas.booking import (
    BookingCancelRequest,
    BookingCancelResponse,
    BookingCheckInRequest,
    BookingCheckOutResponse,
    BookingCreate,
    BookingDetail,
    BookingExtendRequest,
    BookingExtendResponse,
    BookingPage,
    BookingPaymentRequest,
    BookingPaymentResponse,
    BookingRead,
    BookingUpdate,
    ExtensionSummary,
    NoShowSweepResult,
    OvertimeSummary,
    PaymentRead,
    RefundSummary,
)
from parkshare.services import booking_service

router = APIRouter()


def _detail(booking: Booking, user: User) -> BookingDetail:
    detail = BookingDetail.model_validate(booking)
    if booking.user_id != user.id:
        detail.verification_code = None
    return detail


async def _load(session: AsyncSession, booking_id: uuid.UUID) -> Booking:
    booking = await booking_service.get_booking(session, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


@router.post(
    "",
    response_model=BookingDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Create booking",
    dependencies=[DEFAULT_RATE_DEP],
)
async def create_booking(
    payload: BookingCreate,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
) -> BookingDetail:
    booking = await booking_service.create_booking(
        session,
        user=current_user,
        space_id=payload.space_id,
        vehicle_id=payload.vehicle_id,
        start_time=payload.start_time,
        end_time=payload.end_time,
        promo_code=payload.promo_code,
    )
    return _detail(booking, current_user)


@router.get("", response_model=BookingPage, summary="List bookings")
async def list_bookings(
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
    status_filter: Annotated[BookingStatus | None, Query(alias="status")] = None,
    payment_status: PaymentStatus | None = None,
    space_id: uuid.UUID | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> BookingPage:
    bookings, total = await booking_service.list_bookings(
        session,
        user=current_user,
        status=status_filter,
        payment_status=payment_status,
        space_id=space_id,
        page=page,
        limit=limit,
    )
    return BookingPage(
        items=[BookingRead.model_validate(obj) for obj in bookings],
        page=page,
        limit=limit,
        total=total,
        total_pages=booking_service.total_pages(total, limit),
    )


@router.post(
    "/no-show-sweep",
    response_model=NoShowSweepResult,
    summary="Mark confirmed bookings past their check-in window as no-show",
)
async def sweep_no_shows(
    session: deps.SessionDep,
    _: deps.AdminUser,
) -> NoShowSweepResult:
    marked = await booking_service.mark_no_shows(session)
    return NoShowSweepResult(
        marked_count=len(marked),
        booking_numbers=[booking.booking_number for booking in marked],
    )


@router.get("/{booking_id}", response_model=BookingDetail, summary="Get booking")
async def get_booking(
    booking_id: uuid.UUID,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
) -> BookingDetail:
    booking = await booking_service.get_booking_for_user(
        session, booking_id=booking_id, user=current_user
    )
    return _detail(booking, current_user)


@router.patch("/{booking_id}", response_model=BookingDetail, summary="Reschedule booking")
async def update_booking(
    booking_id: uuid.UUID,
    payload: BookingUpdate,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
) -> BookingDetail:
    booking = await _load(session, booking_id)
    updated = await booking_service.reschedule_booking(
        session,
        booking=booking,
        user=current_user,
        **payload.model_dump(exclude_unset=True),
    )
    return _detail(updated, current_user)


@router.post(
    "/{booking_id}/pay",
    response_model=BookingPaymentResponse,
    summary="Pay for booking",
)
async def pay_booking(
    booking_id: uuid.UUID,
    payload: BookingPaymentRequest,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
) -> BookingPaymentResponse:
    booking = await _load(session, booking_id)
    updated, payment = await booking_service.record_payment(
        session,
        booking=booking,
        user=current_user,
        amount=payload.amount,
        payment_method=payload.payment_method,
    )
    return BookingPaymentResponse(
        booking=BookingRead.model_validate(updated),
        payment=PaymentRead.model_validate(payment),
    )


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingCancelResponse,
    summary="Cancel booking",
)
async def cancel_booking(
    booking_id: uuid.UUID,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
    payload: BookingCancelRequest | None = None,
) -> BookingCancelResponse:
    booking = await _load(session, booking_id)
    updated, outcome = await booking_service.cancel_booking(
        session,
        booking=booking,
        user=current_user,
        reason=payload.cancellation_reason if payload is not None else None,
    )
    return BookingCancelResponse(
        booking=BookingRead.model_validate(updated),
        refund=RefundSummary(
            refund_amount=outcome.refund_amount,
            refund_percentage=outcome.refund_percentage,
            status=outcome.status,
        ),
    )


@router.post(
    "/{booking_id}/check-in",
    response_model=BookingRead,
    summary="Check in booking",
)
async def check_in_booking(
    booking_id: uuid.UUID,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
    payload: BookingCheckInRequest | None = None,
) -> BookingRead:
    booking = await _load(session, booking_id)
    updated = await booking_service.check_in(
        session,
        booking=booking,
        user=current_user,
        verification_code=payload.verification_code if payload is not None else None,
    )
    return BookingRead.model_validate(updated)


@router.post(
    "/{booking_id}/check-out",
    response_model=BookingCheckOutResponse,
    summary="Check out booking",
)
async def check_out_booking(
    booking_id: uuid.UUID,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
) -> BookingCheckOutResponse:
    booking = await _load(session, booking_id)
    updated, overtime = await booking_service.check_out(
        session, booking=booking, user=current_user
    )
    return BookingCheckOutResponse(
        booking=BookingRead.model_validate(updated),
        overtime=(
            OvertimeSummary(hours=overtime.hours, charge=overtime.charge)
            if overtime is not None
            else None
        ),
    )


@router.post(
    "/{booking_id}/extend",
    response_model=BookingExtendResponse,
    summary="Extend booking end time",
)
async def extend_booking(
    booking_id: uuid.UUID,
    payload: BookingExtendRequest,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
) -> BookingExtendResponse:
    booking = await _load(session, booking_id)
    updated, outcome = await booking_service.extend_booking(
        session,
        booking=booking,
        user=current_user,
        new_end_time=payload.new_end_time,
    )
    return BookingExtendResponse(
        booking=BookingRead.model_validate(updated),
        extension=ExtensionSummary(
            old_end_time=outcome.old_end_time,
            new_end_time=outcome.new_end_time,
            additional_charge=outcome.additional_charge,
        ),
    )
