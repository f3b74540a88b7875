"""Promo code administration, lookup and validation."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Query, status

from parkshare.api import deps
from parkshare.schemas.promo_code import (
    PromoCodeCreate,
    PromoCodeRead,
    PromoCodeUsagePage,
    PromoCodeUsageRead,
    PromoCodeValidateRequest,
    PromoCodeValidation,
    PromoDiscountPreview,
)
from parkshare.services import booking_service, promo_code_service

router = APIRouter()


@router.post(
    "",
    response_model=PromoCodeRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create promo code",
)
async def create_promo_code(
    payload: PromoCodeCreate,
    session: deps.SessionDep,
    _: deps.AdminUser,
) -> PromoCodeRead:
    promo = await promo_code_service.create_promo_code(session, payload)
    return PromoCodeRead.model_validate(promo)


@router.post(
    "/validate",
    response_model=PromoCodeValidation,
    summary="Check a promo code against a booking amount",
)
async def validate_promo_code(
    payload: PromoCodeValidateRequest,
    session: deps.SessionDep,
    _: deps.CurrentUser,
) -> PromoCodeValidation:
    result = await promo_code_service.validate_code(
        session, code=payload.code, booking_amount=payload.booking_amount
    )
    promo = result.promo
    return PromoCodeValidation(
        promo_code=PromoDiscountPreview(
            code=promo.code,
            promo_type=promo.promo_type,
            discount_value=promo.discount_value,
            discount_amount=result.discount.amount,
            free_hours=result.discount.free_hours,
            max_discount_amount=promo.max_discount_amount,
        )
    )


@router.get(
    "/{promo_id}/usage",
    response_model=PromoCodeUsagePage,
    summary="Promo code redemption history",
)
async def get_promo_code_usage(
    promo_id: uuid.UUID,
    session: deps.SessionDep,
    _: deps.AdminUser,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> PromoCodeUsagePage:
    history = await promo_code_service.usage_history(
        session, promo_id, page=page, limit=limit
    )
    return PromoCodeUsagePage(
        code=history.promo.code,
        usage_count=history.promo.usage_count,
        usage_limit_total=history.promo.usage_limit_total,
        total_discount_given=history.total_discount_given,
        items=[PromoCodeUsageRead.model_validate(item) for item in history.items],
        page=page,
        limit=limit,
        total=history.total,
        total_pages=booking_service.total_pages(history.total, limit),
    )


@router.get("/{code}", response_model=PromoCodeRead, summary="Look up promo code")
async def get_promo_code(code: str, session: deps.SessionDep) -> PromoCodeRead:
    promo = await promo_code_service.lookup_promo_code(session, code)
    return PromoCodeRead.model_validate(promo)
