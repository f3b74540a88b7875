"""Versioned API router."""

from fastapi import APIRouter

from . import auth, availability, bookings, health, promo_codes, spaces

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
router.include_router(availability.router, tags=["availability"])
router.include_router(spaces.router, prefix="/spaces", tags=["spaces"])
router.include_router(promo_codes.router, prefix="/promo-codes", tags=["promo-codes"])

__all__ = ["router"]
