"""Service layer exports."""
from parkshare.services import (
    auth_service,
    availability_service,
    booking_service,
    conflict_service,
    pricing_service,
    promo_code_service,
    space_service,
)

__all__ = [
    "auth_service",
    "availability_service",
    "booking_service",
    "conflict_service",
    "pricing_service",
    "promo_code_service",
    "space_service",
]
