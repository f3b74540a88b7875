"""Schema exports."""

from parkshare.schemas.auth import Token
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
    NoShowSweepResult,
)
from parkshare.schemas.promo_code import PromoCodeCreate, PromoCodeRead
from parkshare.schemas.space import (
    ParkingSpaceRead,
    ParkingSpaceSearchPage,
    PricingUpdate,
    SpaceAvailabilityCheck,
)

__all__ = [
    "AvailabilityBulkCreate",
    "AvailabilityBulkError",
    "AvailabilityBulkResult",
    "AvailabilityConflictCheck",
    "AvailabilityConflictResult",
    "AvailabilityCreate",
    "AvailabilityRead",
    "AvailabilityUpdate",
    "BookingCancelRequest",
    "BookingCancelResponse",
    "BookingCheckInRequest",
    "BookingCheckOutResponse",
    "BookingCreate",
    "BookingDetail",
    "BookingExtendRequest",
    "BookingExtendResponse",
    "BookingPage",
    "BookingPaymentRequest",
    "BookingPaymentResponse",
    "BookingRead",
    "BookingUpdate",
    "NoShowSweepResult",
    "ParkingSpaceRead",
    "ParkingSpaceSearchPage",
    "PricingUpdate",
    "PromoCodeCreate",
    "PromoCodeRead",
    "SpaceAvailabilityCheck",
    "Token",
]
