"""ORM models package export."""

from parkshare.models.booking import (
    HOLDING_STATUSES,
    RELEASED_STATUSES,
    Booking,
    BookingExtension,
    BookingStatus,
    PaymentStatus,
)
from parkshare.models.owner import Owner
from parkshare.models.parking_space import (
    BookingMode,
    ParkingSpace,
    SpaceStatus,
    SpaceType,
)
from parkshare.models.payment import Payment, PaymentRecordStatus
from parkshare.models.promo_code import PromoCode, PromoCodeUsage, PromoType
from parkshare.models.refund import Refund, RefundStatus
from parkshare.models.space_availability import SpaceAvailability
from parkshare.models.user import User, UserRole, UserStatus
from parkshare.models.vehicle import UserVehicle

__all__ = [
    "Booking",
    "BookingExtension",
    "BookingMode",
    "BookingStatus",
    "HOLDING_STATUSES",
    "Owner",
    "ParkingSpace",
    "Payment",
    "PaymentRecordStatus",
    "PaymentStatus",
    "PromoCode",
    "PromoCodeUsage",
    "PromoType",
    "RELEASED_STATUSES",
    "Refund",
    "RefundStatus",
    "SpaceAvailability",
    "SpaceStatus",
    "SpaceType",
    "User",
    "UserRole",
    "UserStatus",
    "UserVehicle",
]
