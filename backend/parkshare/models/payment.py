"""Payment records for bookings."""

from __future__ import annotations

import enum
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parkshare.db.base import Base
from parkshare.models.mixins import TimestampMixin, enum_values

if TYPE_CHECKING:
    from parkshare.models.booking import Booking


class PaymentRecordStatus(str, enum.Enum):
    """Outcome of a settlement attempt."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Payment(TimestampMixin, Base):
    """Settlement of a booking total. No gateway is involved."""

    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[PaymentRecordStatus] = mapped_column(
        Enum(PaymentRecordStatus, name="paymentrecordstatus", values_callable=enum_values),
        default=PaymentRecordStatus.PENDING,
        nullable=False,
    )
    transaction_reference: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False
    )

    booking: Mapped["Booking"] = relationship("Booking", back_populates="payments")
