"""Recurring weekly windows in which a space may be booked."""
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parkshare.db.base import Base
from parkshare.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from parkshare.models.parking_space import ParkingSpace


class SpaceAvailability(TimestampMixin, Base):
    """Owner-declared availability window for one day of the week.

    ``day_of_week`` runs from 0 (Sunday) to 6 (Saturday); the bounds are
    ``HH:MM`` strings on a 24-hour clock.
    """

    __tablename__ = "space_availability"
    __table_args__ = (Index("ix_space_availability_space_day", "space_id", "day_of_week"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    space_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("parking_spaces.id", ondelete="CASCADE"), nullable=False
    )
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    available_from: Mapped[str] = mapped_column(String(5), nullable=False)
    available_to: Mapped[str] = mapped_column(String(5), nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    space: Mapped["ParkingSpace"] = relationship(
        "ParkingSpace", back_populates="availability_windows"
    )
