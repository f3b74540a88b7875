"""Space owner profile."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parkshare.db.base import Base
from parkshare.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from parkshare.models.parking_space import ParkingSpace
    from parkshare.models.user import User


class Owner(TimestampMixin, Base):
    """Business profile of a user who lists parking spaces."""

    __tablename__ = "owners"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    business_name: Mapped[str | None] = mapped_column(String(255))

    user: Mapped["User"] = relationship("User", back_populates="owner_profile")
    spaces: Mapped[list["ParkingSpace"]] = relationship(
        "ParkingSpace", back_populates="owner", cascade="all, delete-orphan"
    )
