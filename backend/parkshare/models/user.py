"""User model for bookers, space owners and administrators."""
from __future__ import annotations

import enum
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parkshare.db.base import Base
from parkshare.models.mixins import TimestampMixin, enum_values

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from parkshare.models.owner import Owner
    from parkshare.models.vehicle import UserVehicle


class UserRole(str, enum.Enum):
    """Role enumeration for platform permissions."""

    USER = "user"
    OWNER = "owner"
    ADMIN = "admin"


class UserStatus(str, enum.Enum):
    """Enumerates user activation states."""

    ACTIVE = "active"
    SUSPENDED = "suspended"


class User(TimestampMixin, Base):
    """User entity for authentication and authorization."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(32))
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="userrole", values_callable=enum_values),
        default=UserRole.USER,
        nullable=False,
    )
    status: Mapped[UserStatus] = mapped_column(
        Enum(UserStatus, name="userstatus", values_callable=enum_values),
        default=UserStatus.ACTIVE,
        nullable=False,
    )

    owner_profile: Mapped["Owner | None"] = relationship(
        "Owner", back_populates="user", uselist=False
    )
    vehicles: Mapped[list["UserVehicle"]] = relationship(
        "UserVehicle", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
