"""Shared column helpers for ParkShare models."""
import enum
from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from parkshare.core.clock import utcnow


class TimestampMixin:
    """Row creation and last-write times, always in UTC."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Store enum members by value so database rows read like the API."""
    return [member.value for member in enum_cls]
