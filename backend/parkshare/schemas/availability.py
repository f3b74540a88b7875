"""Schemas for recurring space availability windows."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"


class AvailabilityCreate(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    available_from: str = Field(pattern=TIME_OF_DAY_PATTERN)
    available_to: str = Field(pattern=TIME_OF_DAY_PATTERN)
    is_available: bool = True

    @model_validator(mode="after")
    def _check_range(self) -> "AvailabilityCreate":
        # Zero-padded HH:MM strings order the same way as the times they encode.
        if self.available_from >= self.available_to:
            raise ValueError("available_from must be before available_to")
        return self


class AvailabilityUpdate(BaseModel):
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    available_from: str | None = Field(default=None, pattern=TIME_OF_DAY_PATTERN)
    available_to: str | None = Field(default=None, pattern=TIME_OF_DAY_PATTERN)
    is_available: bool | None = None


class AvailabilityRead(AvailabilityCreate):
    id: uuid.UUID
    space_id: uuid.UUID

    model_config = ConfigDict(from_attributes=True)


class AvailabilityBulkCreate(BaseModel):
    """Entries are validated one by one so a bad entry cannot sink the batch."""

    schedules: list[Any] = Field(min_length=1)


class AvailabilityBulkError(BaseModel):
    index: int
    schedule: Any
    error: str
    conflicting_schedule: AvailabilityRead | None = None


class AvailabilityBulkResult(BaseModel):
    created: list[AvailabilityRead]
    created_count: int
    failed_count: int
    errors: list[AvailabilityBulkError]


class AvailabilityConflictCheck(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    available_from: str = Field(pattern=TIME_OF_DAY_PATTERN)
    available_to: str = Field(pattern=TIME_OF_DAY_PATTERN)
    exclude_id: uuid.UUID | None = None


class AvailabilityConflictResult(BaseModel):
    has_conflict: bool
    conflicts: list[AvailabilityRead]
    checked_time: datetime
