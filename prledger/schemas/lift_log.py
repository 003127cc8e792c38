"""LiftLog and LiftSet schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from prledger.core.constants import MAX_SETS_PER_LIFT_LOG


class LiftSetBase(BaseModel):
    weight: float = Field(default=0.0, ge=0)
    reps: int = Field(default=0, ge=0, le=100)
    notes: str | None = Field(default=None, max_length=500)
    band_color: str | None = None
    time_seconds: int | None = Field(default=None, ge=0)


class LiftSetCreate(LiftSetBase):
    pass


class LiftSetRead(LiftSetBase):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    set_order: int = 0


class LiftLogBase(BaseModel):
    logged_at: datetime | None = None
    comments: str | None = None
    bodyweight: float | None = Field(default=None, gt=0)


class LiftLogCreate(LiftLogBase):
    user_id: UUID
    exercise_id: UUID
    sets: list[LiftSetCreate] = Field(..., min_length=1, max_length=MAX_SETS_PER_LIFT_LOG)


class LiftLogUpdate(BaseModel):
    """Edit timestamp, comments or bodyweight; `sets` replaces all sets when given."""

    logged_at: datetime | None = None
    comments: str | None = None
    bodyweight: float | None = Field(default=None, gt=0)
    sets: list[LiftSetCreate] | None = Field(default=None, min_length=1, max_length=MAX_SETS_PER_LIFT_LOG)

    @field_validator("logged_at", "sets")
    @classmethod
    def reject_null(cls, v: Any, info: ValidationInfo) -> Any:
        """Omit a field to keep it; null is not a value for these."""
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class LiftLogRead(LiftLogBase):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    user_id: UUID
    exercise_id: UUID
    logged_at: datetime
    is_pr: bool = False
    pr_count: int = 0
    sets: list[LiftSetRead] = []
