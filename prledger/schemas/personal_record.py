"""PersonalRecord schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from prledger.core.enums import PRType


class PersonalRecordRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    exercise_id: UUID
    lift_log_id: UUID
    pr_type: PRType
    rep_count: int | None = None
    weight: float | None = None
    value: float
    previous_pr_id: UUID | None = None
    previous_value: float | None = None
    achieved_at: datetime
    description: str | None = None


class RecalculateRequest(BaseModel):
    user_id: UUID
    exercise_id: UUID


class RecalculateResult(BaseModel):
    user_id: UUID
    exercise_id: UUID
    records: list[PersonalRecordRead] = []


class LedgerRead(BaseModel):
    """Every live record of a scope in chain order, plus a chain consistency check."""

    records: list[PersonalRecordRead] = []
    consistent: bool = True
    problem: str | None = None
