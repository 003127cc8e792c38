"""Exercise and User schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from prledger.core.enums import BandType, ExerciseModality, ProgressionModelName


class ExerciseBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    unit: str = Field(default="kg", max_length=20)
    modality: ExerciseModality = ExerciseModality.FREE_WEIGHT
    progression_model: ProgressionModelName | None = None
    band_type: BandType | None = None


class ExerciseCreate(ExerciseBase):
    pass


class ExerciseRead(ExerciseBase):
    model_config = ConfigDict(from_attributes=True)
    id: UUID


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class UserRead(UserCreate):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
