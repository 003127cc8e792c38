"""Progression suggestion schema."""

from pydantic import BaseModel, ConfigDict

from prledger.core.enums import ProgressionModelName


class ProgressionSuggestionRead(BaseModel):
    """suggested_weight is false when no weight can be suggested."""

    model_config = ConfigDict(from_attributes=True)

    suggested_weight: float | bool
    reps: int
    sets: int
    last_weight: float
    last_reps: int
    last_sets: int
    model: ProgressionModelName
    band_color: str | None = None  # banded model only
