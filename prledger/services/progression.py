"""Next-session suggestions from the most recent logged entry.

Three progression models, picked per exercise through PROGRESSION_MODELS:

- Linear: estimate the 1RM from the last top set, take the weight that 1RM predicts
  for the target reps, round it to the increment and add one increment.
- Double: work up a rep band (8-12) at a fixed weight; once the top of the band is
  reached, add one increment and drop back to the bottom of the band.
- Banded: add reps on the same band up to band_max_reps, then move to the next
  harder band at band_reset_reps.

Only the single latest entry of the scope is read.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from prledger.core.config import Settings, get_settings
from prledger.core.enums import BandType, ExerciseModality, ProgressionModelName
from prledger.models.exercise import Exercise
from prledger.models.lift_log import LiftLog
from prledger.services.exercise_types import EstimationContext, ExerciseType, get_exercise_type
from prledger.services.one_rep_max import weight_for_reps

logger = logging.getLogger(__name__)

# suggested_weight value meaning "no weight can be suggested" (1RM not estimable)
CANNOT_SUGGEST = False


@dataclass(frozen=True)
class ProgressionSuggestion:
    suggested_weight: float | bool  # CANNOT_SUGGEST when no weight can be derived
    reps: int
    sets: int
    last_weight: float
    last_reps: int
    last_sets: int
    model: ProgressionModelName
    band_color: str | None = None

    @property
    def can_suggest_weight(self) -> bool:
        return self.suggested_weight is not CANNOT_SUGGEST


@dataclass(frozen=True)
class LastPerformance:
    """Top set (heaviest, then most reps) and set count of one entry."""

    lift_log: LiftLog
    weight: float
    reps: int
    sets: int
    band_color: str | None = None

    @classmethod
    def from_log(cls, lift_log: LiftLog) -> "LastPerformance":
        if not lift_log.sets:
            return cls(lift_log, 0.0, 0, 0)
        top = max(lift_log.sets, key=lambda s: (s.weight or 0, s.reps or 0))
        return cls(lift_log, float(top.weight or 0), int(top.reps or 0), len(lift_log.sets), top.band_color)


def round_to_increment(value: float, increment: float) -> float:
    """Nearest multiple of increment, halves rounded up."""
    return math.floor(value / increment + 0.5) * increment


async def latest_lift_log(
    db: AsyncSession,
    user_id: uuid.UUID,
    exercise_id: uuid.UUID,
    as_of: datetime | None = None,
) -> LiftLog | None:
    """Most recent entry of the scope, logged strictly before as_of when given."""
    stmt = (
        select(LiftLog)
        .where(LiftLog.user_id == user_id, LiftLog.exercise_id == exercise_id)
        .options(selectinload(LiftLog.sets))
        .order_by(LiftLog.logged_at.desc(), LiftLog.id.desc())
        .limit(1)
    )
    if as_of is not None:
        stmt = stmt.where(LiftLog.logged_at < as_of)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


class ProgressionModel:
    name: ProgressionModelName

    def __init__(self, exercise_type: ExerciseType, settings: Settings | None = None):
        self.exercise_type = exercise_type
        self.settings = settings or get_settings()

    def suggest_from(self, last: LastPerformance) -> ProgressionSuggestion:
        raise NotImplementedError

    def _suggestion(self, last: LastPerformance, suggested_weight: float | bool, reps: int, **extra):
        return ProgressionSuggestion(
            suggested_weight=suggested_weight,
            reps=reps,
            sets=last.sets,
            last_weight=last.weight,
            last_reps=last.reps,
            last_sets=last.sets,
            model=self.name,
            **extra,
        )


class LinearProgression(ProgressionModel):
    name = ProgressionModelName.LINEAR

    def __init__(
        self,
        exercise_type: ExerciseType,
        settings: Settings | None = None,
        estimate: Callable[[float, int, EstimationContext], float] | None = None,
    ):
        super().__init__(exercise_type, settings)
        self.estimate = estimate or exercise_type.estimate_one_rep_max

    def target_weight(self, one_rep_max: float, reps: int) -> float:
        return weight_for_reps(one_rep_max, reps, self.settings.epley_coefficient)

    def suggest_from(self, last: LastPerformance) -> ProgressionSuggestion:
        increment = self.settings.progression_increment
        target_reps = self.settings.linear_target_reps or last.reps
        try:
            one_rep_max = self.estimate(last.weight, last.reps, EstimationContext.for_log(last.lift_log))
            target = self.target_weight(one_rep_max, target_reps)
            suggested_weight: float | bool = round_to_increment(target, increment) + increment
        except Exception as e:
            logger.debug("No weight for %.1f x %d: %s", last.weight, last.reps, e)
            suggested_weight = CANNOT_SUGGEST
        return self._suggestion(last, suggested_weight, last.reps)


class DoubleProgression(ProgressionModel):
    """Bodyweight exercises keep adding reps unless bodyweight_add_weight is set."""

    name = ProgressionModelName.DOUBLE

    def suggest_from(self, last: LastPerformance) -> ProgressionSuggestion:
        min_reps = self.settings.double_progression_min_reps
        max_reps = self.settings.double_progression_max_reps
        reps_only = (
            self.exercise_type.modality == ExerciseModality.BODYWEIGHT and not self.settings.bodyweight_add_weight
        )
        if last.reps < max_reps or reps_only:
            weight, reps = last.weight, last.reps + 1
        else:
            weight, reps = last.weight + self.settings.progression_increment, min_reps
        return self._suggestion(last, weight, reps)


class BandedProgression(ProgressionModel):
    name = ProgressionModelName.BANDED

    def __init__(
        self,
        exercise_type: ExerciseType,
        settings: Settings | None = None,
        band_type: BandType | None = None,
    ):
        super().__init__(exercise_type, settings)
        self.band_type = band_type or BandType.RESISTANCE

    def harder_band(self, band_color: str | None) -> str | None:
        """Next band in the harder direction, None on the hardest (or an unknown) band."""
        order = self.settings.band_order
        if band_color not in order:
            return None
        step = 1 if self.band_type == BandType.RESISTANCE else -1
        index = order.index(band_color) + step
        if 0 <= index < len(order):
            return order[index]
        return None

    def suggest_from(self, last: LastPerformance) -> ProgressionSuggestion:
        band, reps = last.band_color, last.reps + 1
        if last.reps >= self.settings.band_max_reps:
            harder = self.harder_band(last.band_color)
            if harder is not None:
                band, reps = harder, self.settings.band_reset_reps
            else:
                reps = last.reps
        return self._suggestion(last, last.weight, reps, band_color=band)


PROGRESSION_MODELS: dict[ProgressionModelName, type[ProgressionModel]] = {
    ProgressionModelName.LINEAR: LinearProgression,
    ProgressionModelName.DOUBLE: DoubleProgression,
    ProgressionModelName.BANDED: BandedProgression,
}


def select_progression_model(
    exercise: Exercise,
    settings: Settings | None = None,
    last_reps: int | None = None,
) -> ProgressionModelName | None:
    """Exercise override, then the per-modality default, then the last reps.

    The rep-range fallback only applies to modalities with a 1RM: last reps inside
    the double band pick double, anything else linear. None means no suggestions.
    """
    if exercise.progression_model is not None:
        return exercise.progression_model
    settings = settings or get_settings()
    name = settings.default_progression_models.get(exercise.modality)
    if name is not None:
        return name
    if not get_exercise_type(exercise).supports_one_rep_max:
        return None
    if last_reps is not None and (
        settings.double_progression_min_reps <= last_reps <= settings.double_progression_max_reps
    ):
        return ProgressionModelName.DOUBLE
    return ProgressionModelName.LINEAR


def build_progression_model(name: ProgressionModelName, exercise: Exercise) -> ProgressionModel:
    exercise_type = get_exercise_type(exercise)
    if name == ProgressionModelName.BANDED:
        return BandedProgression(exercise_type, band_type=exercise.band_type)
    return PROGRESSION_MODELS[name](exercise_type)


async def suggest_next(
    db: AsyncSession,
    user_id: uuid.UUID,
    exercise_id: uuid.UUID,
    as_of: datetime | None = None,
) -> ProgressionSuggestion | None:
    """Suggestion for the next session, or None without history or an applicable model."""
    exercise = await db.get(Exercise, exercise_id)
    if exercise is None:
        return None
    lift_log = await latest_lift_log(db, user_id, exercise_id, as_of)
    if lift_log is None:
        return None
    last = LastPerformance.from_log(lift_log)
    name = select_progression_model(exercise, last_reps=last.reps)
    if name is None:
        return None
    return build_progression_model(name, exercise).suggest_from(last)
