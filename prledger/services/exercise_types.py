"""Exercise type capabilities: which records a modality can set and how it estimates 1RM.

Each modality maps to one ExerciseType instance (get_exercise_type). The mapping
is a plain lookup on Exercise.modality; callers never inspect the exercise class.
"""

from __future__ import annotations

from dataclasses import dataclass

from prledger.core.enums import ExerciseModality, PRType
from prledger.core.exceptions import OneRepMaxNotApplicable
from prledger.services.one_rep_max import estimate_one_rep_max


@dataclass(frozen=True)
class EstimationContext:
    """Per-log inputs some modalities need (bodyweight snapshot at logging time)."""

    bodyweight: float | None = None

    @classmethod
    def for_log(cls, lift_log) -> "EstimationContext":
        return cls(bodyweight=lift_log.bodyweight)


class ExerciseType:
    """Capability interface. Default behavior: no 1RM, no records."""

    modality: ExerciseModality
    supports_one_rep_max: bool = False
    supported_pr_types: tuple[PRType, ...] = ()

    def estimate_one_rep_max(self, weight: float, reps: int, context: EstimationContext | None = None) -> float:
        raise OneRepMaxNotApplicable.for_modality(self.modality.value)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.modality.value}>"


class FreeWeightExerciseType(ExerciseType):
    modality = ExerciseModality.FREE_WEIGHT
    supports_one_rep_max = True
    supported_pr_types = (PRType.ONE_RM, PRType.REP_SPECIFIC, PRType.VOLUME, PRType.HYPERTROPHY)

    def estimate_one_rep_max(self, weight: float, reps: int, context: EstimationContext | None = None) -> float:
        return estimate_one_rep_max(weight, reps)


class BodyweightExerciseType(ExerciseType):
    """Logged weight is extra load; the 1RM is estimated on bodyweight + extra."""

    modality = ExerciseModality.BODYWEIGHT
    supports_one_rep_max = True
    supported_pr_types = (PRType.ONE_RM, PRType.REP_SPECIFIC, PRType.VOLUME)

    def estimate_one_rep_max(self, weight: float, reps: int, context: EstimationContext | None = None) -> float:
        bodyweight = (context.bodyweight if context else None) or 0.0
        return estimate_one_rep_max(weight + bodyweight, reps)


class BandedExerciseType(ExerciseType):
    modality = ExerciseModality.BANDED


class CardioExerciseType(ExerciseType):
    modality = ExerciseModality.CARDIO


class TimedHoldExerciseType(ExerciseType):
    modality = ExerciseModality.TIMED_HOLD


EXERCISE_TYPES: dict[ExerciseModality, ExerciseType] = {
    t.modality: t
    for t in (
        FreeWeightExerciseType(),
        BodyweightExerciseType(),
        BandedExerciseType(),
        CardioExerciseType(),
        TimedHoldExerciseType(),
    )
}


def get_exercise_type(exercise_or_modality) -> ExerciseType:
    """Capability for an Exercise (or a bare modality). A missing modality means free weight."""
    modality = getattr(exercise_or_modality, "modality", exercise_or_modality)
    if modality is None:
        return EXERCISE_TYPES[ExerciseModality.FREE_WEIGHT]
    return EXERCISE_TYPES[ExerciseModality(modality)]
