"""Shared enums for models and API."""

from enum import Enum


class ExerciseModality(str, Enum):
    """How an exercise is loaded; decides which records it can set."""

    FREE_WEIGHT = "free_weight"  # Barbell, dumbbell, machine
    BODYWEIGHT = "bodyweight"  # Weight field is extra load on top of bodyweight
    BANDED = "banded"  # Band color instead of weight
    CARDIO = "cardio"  # Distance / rounds
    TIMED_HOLD = "timed_hold"  # Planks, hangs


class PRType(str, Enum):
    """Type of personal record."""

    ONE_RM = "one_rm"  # Best estimated one-rep max
    REP_SPECIFIC = "rep_specific"  # Heaviest weight at an exact rep count (1-10)
    VOLUME = "volume"  # Highest entry total of weight × reps
    HYPERTROPHY = "hypertrophy"  # Most reps at a given weight


class ProgressionModelName(str, Enum):
    """Progression strategy used for next-session suggestions."""

    LINEAR = "linear"
    DOUBLE = "double"
    BANDED = "banded"


class BandType(str, Enum):
    """What a band does; decides which direction along the band order is harder."""

    RESISTANCE = "resistance"  # Band adds load: heavier band is harder
    ASSISTANCE = "assistance"  # Band takes load off: lighter band is harder
