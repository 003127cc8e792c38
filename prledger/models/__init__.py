"""ORM models - import all so Base.metadata is complete for migrations."""

from prledger.models.exercise import Exercise
from prledger.models.lift_log import LiftLog, LiftSet
from prledger.models.personal_record import PersonalRecord
from prledger.models.user import User

__all__ = [
    "Exercise",
    "LiftLog",
    "LiftSet",
    "PersonalRecord",
    "User",
]
