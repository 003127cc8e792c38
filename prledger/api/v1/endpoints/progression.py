"""Progression suggestion - what to lift next time for an exercise."""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from prledger.db.session import get_db
from prledger.schemas.progression import ProgressionSuggestionRead
from prledger.services.progression import suggest_next

router = APIRouter()


@router.get("/suggestion", response_model=ProgressionSuggestionRead | None)
async def get_suggestion(
    user_id: uuid.UUID,
    exercise_id: uuid.UUID,
    as_of: datetime | None = None,
    db: AsyncSession = Depends(get_db),
):
    """
    Next session's weight/reps/sets from the latest entry (before as_of if given).
    Returns null when there is no history or the exercise has no progression model;
    suggested_weight is false when a weight cannot be derived.
    """
    suggestion = await suggest_next(db, user_id, exercise_id, as_of)
    if suggestion is None:
        return None
    return ProgressionSuggestionRead.model_validate(suggestion)
