"""Lift log endpoints. Each write commits the raw log first, then publishes the event
that updates the PR ledger."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from prledger.api.deps import get_event_bus
from prledger.db.session import get_db
from prledger.db.types import to_utc_seconds, utcnow
from prledger.models.exercise import Exercise
from prledger.models.lift_log import LiftLog, LiftSet
from prledger.models.user import User
from prledger.schemas.lift_log import LiftLogCreate, LiftLogRead, LiftLogUpdate, LiftSetCreate
from prledger.services.lift_log_events import EventBus, LiftLogCompleted, LiftLogDeleted

router = APIRouter()


def _build_sets(sets: list[LiftSetCreate]) -> list[LiftSet]:
    return [LiftSet(set_order=i, **s.model_dump()) for i, s in enumerate(sets)]


async def _load_lift_log(db: AsyncSession, lift_log_id: uuid.UUID) -> LiftLog:
    result = await db.execute(
        select(LiftLog)
        .where(LiftLog.id == lift_log_id)
        .options(selectinload(LiftLog.sets))
        .execution_options(populate_existing=True)
    )
    lift_log = result.scalar_one_or_none()
    if not lift_log:
        raise HTTPException(status_code=404, detail="Lift log not found")
    return lift_log


@router.post("", response_model=LiftLogRead, status_code=201)
async def create_lift_log(
    payload: LiftLogCreate,
    db: AsyncSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
):
    """Log an entry with its sets, then run PR detection (or a rebuild if it is backdated)."""
    if await db.get(User, payload.user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    if await db.get(Exercise, payload.exercise_id) is None:
        raise HTTPException(status_code=404, detail="Exercise not found")

    lift_log = LiftLog(
        user_id=payload.user_id,
        exercise_id=payload.exercise_id,
        logged_at=to_utc_seconds(payload.logged_at or utcnow()),
        comments=payload.comments,
        bodyweight=payload.bodyweight,
        sets=_build_sets(payload.sets),
    )
    db.add(lift_log)
    # Raw log commits before the ledger runs
    await db.commit()

    await bus.publish(
        LiftLogCompleted(
            lift_log_id=lift_log.id,
            user_id=lift_log.user_id,
            exercise_id=lift_log.exercise_id,
            logged_at=lift_log.logged_at,
            is_update=False,
        )
    )
    return await _load_lift_log(db, lift_log.id)


@router.get("/{lift_log_id}", response_model=LiftLogRead)
async def get_lift_log(
    lift_log_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get an entry with its sets and PR flags."""
    return await _load_lift_log(db, lift_log_id)


@router.patch("/{lift_log_id}", response_model=LiftLogRead)
async def update_lift_log(
    lift_log_id: uuid.UUID,
    payload: LiftLogUpdate,
    db: AsyncSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
):
    """Edit an entry (timestamp, comments, bodyweight, sets). Always rebuilds the scope's records."""
    lift_log = await _load_lift_log(db, lift_log_id)
    data = payload.model_dump(exclude_unset=True)
    new_sets = data.pop("sets", None)
    if data.get("logged_at") is not None:
        data["logged_at"] = to_utc_seconds(data["logged_at"])
    for k, v in data.items():
        setattr(lift_log, k, v)
    if new_sets is not None:
        lift_log.sets = _build_sets(payload.sets)
    await db.commit()

    await bus.publish(
        LiftLogCompleted(
            lift_log_id=lift_log.id,
            user_id=lift_log.user_id,
            exercise_id=lift_log.exercise_id,
            logged_at=lift_log.logged_at,
            is_update=True,
        )
    )
    return await _load_lift_log(db, lift_log.id)


@router.delete("/{lift_log_id}", status_code=204)
async def delete_lift_log(
    lift_log_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
):
    """Delete an entry (its sets and records cascade), then rebuild the scope's records."""
    lift_log = await _load_lift_log(db, lift_log_id)
    user_id, exercise_id = lift_log.user_id, lift_log.exercise_id
    await db.delete(lift_log)
    await db.commit()

    await bus.publish(LiftLogDeleted(user_id=user_id, exercise_id=exercise_id, lift_log_id=lift_log_id))
    return None
