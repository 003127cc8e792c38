"""Personal record endpoints: current records, chain history, trophy room, rebuild."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from prledger.core.exceptions import LedgerInvariantError
from prledger.db.session import get_db
from prledger.models.exercise import Exercise
from prledger.models.personal_record import PersonalRecord
from prledger.schemas.personal_record import LedgerRead, PersonalRecordRead, RecalculateRequest, RecalculateResult
from prledger.services.personal_records import (
    current_records,
    describe_record,
    record_history,
    scope_records,
    verify_chains,
)
from prledger.services.pr_recalculation import recalculate_scope
from prledger.services.scope_locks import scope_locks

router = APIRouter()


def _read(record: PersonalRecord) -> PersonalRecordRead:
    out = PersonalRecordRead.model_validate(record)
    out.description = describe_record(record)
    return out


@router.get("", response_model=list[PersonalRecordRead])
async def list_current_records(
    user_id: uuid.UUID,
    exercise_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Current record per type (and rep count) for one user and exercise."""
    return [_read(r) for r in await current_records(db, user_id, exercise_id)]


@router.get("/ledger", response_model=LedgerRead)
async def get_ledger(
    user_id: uuid.UUID,
    exercise_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Full ledger of one user and exercise; consistent is false when a chain needs a rebuild."""
    records = await scope_records(db, user_id, exercise_id)
    ledger = LedgerRead(records=[_read(r) for r in records])
    try:
        verify_chains(records)
    except LedgerInvariantError as e:
        ledger.consistent = False
        ledger.problem = str(e)
    return ledger


@router.get("/trophy-room", response_model=list[PersonalRecordRead])
async def pr_trophy_room(
    user_id: uuid.UUID,
    period: Literal["month", "year"] = "month",
    db: AsyncSession = Depends(get_db),
):
    """
    Records achieved in the given period, newest first.
    period=month: this calendar month; period=year: this calendar year.
    """
    now = datetime.now(timezone.utc)
    if period == "month":
        start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    else:
        start = now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)

    result = await db.execute(
        select(PersonalRecord)
        .where(
            PersonalRecord.user_id == user_id,
            PersonalRecord.deleted_at.is_(None),
            PersonalRecord.achieved_at >= start,
        )
        .order_by(PersonalRecord.achieved_at.desc())
    )
    return [_read(r) for r in result.scalars()]


@router.get("/{record_id}/history", response_model=list[PersonalRecordRead])
async def get_record_history(
    record_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """The record and every record it superseded, newest first."""
    history = await record_history(db, record_id)
    if not history:
        raise HTTPException(status_code=404, detail="Personal record not found")
    return [_read(r) for r in history]


@router.post("/recalculate", response_model=RecalculateResult)
async def recalculate_records(
    payload: RecalculateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Rebuild the ledger of one user and exercise from its full history."""
    if await db.get(Exercise, payload.exercise_id) is None:
        raise HTTPException(status_code=404, detail="Exercise not found")
    async with scope_locks.hold(payload.user_id, payload.exercise_id):
        records = await recalculate_scope(db, payload.user_id, payload.exercise_id)
        await db.commit()
    return RecalculateResult(
        user_id=payload.user_id,
        exercise_id=payload.exercise_id,
        records=[_read(r) for r in records],
    )
