"""Ledger helpers: chain lookups, chain verification, and record descriptions."""

from __future__ import annotations

import uuid
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from prledger.core.enums import PRType
from prledger.core.exceptions import LedgerInvariantError
from prledger.models.personal_record import PersonalRecord

# (pr_type, rep_count, weight); rep_count is set for rep_specific, weight for hypertrophy
ScopeKey = tuple[PRType, int | None, float | None]


def _live_records(user_id: uuid.UUID, exercise_id: uuid.UUID):
    return select(PersonalRecord).where(
        PersonalRecord.user_id == user_id,
        PersonalRecord.exercise_id == exercise_id,
        PersonalRecord.deleted_at.is_(None),
    )


async def latest_records(
    db: AsyncSession,
    user_id: uuid.UUID,
    exercise_id: uuid.UUID,
    before: datetime | None = None,
) -> dict[ScopeKey, PersonalRecord]:
    """Most recent live record per scope key, optionally achieved strictly before `before`."""
    stmt = _live_records(user_id, exercise_id)
    if before is not None:
        stmt = stmt.where(PersonalRecord.achieved_at < before)
    stmt = stmt.order_by(PersonalRecord.achieved_at.desc(), PersonalRecord.value.desc())
    result = await db.execute(stmt)
    latest: dict[ScopeKey, PersonalRecord] = {}
    for record in result.scalars():
        latest.setdefault(record.scope_key, record)
    return latest


async def scope_records(db: AsyncSession, user_id: uuid.UUID, exercise_id: uuid.UUID) -> list[PersonalRecord]:
    """All live records of a scope in chain order."""
    result = await db.execute(
        _live_records(user_id, exercise_id).order_by(
            PersonalRecord.pr_type, PersonalRecord.rep_count, PersonalRecord.achieved_at
        )
    )
    return list(result.scalars())


async def current_records(db: AsyncSession, user_id: uuid.UUID, exercise_id: uuid.UUID) -> list[PersonalRecord]:
    """Chain heads: the record per scope key nothing has superseded yet."""
    latest = await latest_records(db, user_id, exercise_id)
    return sorted(latest.values(), key=lambda r: (r.pr_type.value, r.rep_count or 0, r.weight or 0))


async def record_history(db: AsyncSession, record_id: uuid.UUID) -> list[PersonalRecord]:
    """The record followed by everything it superseded, newest first."""
    history: list[PersonalRecord] = []
    seen: set[uuid.UUID] = set()
    next_id: uuid.UUID | None = record_id
    while next_id is not None and next_id not in seen:
        record = await db.get(PersonalRecord, next_id)
        if record is None or record.deleted_at is not None:
            break
        history.append(record)
        seen.add(record.id)
        next_id = record.previous_pr_id
    return history


def verify_chains(records: Iterable[PersonalRecord]) -> None:
    """Raise LedgerInvariantError unless every chain is a strictly time-ordered linked list.

    Checks per (user, exercise, scope key): achieved_at strictly increases,
    each record links to the one before it in achieved_at order (the first links to
    nothing), and exactly one record is current.
    """
    chains: dict[tuple, list[PersonalRecord]] = defaultdict(list)
    for record in records:
        if record.deleted_at is not None:
            continue
        chains[(record.user_id, record.exercise_id, *record.scope_key)].append(record)

    for key, chain in chains.items():
        chain.sort(key=lambda r: r.achieved_at)
        previous: PersonalRecord | None = None
        for record in chain:
            if previous is not None and record.achieved_at <= previous.achieved_at:
                raise LedgerInvariantError(f"{key}: two records achieved at {record.achieved_at.isoformat()}")
            expected_id = previous.id if previous is not None else None
            if record.previous_pr_id != expected_id:
                raise LedgerInvariantError(
                    f"{key}: record {record.id} links to {record.previous_pr_id}, expected {expected_id}"
                )
            if previous is not None and record.previous_value != previous.value:
                raise LedgerInvariantError(f"{key}: record {record.id} carries a stale previous_value")
            previous = record
        superseded = {r.previous_pr_id for r in chain if r.previous_pr_id is not None}
        heads = [r for r in chain if r.id not in superseded]
        if len(heads) != 1:
            raise LedgerInvariantError(f"{key}: {len(heads)} current records")


def describe_record(record: PersonalRecord) -> str:
    """Short reason text shown with a new record."""
    if record.previous_value is None:
        if record.pr_type == PRType.HYPERTROPHY:
            return f"First recorded best at {record.weight or 0:.1f}: {int(record.value)} reps"
        label = f"{record.rep_count}-rep max" if record.pr_type == PRType.REP_SPECIFIC else record.pr_type.value
        return f"First recorded {label}: {record.value:.1f}"
    if record.pr_type == PRType.ONE_RM:
        return f"New 1RM: {record.value:.1f} (previous: {record.previous_value:.1f})"
    if record.pr_type == PRType.REP_SPECIFIC:
        return f"New {record.rep_count}-rep max: {record.value:.1f} (previous: {record.previous_value:.1f})"
    if record.pr_type == PRType.VOLUME:
        return f"New volume: {int(record.value)} (previous: {int(record.previous_value)})"
    if record.pr_type == PRType.HYPERTROPHY:
        return (
            f"New best at {record.weight or 0:.1f}: {int(record.value)} reps "
            f"(previous: {int(record.previous_value)} reps)"
        )
    return f"New {record.pr_type.value} PR: {record.value}"
