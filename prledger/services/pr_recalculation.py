"""PR recalculation: rebuild a scope's record ledger from its full, ordered history.

Used whenever an entry is edited, deleted, or logged behind an existing one. The
rebuild is one pass over the entries in logged_at order. Entries sharing the same
second are evaluated together so no chain gets two records at one instant.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from itertools import groupby

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from prledger.models.exercise import Exercise
from prledger.models.lift_log import LiftLog
from prledger.models.personal_record import PersonalRecord
from prledger.services.exercise_types import get_exercise_type
from prledger.services.pr_detection import RecordBook, apply_pr_flags, load_scope_logs

logger = logging.getLogger(__name__)


async def _lock_scope(db: AsyncSession, user_id: uuid.UUID, exercise_id: uuid.UUID) -> None:
    """Row-lock the scope's records for the rest of the transaction (no-op on SQLite)."""
    await db.execute(
        select(PersonalRecord.id)
        .where(PersonalRecord.user_id == user_id, PersonalRecord.exercise_id == exercise_id)
        .with_for_update()
    )


async def recalculate_scope(db: AsyncSession, user_id: uuid.UUID, exercise_id: uuid.UUID) -> list[PersonalRecord]:
    """
    Delete every record of (user, exercise) and replay all lift logs oldest first.
    Also rewrites is_pr / pr_count on every log of the scope. All of it happens in
    one savepoint: if anything fails the previous ledger is left untouched and the
    error propagates. Returns the new records in creation order.
    """
    async with db.begin_nested():
        await _lock_scope(db, user_id, exercise_id)
        exercise = await db.get(Exercise, exercise_id)
        exercise_type = get_exercise_type(exercise)

        deleted = await db.execute(
            delete(PersonalRecord).where(
                PersonalRecord.user_id == user_id,
                PersonalRecord.exercise_id == exercise_id,
            )
        )
        lift_logs = await load_scope_logs(db, user_id, exercise_id)

        records: list[PersonalRecord] = []
        if exercise_type.supports_one_rep_max:
            book = RecordBook(exercise_type)
            for _, same_instant in groupby(lift_logs, key=lambda log: log.logged_at):
                records.extend(book.record(list(same_instant)))
            db.add_all(records)

        for lift_log in lift_logs:
            apply_pr_flags(lift_log, records)
        await db.flush()

    logger.info(
        "Recalculated PRs for user %s exercise %s: %d log(s), %d record(s) replaced by %d",
        user_id,
        exercise_id,
        len(lift_logs),
        deleted.rowcount,
        len(records),
    )
    return records


@dataclass
class RecalculationReport:
    """Outcome of a bulk rebuild across many scopes."""

    scopes: int = 0
    processed: int = 0
    records: int = 0
    errors: list[tuple[uuid.UUID, uuid.UUID, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


async def list_scopes(
    db: AsyncSession,
    user_id: uuid.UUID | None = None,
    exercise_id: uuid.UUID | None = None,
) -> list[tuple[uuid.UUID, uuid.UUID]]:
    """Distinct (user, exercise) pairs that have lift logs."""
    stmt = select(LiftLog.user_id, LiftLog.exercise_id).distinct()
    if user_id is not None:
        stmt = stmt.where(LiftLog.user_id == user_id)
    if exercise_id is not None:
        stmt = stmt.where(LiftLog.exercise_id == exercise_id)
    result = await db.execute(stmt)
    return [(row.user_id, row.exercise_id) for row in result]


async def recalculate_all(
    session_maker: async_sessionmaker[AsyncSession],
    user_id: uuid.UUID | None = None,
    exercise_id: uuid.UUID | None = None,
    dry_run: bool = False,
) -> RecalculationReport:
    """Rebuild every matching scope, each in its own transaction. One failing scope does not stop the rest."""
    async with session_maker() as db:
        scopes = await list_scopes(db, user_id, exercise_id)

    report = RecalculationReport(scopes=len(scopes))
    for scope_user_id, scope_exercise_id in scopes:
        if dry_run:
            report.processed += 1
            continue
        try:
            async with session_maker() as db:
                async with db.begin():
                    records = await recalculate_scope(db, scope_user_id, scope_exercise_id)
        except Exception as e:
            logger.exception("Recalculation failed for user %s exercise %s", scope_user_id, scope_exercise_id)
            report.errors.append((scope_user_id, scope_exercise_id, str(e)))
            continue
        report.processed += 1
        report.records += len(records)
    return report
