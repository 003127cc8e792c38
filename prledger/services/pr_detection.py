"""PR detection: decide which records a lift log sets against the history before it.

RecordBook holds the best-so-far state of one (user, exercise) scope. The
incremental path (detect_and_record) fills it from the entries logged before the
new one; the recalculator (pr_recalculation) feeds it every entry in order.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from prledger.core.config import get_settings
from prledger.core.enums import PRType
from prledger.models.lift_log import LiftLog, LiftSet
from prledger.models.personal_record import PersonalRecord
from prledger.services.exercise_types import EstimationContext, ExerciseType, get_exercise_type
from prledger.services.personal_records import ScopeKey, latest_records

logger = logging.getLogger(__name__)


def _beats(new: float, old: float, tolerance: float) -> bool:
    """new exceeds old by more than tolerance, compared at a fixed precision."""
    return round(new - old, 6) > tolerance


@dataclass
class _Candidate:
    lift_log: LiftLog
    pr_type: PRType
    rep_count: int | None
    weight: float | None
    value: float

    @property
    def key(self) -> ScopeKey:
        return self.pr_type, self.rep_count, self.weight if self.pr_type == PRType.HYPERTROPHY else None


class RecordBook:
    """Best-so-far state for one scope.

    best_one_rm: highest estimated 1RM seen so far (0.0 before any history).
    best_weight_by_reps: heaviest weight seen at each exact rep count.
    best_volume: highest entry total (sum of weight x reps) seen so far.
    best_reps_by_weight: most reps seen in one set at each exact weight.
    latest: most recent record per scope key, the link target for the next one.
    """

    def __init__(
        self,
        exercise_type: ExerciseType,
        tolerance: float | None = None,
        rep_specific_max_reps: int | None = None,
    ):
        settings = get_settings()
        self.exercise_type = exercise_type
        self.tolerance = settings.pr_tolerance if tolerance is None else tolerance
        self.rep_specific_max_reps = (
            settings.rep_specific_max_reps if rep_specific_max_reps is None else rep_specific_max_reps
        )
        self.best_one_rm = 0.0
        self.best_weight_by_reps: dict[int, float] = {}
        self.best_volume = 0.0
        self.best_reps_by_weight: dict[float, int] = {}
        self.latest: dict[ScopeKey, PersonalRecord] = {}
        self.has_history = False

    def tracks(self, pr_type: PRType) -> bool:
        return pr_type in self.exercise_type.supported_pr_types

    def scored_sets(self, lift_log: LiftLog) -> Iterator[tuple[LiftSet, float]]:
        """(set, estimated 1RM) for every usable set. A set the estimator fails on is skipped."""
        context = EstimationContext.for_log(lift_log)
        for lift_set in lift_log.sets:
            if not lift_set.weight or lift_set.weight <= 0 or not lift_set.reps or lift_set.reps <= 0:
                continue
            try:
                one_rm = self.exercise_type.estimate_one_rep_max(lift_set.weight, lift_set.reps, context)
            except Exception as e:
                logger.debug("Skipping set %s of lift log %s: %s", lift_set.id, lift_log.id, e)
                continue
            yield lift_set, one_rm

    def absorb(self, lift_log: LiftLog) -> None:
        """Fold an entry into the best-so-far state without creating records."""
        self.has_history = True
        volume = 0.0
        for lift_set, one_rm in self.scored_sets(lift_log):
            volume += lift_set.weight * lift_set.reps
            if one_rm > self.best_one_rm:
                self.best_one_rm = one_rm
            if lift_set.weight > self.best_weight_by_reps.get(lift_set.reps, 0.0):
                self.best_weight_by_reps[lift_set.reps] = float(lift_set.weight)
            weight = float(lift_set.weight)
            if lift_set.reps > self.best_reps_by_weight.get(weight, 0):
                self.best_reps_by_weight[weight] = lift_set.reps
        if volume > self.best_volume:
            self.best_volume = volume

    def _candidates(self, lift_logs: Sequence[LiftLog]) -> list[_Candidate]:
        best: _Candidate | None = None
        top_volume: _Candidate | None = None
        heaviest_by_reps: dict[int, _Candidate] = {}
        most_reps_by_weight: dict[float, _Candidate] = {}
        for lift_log in lift_logs:
            volume = 0.0
            for lift_set, one_rm in self.scored_sets(lift_log):
                weight = float(lift_set.weight)
                volume += weight * lift_set.reps
                if best is None or one_rm > best.value:
                    best = _Candidate(lift_log, PRType.ONE_RM, None, weight, one_rm)

                # Only weights already logged can set a hypertrophy record
                previous_reps = self.best_reps_by_weight.get(weight)
                if previous_reps is not None and lift_set.reps > previous_reps:
                    current = most_reps_by_weight.get(weight)
                    if current is None or lift_set.reps > current.value:
                        most_reps_by_weight[weight] = _Candidate(
                            lift_log, PRType.HYPERTROPHY, None, weight, float(lift_set.reps)
                        )

                if lift_set.reps > self.rep_specific_max_reps:
                    continue
                if not _beats(weight, self.best_weight_by_reps.get(lift_set.reps, 0.0), self.tolerance):
                    continue
                current = heaviest_by_reps.get(lift_set.reps)
                if current is None or weight > current.weight:
                    heaviest_by_reps[lift_set.reps] = _Candidate(
                        lift_log, PRType.REP_SPECIFIC, lift_set.reps, weight, weight
                    )
            if volume > 0 and (top_volume is None or volume > top_volume.value):
                top_volume = _Candidate(lift_log, PRType.VOLUME, None, None, volume)

        candidates: list[_Candidate] = []
        if best is not None:
            if not self.has_history:
                beats_one_rm = best.value > 0
            else:
                beats_one_rm = _beats(best.value, self.best_one_rm, self.tolerance)
            if beats_one_rm:
                candidates.append(best)
        candidates.extend(heaviest_by_reps[reps] for reps in sorted(heaviest_by_reps))
        if top_volume is not None and (
            not self.has_history or _beats(top_volume.value, self.best_volume, self.tolerance)
        ):
            candidates.append(top_volume)
        candidates.extend(most_reps_by_weight[weight] for weight in sorted(most_reps_by_weight))
        return [c for c in candidates if self.tracks(c.pr_type)]

    def evaluate(self, lift_logs: Sequence[LiftLog]) -> list[PersonalRecord]:
        """Records set by entries logged at one instant, linked onto the current chain heads.

        Does not absorb the entries; call absorb() once the records are kept.
        """
        records: list[PersonalRecord] = []
        for candidate in self._candidates(lift_logs):
            key = candidate.key
            previous = self.latest.get(key)
            record = PersonalRecord(
                id=uuid.uuid4(),
                user_id=candidate.lift_log.user_id,
                exercise_id=candidate.lift_log.exercise_id,
                lift_log_id=candidate.lift_log.id,
                pr_type=candidate.pr_type,
                rep_count=candidate.rep_count,
                weight=candidate.weight,
                value=candidate.value,
                previous_pr_id=previous.id if previous is not None else None,
                previous_value=previous.value if previous is not None else None,
                achieved_at=candidate.lift_log.logged_at,
            )
            self.latest[key] = record
            records.append(record)
        return records

    def record(self, lift_logs: Sequence[LiftLog]) -> list[PersonalRecord]:
        """evaluate() then absorb() each entry."""
        records = self.evaluate(lift_logs)
        for lift_log in lift_logs:
            self.absorb(lift_log)
        return records


def apply_pr_flags(lift_log: LiftLog, records: Sequence[PersonalRecord]) -> None:
    """is_pr / pr_count from the records this entry produced."""
    count = sum(1 for r in records if r.lift_log_id == lift_log.id)
    lift_log.is_pr = count > 0
    lift_log.pr_count = count


async def load_scope_logs(
    db: AsyncSession,
    user_id: uuid.UUID,
    exercise_id: uuid.UUID,
    before=None,
) -> list[LiftLog]:
    """Entries of a scope (with sets), oldest first; only those logged strictly before `before` if given."""
    stmt = (
        select(LiftLog)
        .where(LiftLog.user_id == user_id, LiftLog.exercise_id == exercise_id)
        .options(selectinload(LiftLog.sets))
        .order_by(LiftLog.logged_at, LiftLog.id)
    )
    if before is not None:
        stmt = stmt.where(LiftLog.logged_at < before)
    result = await db.execute(stmt)
    return list(result.scalars())


async def detect_and_record(db: AsyncSession, lift_log: LiftLog) -> list[PersonalRecord]:
    """
    Create the records a new, chronologically-last lift log sets and flag the log.
    Returns the created records (empty when the exercise type tracks no 1RM).
    Runs in a savepoint so records and flags land together.
    """
    async with db.begin_nested():
        result = await db.execute(
            select(LiftLog)
            .where(LiftLog.id == lift_log.id)
            .options(selectinload(LiftLog.sets), selectinload(LiftLog.exercise))
            .execution_options(populate_existing=True)
        )
        lift_log = result.scalar_one()
        exercise_type = get_exercise_type(lift_log.exercise)

        # Re-detecting the same entry replaces what it produced before
        await db.execute(delete(PersonalRecord).where(PersonalRecord.lift_log_id == lift_log.id))

        if not exercise_type.supports_one_rep_max:
            logger.debug("Lift log %s: %r tracks no 1RM records", lift_log.id, exercise_type)
            apply_pr_flags(lift_log, [])
            return []

        book = RecordBook(exercise_type)
        for previous in await load_scope_logs(db, lift_log.user_id, lift_log.exercise_id, before=lift_log.logged_at):
            book.absorb(previous)
        book.latest = await latest_records(db, lift_log.user_id, lift_log.exercise_id, before=lift_log.logged_at)

        records = book.evaluate([lift_log])
        db.add_all(records)
        apply_pr_flags(lift_log, records)
        await db.flush()

    logger.debug(
        "Lift log %s: %d record(s) (best prior 1RM %.2f)",
        lift_log.id,
        len(records),
        book.best_one_rm,
    )
    return records
