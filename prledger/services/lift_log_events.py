"""Lift log events and the listener that keeps the PR ledger in step with them.

Routing for a completed log:

    is_update  has_subsequent_logs  action
    True       -                    recalculate
    False      True                 recalculate (backdated entry)
    False      False                detect (incremental)

A deleted log always recalculates. Ledger work runs under the scope lock in its
own transaction, after the raw log write has committed; a failure there is logged
and leaves the log itself alone.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from prledger.models.lift_log import LiftLog
from prledger.models.personal_record import PersonalRecord
from prledger.services.pr_detection import detect_and_record
from prledger.services.pr_recalculation import recalculate_scope
from prledger.services.scope_locks import ScopeLockRegistry, scope_locks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiftLogCompleted:
    lift_log_id: uuid.UUID
    user_id: uuid.UUID
    exercise_id: uuid.UUID
    logged_at: datetime
    is_update: bool = False


@dataclass(frozen=True)
class LiftLogDeleted:
    user_id: uuid.UUID
    exercise_id: uuid.UUID
    lift_log_id: uuid.UUID | None = None


@dataclass(frozen=True)
class PersonalRecordsAchieved:
    user_id: uuid.UUID
    exercise_id: uuid.UUID
    lift_log_id: uuid.UUID
    records: tuple[PersonalRecord, ...] = field(default_factory=tuple)


Handler = Callable[[object], Awaitable[object]]


class EventBus:
    """In-process async publish/subscribe keyed by event class."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    async def publish(self, event: object) -> list[object]:
        """Run every handler for the event in subscription order; returns their results.

        A failing handler is logged and does not stop the others.
        """
        results = []
        for handler in self._handlers.get(type(event), []):
            try:
                results.append(await handler(event))
            except Exception:
                logger.exception("Handler %r failed for %s", handler, type(event).__name__)
                results.append(None)
        return results


class LedgerAction(str, Enum):
    DETECT = "detect"
    RECALCULATE = "recalculate"


@dataclass
class LedgerOutcome:
    action: LedgerAction
    records: list[PersonalRecord]


def choose_action(is_update: bool, has_subsequent_logs: bool) -> LedgerAction:
    """Incremental detection only for a genuinely new entry that is the latest in its scope."""
    if is_update or has_subsequent_logs:
        return LedgerAction.RECALCULATE
    return LedgerAction.DETECT


async def has_subsequent_logs(db: AsyncSession, lift_log: LiftLog) -> bool:
    """Another entry of the scope logged later, or at the same second (ties take the safe path)."""
    stmt = select(
        exists().where(
            LiftLog.user_id == lift_log.user_id,
            LiftLog.exercise_id == lift_log.exercise_id,
            LiftLog.id != lift_log.id,
            LiftLog.logged_at >= lift_log.logged_at,
        )
    )
    return bool(await db.scalar(stmt))


class PersonalRecordListener:
    """Reacts to lift log events by detecting or recalculating records."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        bus: EventBus | None = None,
        locks: ScopeLockRegistry | None = None,
    ):
        self.session_maker = session_maker
        self.bus = bus
        self.locks = locks if locks is not None else scope_locks

    def register(self, bus: EventBus) -> None:
        self.bus = bus
        bus.subscribe(LiftLogCompleted, self.handle_completed)
        bus.subscribe(LiftLogDeleted, self.handle_deleted)

    async def handle_completed(self, event: LiftLogCompleted) -> LedgerOutcome | None:
        try:
            async with self.locks.hold(event.user_id, event.exercise_id):
                outcome = await self._process_completed(event)
        except Exception:
            logger.exception(
                "PR processing failed for lift log %s (user %s exercise %s)",
                event.lift_log_id,
                event.user_id,
                event.exercise_id,
            )
            return None

        if outcome.action == LedgerAction.DETECT and outcome.records and self.bus is not None:
            await self.bus.publish(
                PersonalRecordsAchieved(
                    user_id=event.user_id,
                    exercise_id=event.exercise_id,
                    lift_log_id=event.lift_log_id,
                    records=tuple(outcome.records),
                )
            )
        return outcome

    async def handle_deleted(self, event: LiftLogDeleted) -> LedgerOutcome | None:
        try:
            async with self.locks.hold(event.user_id, event.exercise_id):
                async with self.session_maker() as db:
                    async with db.begin():
                        records = await recalculate_scope(db, event.user_id, event.exercise_id)
        except Exception:
            logger.exception("PR recalculation after delete failed (user %s exercise %s)", event.user_id, event.exercise_id)
            return None
        return LedgerOutcome(LedgerAction.RECALCULATE, records)

    async def _process_completed(self, event: LiftLogCompleted) -> LedgerOutcome:
        async with self.session_maker() as db:
            async with db.begin():
                lift_log = await db.get(LiftLog, event.lift_log_id)
                if lift_log is None:
                    action = LedgerAction.RECALCULATE
                else:
                    action = choose_action(event.is_update, await has_subsequent_logs(db, lift_log))
                logger.debug("Lift log %s (update=%s): %s", event.lift_log_id, event.is_update, action.value)

                if action == LedgerAction.DETECT:
                    records = await detect_and_record(db, lift_log)
                else:
                    records = await recalculate_scope(db, event.user_id, event.exercise_id)
        return LedgerOutcome(action, records)
