"""Shared fixtures: a throwaway SQLite database per test and a small ledger harness.

Every helper opens its own session so no test holds a read transaction open while
the listener writes from another connection.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy import select

from prledger.core.enums import ExerciseModality
from prledger.db.base import Base
from prledger.db.session import build_engine, build_session_maker
from prledger.models import Exercise, LiftLog, LiftSet, PersonalRecord, User
from prledger.services.lift_log_events import (
    EventBus,
    LiftLogCompleted,
    LiftLogDeleted,
    PersonalRecordListener,
)
from prledger.services.scope_locks import ScopeLockRegistry

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def at(day: int, seconds: int = 0) -> datetime:
    """Fixed timestamps: day 1 is 2026-01-01 12:00 UTC."""
    return BASE_TIME + timedelta(days=day - 1, seconds=seconds)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'prledger-test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return build_session_maker(engine)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


class LedgerHarness:
    """One (user, exercise) scope plus the listener that maintains its records."""

    def __init__(self, session_maker, user_id: uuid.UUID, exercise_id: uuid.UUID, bus: EventBus | None = None):
        self.session_maker = session_maker
        self.user_id = user_id
        self.exercise_id = exercise_id
        self.bus = bus if bus is not None else EventBus()
        self.listener = PersonalRecordListener(session_maker, locks=ScopeLockRegistry())
        self.listener.register(self.bus)
        self.last_outcome = None

    async def add(self, logged_at: datetime, *sets: tuple[float, int], bodyweight: float | None = None) -> uuid.UUID:
        """Commit a raw lift log without touching the ledger."""
        async with self.session_maker() as db:
            lift_log = LiftLog(
                user_id=self.user_id,
                exercise_id=self.exercise_id,
                logged_at=logged_at,
                bodyweight=bodyweight,
                sets=[LiftSet(set_order=i, weight=w, reps=r) for i, (w, r) in enumerate(sets)],
            )
            db.add(lift_log)
            await db.commit()
            return lift_log.id

    async def log(self, logged_at: datetime, *sets: tuple[float, int], bodyweight: float | None = None) -> uuid.UUID:
        """Commit a lift log and publish it, the way the create endpoint does."""
        lift_log_id = await self.add(logged_at, *sets, bodyweight=bodyweight)
        results = await self.bus.publish(
            LiftLogCompleted(lift_log_id, self.user_id, self.exercise_id, logged_at, is_update=False)
        )
        self.last_outcome = results[0]
        return lift_log_id

    async def edit(self, lift_log_id: uuid.UUID, *sets: tuple[float, int]) -> None:
        async with self.session_maker() as db:
            lift_log = await db.get(LiftLog, lift_log_id)
            await db.refresh(lift_log, ["sets"])
            lift_log.sets = [LiftSet(set_order=i, weight=w, reps=r) for i, (w, r) in enumerate(sets)]
            await db.commit()
            logged_at = lift_log.logged_at
        results = await self.bus.publish(
            LiftLogCompleted(lift_log_id, self.user_id, self.exercise_id, logged_at, is_update=True)
        )
        self.last_outcome = results[0]

    async def delete(self, lift_log_id: uuid.UUID) -> None:
        async with self.session_maker() as db:
            lift_log = await db.get(LiftLog, lift_log_id)
            await db.delete(lift_log)
            await db.commit()
        results = await self.bus.publish(LiftLogDeleted(self.user_id, self.exercise_id, lift_log_id))
        self.last_outcome = results[0]

    async def records(self) -> list[PersonalRecord]:
        """Live records of the scope ordered by achieved_at."""
        async with self.session_maker() as db:
            result = await db.execute(
                select(PersonalRecord)
                .where(
                    PersonalRecord.user_id == self.user_id,
                    PersonalRecord.exercise_id == self.exercise_id,
                    PersonalRecord.deleted_at.is_(None),
                )
                .order_by(PersonalRecord.achieved_at, PersonalRecord.pr_type, PersonalRecord.rep_count)
            )
            return list(result.scalars())

    async def lift_log(self, lift_log_id: uuid.UUID) -> LiftLog:
        async with self.session_maker() as db:
            return await db.get(LiftLog, lift_log_id)


async def create_scope(session_maker, modality: ExerciseModality = ExerciseModality.FREE_WEIGHT, **exercise_fields):
    async with session_maker() as db:
        user = User(name="Test Lifter")
        exercise = Exercise(name="Bench Press", modality=modality, **exercise_fields)
        db.add_all([user, exercise])
        await db.commit()
        return user.id, exercise.id


@pytest.fixture
def bus():
    return EventBus()


@pytest_asyncio.fixture
async def ledger(session_maker, bus):
    user_id, exercise_id = await create_scope(session_maker)
    return LedgerHarness(session_maker, user_id, exercise_id, bus)


@pytest.fixture
def make_ledger(session_maker):
    """Factory for extra scopes (other modalities, second exercise)."""

    async def _make(modality: ExerciseModality = ExerciseModality.FREE_WEIGHT, **exercise_fields):
        user_id, exercise_id = await create_scope(session_maker, modality, **exercise_fields)
        return LedgerHarness(session_maker, user_id, exercise_id)

    return _make
