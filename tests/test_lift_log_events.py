"""Tests for the event bus, listener routing, scope locks and PR notifications."""

import asyncio
import logging
import uuid

import pytest

from conftest import at
from prledger.core.enums import PRType
from prledger.models.personal_record import PersonalRecord
from prledger.services.lift_log_events import (
    EventBus,
    LedgerAction,
    LiftLogCompleted,
    PersonalRecordsAchieved,
    choose_action,
)
from prledger.services.personal_records import describe_record
from prledger.services.pr_notifications import PRNotifier
from prledger.services.scope_locks import ScopeLockRegistry


@pytest.mark.unit
@pytest.mark.parametrize(
    "is_update,has_subsequent,expected",
    [
        (True, True, LedgerAction.RECALCULATE),
        (True, False, LedgerAction.RECALCULATE),
        (False, True, LedgerAction.RECALCULATE),
        (False, False, LedgerAction.DETECT),
    ],
)
def test_choose_action(is_update, has_subsequent, expected):
    assert choose_action(is_update, has_subsequent) == expected


@pytest.mark.unit
class TestEventBus:
    @pytest.mark.asyncio
    async def test_handlers_run_in_subscription_order(self):
        bus = EventBus()
        calls = []

        async def first(event):
            calls.append("first")
            return 1

        async def second(event):
            calls.append("second")
            return 2

        bus.subscribe(LiftLogCompleted, first)
        bus.subscribe(LiftLogCompleted, second)
        event = LiftLogCompleted(uuid.uuid4(), uuid.uuid4(), uuid.uuid4(), at(1))
        assert await bus.publish(event) == [1, 2]
        assert calls == ["first", "second"]

    @pytest.mark.asyncio
    async def test_failing_handler_is_logged_and_skipped(self, caplog):
        bus = EventBus()

        async def broken(event):
            raise RuntimeError("handler down")

        async def healthy(event):
            return "ok"

        bus.subscribe(LiftLogCompleted, broken)
        bus.subscribe(LiftLogCompleted, healthy)
        with caplog.at_level(logging.ERROR):
            results = await bus.publish(LiftLogCompleted(uuid.uuid4(), uuid.uuid4(), uuid.uuid4(), at(1)))
        assert results == [None, "ok"]
        assert "handler down" in caplog.text

    @pytest.mark.asyncio
    async def test_unsubscribed_event(self):
        assert await EventBus().publish(object()) == []


@pytest.mark.unit
class TestScopeLocks:
    @pytest.mark.asyncio
    async def test_same_scope_runs_one_at_a_time(self):
        locks = ScopeLockRegistry()
        user_id, exercise_id = uuid.uuid4(), uuid.uuid4()
        trace = []

        async def work(name):
            async with locks.hold(user_id, exercise_id):
                trace.append(f"{name} in")
                await asyncio.sleep(0.01)
                trace.append(f"{name} out")

        await asyncio.gather(work("a"), work("b"))
        assert trace == ["a in", "a out", "b in", "b out"]
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_different_scopes_do_not_wait(self):
        locks = ScopeLockRegistry()
        user_id = uuid.uuid4()
        bench, squat = uuid.uuid4(), uuid.uuid4()

        async with locks.hold(user_id, bench):
            assert locks.is_locked(user_id, bench)
            async with locks.hold(user_id, squat):
                assert locks.is_locked(user_id, squat)
            assert not locks.is_locked(user_id, squat)
        assert len(locks) == 0


def make_record(pr_type, value, previous_value=None, rep_count=None, weight=None) -> PersonalRecord:
    return PersonalRecord(
        pr_type=pr_type,
        value=value,
        previous_value=previous_value,
        rep_count=rep_count,
        weight=weight,
    )


@pytest.mark.unit
@pytest.mark.parametrize(
    "record,expected",
    [
        (make_record(PRType.ONE_RM, 116.66), "First recorded one_rm: 116.7"),
        (make_record(PRType.ONE_RM, 122.5, 116.66), "New 1RM: 122.5 (previous: 116.7)"),
        (make_record(PRType.REP_SPECIFIC, 105, None, 5), "First recorded 5-rep max: 105.0"),
        (make_record(PRType.REP_SPECIFIC, 110, 105, 3), "New 3-rep max: 110.0 (previous: 105.0)"),
        (make_record(PRType.VOLUME, 950), "First recorded volume: 950.0"),
        (make_record(PRType.VOLUME, 1200, 1000), "New volume: 1200 (previous: 1000)"),
        (make_record(PRType.HYPERTROPHY, 10, weight=200), "First recorded best at 200.0: 10 reps"),
        (make_record(PRType.HYPERTROPHY, 12, 10, weight=60), "New best at 60.0: 12 reps (previous: 10 reps)"),
    ],
)
def test_describe_record(record, expected):
    assert describe_record(record) == expected


@pytest.mark.integration
class TestNotifications:
    @pytest.mark.asyncio
    async def test_new_records_reach_the_outbox(self, ledger, bus, caplog):
        notifier = PRNotifier()
        notifier.register(bus)

        with caplog.at_level(logging.INFO, logger="prledger.services.pr_notifications"):
            lift_log_id = await ledger.log(at(1), (100, 1))
        notifications = notifier.drain()
        assert len(notifications) == 1
        assert notifications[0].lift_log_id == lift_log_id
        assert notifications[0].messages == (
            "First recorded one_rm: 100.0",
            "First recorded 1-rep max: 100.0",
            "First recorded volume: 100.0",
        )
        assert "PR!" in caplog.text
        assert notifier.drain() == []

    @pytest.mark.asyncio
    async def test_no_notification_without_records(self, ledger, bus):
        notifier = PRNotifier()
        notifier.register(bus)
        await ledger.log(at(1), (100, 5))
        notifier.drain()
        await ledger.log(at(2), (90, 5))
        assert notifier.drain() == []

    @pytest.mark.asyncio
    async def test_backdated_rebuild_does_not_notify(self, ledger, bus):
        notifier = PRNotifier()
        notifier.register(bus)
        await ledger.log(at(2), (100, 5))
        notifier.drain()
        await ledger.log(at(1), (120, 5))
        assert ledger.last_outcome.action == LedgerAction.RECALCULATE
        assert notifier.drain() == []

    @pytest.mark.asyncio
    async def test_outbox_is_bounded(self):
        notifier = PRNotifier(maxlen=2)
        for _ in range(3):
            await notifier.handle(PersonalRecordsAchieved(uuid.uuid4(), uuid.uuid4(), uuid.uuid4(), ()))
        assert len(notifier.drain()) == 2
