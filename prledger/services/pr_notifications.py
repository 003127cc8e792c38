"""PR notifications: the subscriber that turns new records into user-facing messages.

Delivery (push, email, feed) is outside this service; messages are logged and kept
in a bounded in-memory outbox that a delivery worker can drain.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass

from prledger.services.lift_log_events import EventBus, PersonalRecordsAchieved
from prledger.services.personal_records import describe_record

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PRNotification:
    user_id: object
    exercise_id: object
    lift_log_id: object
    messages: tuple[str, ...]


class PRNotifier:
    def __init__(self, maxlen: int = 500):
        self.outbox: deque[PRNotification] = deque(maxlen=maxlen)

    def register(self, bus: EventBus) -> None:
        bus.subscribe(PersonalRecordsAchieved, self.handle)

    async def handle(self, event: PersonalRecordsAchieved) -> PRNotification:
        messages = tuple(describe_record(record) for record in event.records)
        notification = PRNotification(event.user_id, event.exercise_id, event.lift_log_id, messages)
        self.outbox.append(notification)
        for message in messages:
            logger.info("PR! user %s exercise %s: %s", event.user_id, event.exercise_id, message)
        return notification

    def drain(self) -> list[PRNotification]:
        items = list(self.outbox)
        self.outbox.clear()
        return items
