"""
Unread direct message counts as an explicit, disposable view.

An UnreadCounter belongs to whoever displays the counts (a streaming
connection, a request) and is rebuilt from the database on each trigger;
nothing is cached between owners.
"""

import enum
import logging

from sqlalchemy.orm import Session

from .repository import MessageRepository

logger = logging.getLogger(__name__)


class RecomputeTrigger(str, enum.Enum):
    MOUNT = "mount"
    NOTIFICATION = "notification"
    SEND = "send"
    MARK_READ = "mark_read"


class UnreadCounter:
    def __init__(self, db: Session, receiver_id: str, trigger: RecomputeTrigger = RecomputeTrigger.MOUNT):
        self.db = db
        self.receiver_id = receiver_id
        self.counts: dict[str, int] = {}
        self.recompute(trigger)

    def recompute(self, trigger: RecomputeTrigger) -> dict[str, int]:
        self.counts = MessageRepository.count_unread(self.db, self.receiver_id)
        logger.debug(f"🔔 Unread counts for {self.receiver_id} recomputed on {trigger.value}: {self.counts}")
        return self.counts

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def for_sender(self, sender_id: str) -> int:
        return self.counts.get(sender_id, 0)
