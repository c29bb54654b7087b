"""Messaging service - Booking chat and direct messages with their visibility rules"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import NotFound, Unauthorized, ValidationFailed
from ...models import BookingMessage, DirectMessage, Profile
from ...services.change_feed import ChangeFeed
from ...services.object_storage import ObjectStorage
from ...shared.validators import sanitize_string
from ..bookings.lifecycle import party_of
from ..bookings.repository import BookingRepository
from .repository import MessageRepository
from .schemas import MessageCreate
from .unread import RecomputeTrigger, UnreadCounter

logger = logging.getLogger(__name__)

# (table, column) pairs a client may subscribe to
SUBSCRIBABLE_CHANNELS = {
    ("messages", "booking_id"),
    ("bookings", "id"),
    ("bookings", "hirer_id"),
    ("bookings", "worker_id"),
    ("direct_messages", "receiver_id"),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class MessagingService:
    def __init__(
        self,
        db: Session,
        storage: ObjectStorage,
        feed: Optional[ChangeFeed] = None,
    ):
        self.db = db
        self.repo = MessageRepository()
        self.bookings = BookingRepository()
        self.storage = storage
        self.feed = feed

    def _publish(self, table: str, column: str, value: str, event: str, record_id: str) -> None:
        if self.feed is not None:
            self.feed.publish(table, column, value, event, record_id)

    def _check_attachment(self, principal: Profile, data: MessageCreate) -> None:
        """Attachments must come from the sender's own upload namespace"""
        if not data.file_url:
            return
        if not self.storage.owns(principal.id, data.file_url):
            raise ValidationFailed({"file_url": "Attachment must be uploaded by the sender"})

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    def upload_attachment(
        self, principal: Profile, filename: Optional[str], content_type: Optional[str], data: bytes
    ) -> str:
        if not data:
            raise ValidationFailed({"file": "File is empty"})
        key = self.storage.build_key(principal.id, filename)
        url = self.storage.put(key, data, content_type)
        logger.info(f"📎 Attachment uploaded by {principal.id}: {key}")
        return url

    def delete_attachment(self, principal: Profile, key: str) -> None:
        self.storage.delete(principal.id, key)

    # ------------------------------------------------------------------
    # Booking-scoped chat
    # ------------------------------------------------------------------

    def list_booking_messages(self, principal: Profile, booking_id: str) -> list[BookingMessage]:
        """Non-parties simply see no messages"""
        return self.repo.list_booking_messages(self.db, booking_id, principal.id)

    def send_booking_message(
        self, principal: Profile, booking_id: str, data: MessageCreate
    ) -> BookingMessage:
        booking = self.bookings.get_booking(self.db, booking_id)
        # Missing and foreign bookings are refused the same way
        if booking is None or party_of(booking, principal) is None:
            raise Unauthorized(f"{principal.id} tried to post in booking {booking_id}")

        self._check_attachment(principal, data)

        message = self.repo.create_booking_message(
            self.db,
            booking_id=booking.id,
            sender_id=principal.id,
            content=sanitize_string(data.content),
            file_url=data.file_url,
            file_type=data.file_type,
        )
        self._publish("messages", "booking_id", booking.id, "INSERT", message.id)
        return message

    # ------------------------------------------------------------------
    # Direct messages
    # ------------------------------------------------------------------

    def send_direct_message(
        self, principal: Profile, receiver_id: str, data: MessageCreate
    ) -> DirectMessage:
        if receiver_id == principal.id:
            raise ValidationFailed({"receiver_id": "You cannot send a message to yourself"})

        receiver = self.db.query(Profile).filter(Profile.id == receiver_id).first()
        if not receiver:
            raise NotFound("Profile")

        self._check_attachment(principal, data)

        message = self.repo.create_direct_message(
            self.db,
            sender_id=principal.id,
            receiver_id=receiver.id,
            content=sanitize_string(data.content),
            file_url=data.file_url,
            file_type=data.file_type,
        )
        self._publish("direct_messages", "receiver_id", receiver.id, "INSERT", message.id)
        return message

    def get_conversation(
        self, principal: Profile, peer_id: str, mark_read: bool = True
    ) -> list[DirectMessage]:
        """
        Messages between the principal and `peer_id`, oldest first. Opening a
        conversation marks the peer's unread messages as read.
        """
        if mark_read:
            self.mark_conversation_read(principal, peer_id)
        return self.repo.list_conversation(self.db, principal.id, peer_id)

    def mark_read(
        self, principal: Profile, message_id: str, now: Optional[datetime] = None
    ) -> DirectMessage:
        """
        Record that the receiver has read a message. Only the receiver may do
        this; repeating it keeps the first timestamp and is not an error.
        """
        message = self.repo.get_direct_message(self.db, message_id)
        if message is None or principal.id not in (message.sender_id, message.receiver_id):
            raise NotFound("Message")
        if message.receiver_id != principal.id:
            raise Unauthorized(f"Sender {principal.id} tried to mark {message_id} read")

        if message.read_at is not None:
            return message

        if self.repo.mark_read(self.db, message.id, principal.id, now or utcnow()):
            self._publish("direct_messages", "receiver_id", principal.id, "UPDATE", message.id)
        self.db.refresh(message)
        return message

    def mark_conversation_read(
        self, principal: Profile, peer_id: str, now: Optional[datetime] = None
    ) -> int:
        updated = self.repo.mark_conversation_read(self.db, principal.id, peer_id, now or utcnow())
        if updated:
            self._publish("direct_messages", "receiver_id", principal.id, "UPDATE", peer_id)
        return updated

    def unread_counts(
        self, principal: Profile, trigger: RecomputeTrigger = RecomputeTrigger.MOUNT
    ) -> UnreadCounter:
        return UnreadCounter(self.db, principal.id, trigger)

    def list_conversations(self, principal: Profile) -> list[dict]:
        """One entry per peer: latest message and how many of theirs are unread"""
        unread = self.repo.count_unread(self.db, principal.id)
        latest: dict[str, DirectMessage] = {}
        for message in self.repo.list_involving(self.db, principal.id):
            peer_id = message.receiver_id if message.sender_id == principal.id else message.sender_id
            latest.setdefault(peer_id, message)

        names = {}
        if latest:
            names = dict(
                self.db.query(Profile.id, Profile.full_name).filter(Profile.id.in_(latest)).all()
            )

        return [
            {
                "peer_id": peer_id,
                "peer_name": names.get(peer_id),
                "last_message": message,
                "unread_count": unread.get(peer_id, 0),
            }
            for peer_id, message in latest.items()
        ]

    # ------------------------------------------------------------------
    # Change feed subscriptions
    # ------------------------------------------------------------------

    def authorize_channel(self, principal: Profile, table: str, column: str, value: str) -> None:
        """
        Allow a subscription only to channels whose rows the principal could
        read anyway. Raises Unauthorized otherwise.
        """
        if (table, column) not in SUBSCRIBABLE_CHANNELS:
            raise Unauthorized(f"Unknown channel {table}:{column}")

        if table == "direct_messages" or column == "hirer_id":
            if value != principal.id:
                raise Unauthorized(f"{principal.id} tried to watch {table}:{column}={value}")
            return

        if column == "worker_id":
            worker = principal.worker_profile
            if worker is None or worker.id != value:
                raise Unauthorized(f"{principal.id} tried to watch worker {value}")
            return

        # messages:booking_id / bookings:id
        booking = self.bookings.get_visible_booking(self.db, value, principal.id)
        if booking is None:
            raise Unauthorized(f"{principal.id} tried to watch booking {value}")
