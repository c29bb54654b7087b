"""Messaging repository - Database operations for booking and direct messages"""

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, func, or_, update
from sqlalchemy.orm import Session

from ...models import Booking, BookingMessage, DirectMessage, WorkerProfile


class MessageRepository:
    # Booking-scoped chat
    @staticmethod
    def list_booking_messages(db: Session, booking_id: str, principal_id: str) -> list[BookingMessage]:
        """
        Messages of a booking that `principal_id` may read: their own, or
        every message when they are the booking's hirer or worker.
        """
        return (
            db.query(BookingMessage)
            .join(Booking, BookingMessage.booking_id == Booking.id)
            .join(WorkerProfile, Booking.worker_id == WorkerProfile.id)
            .filter(
                BookingMessage.booking_id == booking_id,
                or_(
                    BookingMessage.sender_id == principal_id,
                    Booking.hirer_id == principal_id,
                    WorkerProfile.user_id == principal_id,
                ),
            )
            .order_by(BookingMessage.created_at.asc(), BookingMessage.id.asc())
            .all()
        )

    @staticmethod
    def create_booking_message(db: Session, **message_data) -> BookingMessage:
        message = BookingMessage(**message_data)
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    # Direct messages
    @staticmethod
    def get_direct_message(db: Session, message_id: str) -> Optional[DirectMessage]:
        return db.query(DirectMessage).filter(DirectMessage.id == message_id).first()

    @staticmethod
    def list_conversation(db: Session, user_a: str, user_b: str) -> list[DirectMessage]:
        return (
            db.query(DirectMessage)
            .filter(
                or_(
                    and_(DirectMessage.sender_id == user_a, DirectMessage.receiver_id == user_b),
                    and_(DirectMessage.sender_id == user_b, DirectMessage.receiver_id == user_a),
                )
            )
            .order_by(DirectMessage.created_at.asc(), DirectMessage.id.asc())
            .all()
        )

    @staticmethod
    def list_involving(db: Session, principal_id: str) -> list[DirectMessage]:
        """Every direct message sent or received by the principal, newest first"""
        return (
            db.query(DirectMessage)
            .filter(
                or_(DirectMessage.sender_id == principal_id, DirectMessage.receiver_id == principal_id)
            )
            .order_by(DirectMessage.created_at.desc(), DirectMessage.id.desc())
            .all()
        )

    @staticmethod
    def create_direct_message(db: Session, **message_data) -> DirectMessage:
        message = DirectMessage(**message_data)
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    @staticmethod
    def mark_read(db: Session, message_id: str, receiver_id: str, read_at: datetime) -> bool:
        """Set read_at only if still unset. Returns False when nothing changed."""
        result = db.execute(
            update(DirectMessage)
            .where(
                DirectMessage.id == message_id,
                DirectMessage.receiver_id == receiver_id,
                DirectMessage.read_at.is_(None),
            )
            .values(read_at=read_at)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount == 1

    @staticmethod
    def mark_conversation_read(db: Session, receiver_id: str, sender_id: str, read_at: datetime) -> int:
        result = db.execute(
            update(DirectMessage)
            .where(
                DirectMessage.receiver_id == receiver_id,
                DirectMessage.sender_id == sender_id,
                DirectMessage.read_at.is_(None),
            )
            .values(read_at=read_at)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount

    @staticmethod
    def count_unread(db: Session, receiver_id: str) -> dict[str, int]:
        rows = (
            db.query(DirectMessage.sender_id, func.count(DirectMessage.id))
            .filter(DirectMessage.receiver_id == receiver_id, DirectMessage.read_at.is_(None))
            .group_by(DirectMessage.sender_id)
            .all()
        )
        return {sender_id: count for sender_id, count in rows}
