"""Booking repository - Database operations for bookings"""

from typing import Optional

from sqlalchemy import func, or_, update
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, BookingStatus, WorkerProfile


class BookingRepository:
    @staticmethod
    def _with_parties(query):
        return query.options(
            joinedload(Booking.hirer),
            joinedload(Booking.worker).joinedload(WorkerProfile.user),
            joinedload(Booking.review),
        )

    @staticmethod
    def get_booking(db: Session, booking_id: str) -> Optional[Booking]:
        query = db.query(Booking).filter(Booking.id == booking_id)
        return BookingRepository._with_parties(query).first()

    @staticmethod
    def get_visible_booking(db: Session, booking_id: str, principal_id: str) -> Optional[Booking]:
        """The booking, if `principal_id` is its hirer or its worker"""
        query = (
            db.query(Booking)
            .join(WorkerProfile, Booking.worker_id == WorkerProfile.id)
            .filter(
                Booking.id == booking_id,
                or_(Booking.hirer_id == principal_id, WorkerProfile.user_id == principal_id),
            )
        )
        return BookingRepository._with_parties(query).first()

    @staticmethod
    def list_for_hirer(db: Session, hirer_id: str) -> list[Booking]:
        query = db.query(Booking).filter(Booking.hirer_id == hirer_id)
        return BookingRepository._with_parties(query).order_by(Booking.created_at.desc()).all()

    @staticmethod
    def list_for_worker(db: Session, worker_id: str) -> list[Booking]:
        query = db.query(Booking).filter(Booking.worker_id == worker_id)
        return BookingRepository._with_parties(query).order_by(Booking.created_at.desc()).all()

    @staticmethod
    def create_booking(db: Session, **booking_data) -> Booking:
        booking = Booking(**booking_data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def transition(
        db: Session, booking_id: str, current: BookingStatus, target: BookingStatus
    ) -> bool:
        """
        Compare-and-set the status. Returns False when the row no longer holds
        `current` (someone else moved it first). Does not commit.
        """
        result = db.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == current.value)
            .values(status=target.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def refresh_total_jobs(db: Session, worker_id: str) -> int:
        """Recompute the worker's completed job count. Does not commit."""
        completed = (
            db.query(func.count(Booking.id))
            .filter(Booking.worker_id == worker_id, Booking.status == BookingStatus.COMPLETED.value)
            .scalar()
        )
        db.execute(
            update(WorkerProfile)
            .where(WorkerProfile.id == worker_id)
            .values(total_jobs=completed)
            .execution_options(synchronize_session=False)
        )
        return completed
