"""Booking service - Creation rules and authorized status transitions"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import InvalidTransition, NotFound, Unauthorized, ValidationFailed
from ...models import Booking, BookingStatus, Profile, Role, WorkerProfile
from ...services.change_feed import ChangeFeed
from ...shared.validators import sanitize_string
from ..availability.service import AvailabilityService
from .lifecycle import compute_agreed_rate, is_allowed, party_of
from .repository import BookingRepository
from .schemas import BookingCreate

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(self, db: Session, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.repo = BookingRepository()
        self.availability = AvailabilityService(db)
        self.feed = feed

    def _announce(self, booking: Booking, event: str) -> None:
        if self.feed is None:
            return
        self.feed.publish("bookings", "id", booking.id, event, booking.id)
        self.feed.publish("bookings", "worker_id", booking.worker_id, event, booking.id)
        self.feed.publish("bookings", "hirer_id", booking.hirer_id, event, booking.id)

    def create_booking(
        self, principal: Profile, data: BookingCreate, today: Optional[date] = None
    ) -> Booking:
        """
        Create a pending booking for a hirer. The availability check runs here,
        against the calendar as it is now, not as the client last rendered it.
        """
        if principal.role != Role.HIRER.value:
            raise Unauthorized(f"{principal.role} {principal.id} tried to create a booking")

        worker = self.db.query(WorkerProfile).filter(WorkerProfile.id == data.worker_id).first()
        if not worker:
            raise NotFound("Worker")

        bookable, reason = self.availability.check_eligibility(worker.id, data.booking_date, today)
        if not bookable:
            logger.info(f"📅 Booking rejected for worker {worker.id} on {data.booking_date}: {reason}")
            raise ValidationFailed({"booking_date": reason})

        agreed_rate = compute_agreed_rate(worker.hourly_rate, worker.daily_rate, data.duration_hours)

        booking = self.repo.create_booking(
            self.db,
            hirer_id=principal.id,
            worker_id=worker.id,
            booking_date=data.booking_date,
            start_time=data.parsed_start_time(),
            duration_hours=data.duration_hours,
            work_description=sanitize_string(data.work_description),
            agreed_rate=agreed_rate,
            status=BookingStatus.PENDING.value,
        )
        logger.info(f"✅ Booking {booking.id} created: hirer {principal.id} -> worker {worker.id} @ {agreed_rate}")
        self._announce(booking, "INSERT")
        return booking

    def list_bookings(self, principal: Profile) -> list[Booking]:
        if principal.role == Role.WORKER.value:
            worker = (
                self.db.query(WorkerProfile).filter(WorkerProfile.user_id == principal.id).first()
            )
            if not worker:
                return []
            return self.repo.list_for_worker(self.db, worker.id)
        return self.repo.list_for_hirer(self.db, principal.id)

    def get_booking(self, principal: Profile, booking_id: str) -> Booking:
        """Only the two parties can see a booking; for anyone else it does not exist"""
        booking = self.repo.get_visible_booking(self.db, booking_id, principal.id)
        if not booking:
            raise NotFound("Booking")
        return booking

    def update_status(self, principal: Profile, booking_id: str, target: BookingStatus) -> Booking:
        """
        Move a booking to `target` if the transition table allows it for this
        principal. The write is a single conditional UPDATE; losing a race
        reports the state the winner left behind.
        """
        booking = self.get_booking(principal, booking_id)
        target = BookingStatus(target)
        current = BookingStatus(booking.status)
        party = party_of(booking, principal)

        if not is_allowed(current, target, party):
            logger.warning(
                f"⚠️ Rejected {current.value} -> {target.value} on booking {booking.id} by {party.value if party else 'non-party'}"
            )
            raise InvalidTransition(current.value, target.value)

        try:
            if not self.repo.transition(self.db, booking.id, current, target):
                self.db.rollback()
                self.db.refresh(booking)
                raise InvalidTransition(booking.status, target.value)

            if target == BookingStatus.COMPLETED:
                self.repo.refresh_total_jobs(self.db, booking.worker_id)

            self.db.commit()
        except InvalidTransition:
            raise
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(f"✅ Booking {booking.id}: {current.value} -> {target.value} by {party.value}")
        self._announce(booking, "UPDATE")
        return booking
