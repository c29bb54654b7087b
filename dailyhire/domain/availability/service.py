"""Availability service - Worker calendar management and booking date eligibility"""

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...errors import NotFound, Unauthorized, ValidationFailed
from ...models import AvailabilityRecord, AvailabilityStatus, Profile, Role, WorkerProfile
from .repository import AvailabilityRepository

logger = logging.getLogger(__name__)

MAX_RANGE_DAYS = 366

PAST_DATE_REASON = "Bookings cannot be made for past dates"
NOT_AVAILABLE_REASON = "This worker is not available on the selected date"


def evaluate_eligibility(
    booking_date: date, record_status: Optional[str], today: date
) -> tuple[bool, Optional[str]]:
    """
    Decide whether a date can be booked.

    Past dates are never bookable. A day with no calendar entry counts as
    available; an entry must say "available" to be bookable.
    """
    if booking_date < today:
        return False, PAST_DATE_REASON
    if record_status is None or record_status == AvailabilityStatus.AVAILABLE.value:
        return True, None
    return False, NOT_AVAILABLE_REASON


class AvailabilityService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = AvailabilityRepository()

    def _own_worker(self, principal: Profile) -> WorkerProfile:
        if principal.role != Role.WORKER.value:
            raise Unauthorized(f"{principal.role} {principal.id} tried to edit availability")
        worker = self.db.query(WorkerProfile).filter(WorkerProfile.user_id == principal.id).first()
        if not worker:
            raise NotFound("Worker profile")
        return worker

    def check_eligibility(
        self, worker_id: str, booking_date: date, today: Optional[date] = None
    ) -> tuple[bool, Optional[str]]:
        """Reads the current calendar entry; call inside the booking write path"""
        today = today or date.today()
        record = self.repo.get_record(self.db, worker_id, booking_date)
        return evaluate_eligibility(booking_date, record.status if record else None, today)

    def list_availability(self, worker_id: str, start: date, end: date) -> list[AvailabilityRecord]:
        if end < start:
            raise ValidationFailed({"end": "End date must be on or after start date"})
        if (end - start) > timedelta(days=MAX_RANGE_DAYS):
            raise ValidationFailed({"end": f"Range cannot exceed {MAX_RANGE_DAYS} days"})
        if not self.db.query(WorkerProfile.id).filter(WorkerProfile.id == worker_id).first():
            raise NotFound("Worker")
        return self.repo.list_records(self.db, worker_id, start, end)

    def set_availability(
        self, principal: Profile, day: date, status: AvailabilityStatus, notes: Optional[str] = None
    ) -> AvailabilityRecord:
        worker = self._own_worker(principal)
        status_value = AvailabilityStatus(status).value
        try:
            record = self.repo.upsert_record(self.db, worker.id, day, status_value, notes)
        except IntegrityError:
            # Another request inserted the same (worker, date) first; update theirs
            self.db.rollback()
            record = self.repo.upsert_record(self.db, worker.id, day, status_value, notes)

        logger.info(f"📅 Worker {worker.id} marked {day} as {status_value}")
        return record

    def clear_availability(self, principal: Profile, day: date) -> None:
        """Drop the entry so the day falls back to implicitly available"""
        worker = self._own_worker(principal)
        record = self.repo.get_record(self.db, worker.id, day)
        if not record:
            raise NotFound("Availability record")
        self.repo.delete_record(self.db, record)
