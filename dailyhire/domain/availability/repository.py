"""Availability repository - Database operations for the availability calendar"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import AvailabilityRecord


class AvailabilityRepository:
    @staticmethod
    def get_record(db: Session, worker_id: str, day: date) -> Optional[AvailabilityRecord]:
        return (
            db.query(AvailabilityRecord)
            .filter(AvailabilityRecord.worker_id == worker_id, AvailabilityRecord.date == day)
            .first()
        )

    @staticmethod
    def list_records(db: Session, worker_id: str, start: date, end: date) -> list[AvailabilityRecord]:
        return (
            db.query(AvailabilityRecord)
            .filter(
                AvailabilityRecord.worker_id == worker_id,
                AvailabilityRecord.date >= start,
                AvailabilityRecord.date <= end,
            )
            .order_by(AvailabilityRecord.date.asc())
            .all()
        )

    @staticmethod
    def upsert_record(
        db: Session, worker_id: str, day: date, status: str, notes: Optional[str]
    ) -> AvailabilityRecord:
        record = AvailabilityRepository.get_record(db, worker_id, day)
        if record:
            record.status = status
            record.notes = notes
        else:
            record = AvailabilityRecord(worker_id=worker_id, date=day, status=status, notes=notes)
            db.add(record)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def delete_record(db: Session, record: AvailabilityRecord) -> None:
        db.delete(record)
        db.commit()
