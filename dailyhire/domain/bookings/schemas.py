"""Booking schemas - Pydantic models for the booking lifecycle"""

import re
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import Booking, BookingStatus, Profile
from .lifecycle import Party, allowed_targets, party_of

START_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class BookingCreate(BaseModel):
    worker_id: str
    booking_date: date
    start_time: Optional[str] = None
    # 0 means "not specified" (the form's empty value)
    duration_hours: Optional[Decimal] = None
    work_description: str = Field(..., max_length=2000)

    @field_validator("start_time")
    @classmethod
    def check_start_time(cls, v):
        if v is None or v == "":
            return None
        if not START_TIME_PATTERN.match(v):
            raise ValueError("Invalid time format (HH:MM)")
        return v

    @field_validator("duration_hours")
    @classmethod
    def check_duration(cls, v):
        if v is None or v == 0:
            return None
        if v < Decimal("0.5"):
            raise ValueError("Duration must be at least 0.5 hours")
        if v > 24:
            raise ValueError("Duration cannot exceed 24 hours")
        return v

    @field_validator("work_description")
    @classmethod
    def check_description(cls, v):
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Work description must be at least 10 characters")
        return v

    def parsed_start_time(self) -> Optional[time]:
        if not self.start_time:
            return None
        hours, minutes = self.start_time.split(":")
        return time(int(hours), int(minutes))


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingResponse(BaseModel):
    id: str
    hirer_id: str
    hirer_name: Optional[str] = None
    worker_id: str
    worker_user_id: Optional[str] = None
    worker_name: Optional[str] = None
    booking_date: date
    start_time: Optional[str] = None
    duration_hours: Optional[float] = None
    status: str
    work_description: str
    agreed_rate: float
    payment_status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Status changes the viewing principal may request next
    allowed_transitions: list[str] = []
    can_review: bool = False

    @classmethod
    def from_model(cls, booking: Booking, viewer: Profile) -> "BookingResponse":
        party = party_of(booking, viewer)
        status = BookingStatus(booking.status)
        worker_user = booking.worker.user if booking.worker else None
        return cls(
            id=booking.id,
            hirer_id=booking.hirer_id,
            hirer_name=booking.hirer.full_name if booking.hirer else None,
            worker_id=booking.worker_id,
            worker_user_id=worker_user.id if worker_user else None,
            worker_name=worker_user.full_name if worker_user else None,
            booking_date=booking.booking_date,
            start_time=booking.start_time.strftime("%H:%M") if booking.start_time else None,
            duration_hours=float(booking.duration_hours) if booking.duration_hours else None,
            status=status.value,
            work_description=booking.work_description,
            agreed_rate=float(booking.agreed_rate),
            payment_status=booking.payment_status,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
            allowed_transitions=[t.value for t in allowed_targets(status, party)],
            can_review=(
                party == Party.HIRER
                and status == BookingStatus.COMPLETED
                and booking.review is None
            ),
        )
