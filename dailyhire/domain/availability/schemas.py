"""Availability schemas"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ...models import AvailabilityStatus


class AvailabilitySet(BaseModel):
    status: AvailabilityStatus
    notes: Optional[str] = Field(None, max_length=500)


class AvailabilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    status: str
    notes: Optional[str] = None


class EligibilityResponse(BaseModel):
    worker_id: str
    date: date
    bookable: bool
    reason: Optional[str] = None
