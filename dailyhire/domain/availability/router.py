"""Availability router - FastAPI endpoints for the worker calendar"""

from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_principal
from ...database import get_db
from ...models import Profile
from .schemas import AvailabilityResponse, AvailabilitySet, EligibilityResponse
from .service import AvailabilityService

router = APIRouter(tags=["Availability"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


@router.get("/workers/{worker_id}/availability", response_model=list[AvailabilityResponse])
async def list_availability(
    worker_id: str,
    current_principal: Profile = Depends(get_current_principal),
    service: AvailabilityService = Depends(get_availability_service),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
):
    """Explicit calendar entries in range; days without an entry are available"""
    start = start or date.today().replace(day=1)
    end = end or start + timedelta(days=41)
    return service.list_availability(worker_id, start, end)


@router.get(
    "/workers/{worker_id}/availability/{day}/eligibility", response_model=EligibilityResponse
)
async def check_eligibility(
    worker_id: str,
    day: date,
    current_principal: Profile = Depends(get_current_principal),
    service: AvailabilityService = Depends(get_availability_service),
):
    bookable, reason = service.check_eligibility(worker_id, day)
    return EligibilityResponse(worker_id=worker_id, date=day, bookable=bookable, reason=reason)


@router.put("/availability/{day}", response_model=AvailabilityResponse)
async def set_availability(
    day: date,
    data: AvailabilitySet,
    current_principal: Profile = Depends(get_current_principal),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.set_availability(current_principal, day, data.status, data.notes)


@router.delete("/availability/{day}", status_code=204)
async def clear_availability(
    day: date,
    current_principal: Profile = Depends(get_current_principal),
    service: AvailabilityService = Depends(get_availability_service),
):
    service.clear_availability(current_principal, day)
