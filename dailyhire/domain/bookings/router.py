"""Booking router - FastAPI endpoints for the booking lifecycle"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_principal
from ...database import get_db
from ...models import Profile
from ...services.change_feed import ChangeFeed, get_change_feed
from .schemas import BookingCreate, BookingResponse, BookingStatusUpdate
from .service import BookingService

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(
    db: Session = Depends(get_db), feed: ChangeFeed = Depends(get_change_feed)
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, feed)


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    current_principal: Profile = Depends(get_current_principal),
    service: BookingService = Depends(get_booking_service),
):
    """Request a worker for a day (hirers only)"""
    booking = service.create_booking(current_principal, data)
    return BookingResponse.from_model(booking, current_principal)


@router.get("", response_model=list[BookingResponse])
async def list_bookings(
    current_principal: Profile = Depends(get_current_principal),
    service: BookingService = Depends(get_booking_service),
):
    """Bookings the principal made (hirer) or received (worker), newest first"""
    return [
        BookingResponse.from_model(b, current_principal)
        for b in service.list_bookings(current_principal)
    ]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    current_principal: Profile = Depends(get_current_principal),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.get_booking(current_principal, booking_id)
    return BookingResponse.from_model(booking, current_principal)


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str,
    data: BookingStatusUpdate,
    current_principal: Profile = Depends(get_current_principal),
    service: BookingService = Depends(get_booking_service),
):
    """Accept, reject, complete or cancel a booking"""
    booking = service.update_status(current_principal, booking_id, data.status)
    return BookingResponse.from_model(booking, current_principal)
