"""Tests for booking creation and authorized status transitions."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import update

from dailyhire.domain.bookings.repository import BookingRepository
from dailyhire.domain.bookings.schemas import BookingCreate, BookingResponse
from dailyhire.domain.bookings.service import BookingService
from dailyhire.errors import InvalidTransition, NotFound, Unauthorized, ValidationFailed
from dailyhire.models import AvailabilityRecord, Booking, BookingStatus, WorkerProfile

TODAY = date(2030, 6, 10)


def _request(worker, **overrides) -> BookingCreate:
    data = {
        "worker_id": worker.id,
        "booking_date": TODAY + timedelta(days=1),
        "start_time": "09:30",
        "duration_hours": "4",
        "work_description": "Replace the bathroom tap",
    }
    data.update(overrides)
    return BookingCreate(**data)


@pytest.fixture
def service(db, feed) -> BookingService:
    return BookingService(db, feed)


# =====================================================================
# Creation
# =====================================================================


class TestCreateBooking:
    def test_creates_pending_booking_with_fixed_rate(self, service, hirer, worker) -> None:
        booking = service.create_booking(hirer, _request(worker), today=TODAY)
        assert booking.status == BookingStatus.PENDING.value
        assert booking.hirer_id == hirer.id
        assert booking.agreed_rate == Decimal("2000.00")
        assert booking.start_time.strftime("%H:%M") == "09:30"

    def test_rate_is_not_recomputed_after_worker_changes_price(self, db, service, hirer, worker) -> None:
        booking = service.create_booking(hirer, _request(worker), today=TODAY)
        worker.hourly_rate = Decimal("900")
        db.commit()

        service.update_status(worker.user, booking.id, BookingStatus.CONFIRMED)
        db.refresh(booking)
        assert booking.agreed_rate == Decimal("2000.00")

    def test_workers_cannot_book(self, service, worker, make_worker) -> None:
        other = make_worker()
        with pytest.raises(Unauthorized):
            service.create_booking(worker.user, _request(other), today=TODAY)

    def test_unknown_worker(self, service, hirer) -> None:
        data = BookingCreate(
            worker_id="missing",
            booking_date=TODAY,
            work_description="Paint the fence please",
        )
        with pytest.raises(NotFound):
            service.create_booking(hirer, data, today=TODAY)

    def test_past_date_rejected(self, service, hirer, worker) -> None:
        with pytest.raises(ValidationFailed) as exc:
            service.create_booking(hirer, _request(worker, booking_date=TODAY - timedelta(days=1)), today=TODAY)
        assert exc.value.fields == {"booking_date": "Bookings cannot be made for past dates"}

    def test_today_is_bookable(self, service, hirer, worker) -> None:
        booking = service.create_booking(hirer, _request(worker, booking_date=TODAY), today=TODAY)
        assert booking.booking_date == TODAY

    @pytest.mark.parametrize("status", ["unavailable", "holiday"])
    def test_blocked_days_rejected(self, db, service, hirer, worker, status) -> None:
        day = TODAY + timedelta(days=3)
        db.add(AvailabilityRecord(worker_id=worker.id, date=day, status=status))
        db.commit()
        with pytest.raises(ValidationFailed) as exc:
            service.create_booking(hirer, _request(worker, booking_date=day), today=TODAY)
        assert "not available" in exc.value.fields["booking_date"]

    def test_double_booking_same_day_allowed(self, service, hirer, worker) -> None:
        first = service.create_booking(hirer, _request(worker), today=TODAY)
        second = service.create_booking(hirer, _request(worker), today=TODAY)
        assert first.id != second.id

    def test_description_is_escaped(self, service, hirer, worker) -> None:
        booking = service.create_booking(
            hirer, _request(worker, work_description="<b>Fix</b> the sink now"), today=TODAY
        )
        assert booking.work_description == "&lt;b&gt;Fix&lt;/b&gt; the sink now"

    def test_announces_insert(self, service, feed, hirer, worker) -> None:
        booking = service.create_booking(hirer, _request(worker), today=TODAY)
        assert f"bookings:id={booking.id}" in feed.channels()
        assert f"bookings:worker_id={worker.id}" in feed.channels()
        assert f"bookings:hirer_id={hirer.id}" in feed.channels()


class TestBookingCreateSchema:
    def test_zero_duration_means_unspecified(self, worker) -> None:
        assert _request(worker, duration_hours=0).duration_hours is None

    def test_empty_start_time(self, worker) -> None:
        assert _request(worker, start_time="").parsed_start_time() is None

    @pytest.mark.parametrize("value", ["9:30", "24:00", "12:60", "noon"])
    def test_bad_start_time(self, worker, value) -> None:
        with pytest.raises(ValueError):
            _request(worker, start_time=value)

    @pytest.mark.parametrize("hours", ["0.25", "25"])
    def test_duration_bounds(self, worker, hours) -> None:
        with pytest.raises(ValueError):
            _request(worker, duration_hours=hours)

    def test_short_description(self, worker) -> None:
        with pytest.raises(ValueError):
            _request(worker, work_description="   fix it  ")


# =====================================================================
# Listing and visibility
# =====================================================================


class TestVisibility:
    def test_parties_see_booking(self, service, hirer, worker, make_booking) -> None:
        booking = make_booking(hirer, worker)
        assert service.get_booking(hirer, booking.id).id == booking.id
        assert service.get_booking(worker.user, booking.id).id == booking.id

    def test_outsider_gets_not_found(self, service, hirer, worker, make_booking, make_principal) -> None:
        booking = make_booking(hirer, worker)
        with pytest.raises(NotFound):
            service.get_booking(make_principal(), booking.id)

    def test_list_by_role(self, service, hirer, worker, make_worker, make_booking) -> None:
        mine = make_booking(hirer, worker)
        make_booking(hirer, make_worker())
        assert {b.id for b in service.list_bookings(worker.user)} == {mine.id}
        assert len(service.list_bookings(hirer)) == 2


# =====================================================================
# Status transitions
# =====================================================================


class TestUpdateStatus:
    def test_full_happy_path(self, db, service, hirer, worker, make_booking) -> None:
        booking = make_booking(hirer, worker)
        service.update_status(worker.user, booking.id, BookingStatus.CONFIRMED)
        done = service.update_status(worker.user, booking.id, BookingStatus.COMPLETED)
        assert done.status == BookingStatus.COMPLETED.value

        db.refresh(worker)
        assert worker.total_jobs == 1

    def test_hirer_cannot_confirm(self, db, service, hirer, worker, make_booking) -> None:
        booking = make_booking(hirer, worker)
        with pytest.raises(InvalidTransition) as exc:
            service.update_status(hirer, booking.id, BookingStatus.CONFIRMED)
        assert exc.value.current_status == "pending"

        db.expire_all()
        assert db.get(Booking, booking.id).status == "pending"

    def test_either_party_cancels_confirmed(self, service, hirer, worker, make_booking) -> None:
        by_hirer = make_booking(hirer, worker, BookingStatus.CONFIRMED)
        by_worker = make_booking(hirer, worker, BookingStatus.CONFIRMED)
        assert service.update_status(hirer, by_hirer.id, BookingStatus.CANCELLED).status == "cancelled"
        assert service.update_status(worker.user, by_worker.id, BookingStatus.CANCELLED).status == "cancelled"

    @pytest.mark.parametrize("terminal", [BookingStatus.COMPLETED, BookingStatus.CANCELLED])
    def test_terminal_states_are_final(self, db, service, hirer, worker, make_booking, terminal) -> None:
        booking = make_booking(hirer, worker, terminal)
        for target in BookingStatus:
            with pytest.raises(InvalidTransition):
                service.update_status(worker.user, booking.id, target)
            db.expire_all()
            assert db.get(Booking, booking.id).status == terminal.value

    def test_outsider_cannot_see_to_transition(self, service, hirer, worker, make_booking, make_principal) -> None:
        booking = make_booking(hirer, worker)
        with pytest.raises(NotFound):
            service.update_status(make_principal(), booking.id, BookingStatus.CANCELLED)

    def test_losing_a_race_reports_winner_state(self, db, service, hirer, worker, make_booking) -> None:
        booking = make_booking(hirer, worker)

        def hirer_cancels_first(session, booking_id, current, target):
            session.execute(
                update(Booking).where(Booking.id == booking_id).values(status="cancelled")
            )
            session.commit()
            return False

        service.repo.transition = hirer_cancels_first
        with pytest.raises(InvalidTransition) as exc:
            service.update_status(worker.user, booking.id, BookingStatus.CONFIRMED)
        assert exc.value.current_status == "cancelled"

    def test_announces_update(self, service, feed, hirer, worker, make_booking) -> None:
        booking = make_booking(hirer, worker)
        service.update_status(worker.user, booking.id, BookingStatus.CONFIRMED)
        assert (("bookings", "id", booking.id, "UPDATE", booking.id)) in feed.events


class TestRepositoryTransition:
    def test_conditional_write(self, db, hirer, worker, make_booking) -> None:
        booking = make_booking(hirer, worker)
        assert not BookingRepository.transition(db, booking.id, BookingStatus.CONFIRMED, BookingStatus.COMPLETED)
        assert BookingRepository.transition(db, booking.id, BookingStatus.PENDING, BookingStatus.CONFIRMED)
        db.commit()
        db.refresh(booking)
        assert booking.status == "confirmed"

    def test_total_jobs_counts_completed_only(self, db, hirer, worker, make_booking) -> None:
        make_booking(hirer, worker, BookingStatus.COMPLETED)
        make_booking(hirer, worker, BookingStatus.COMPLETED)
        make_booking(hirer, worker, BookingStatus.CANCELLED)
        assert BookingRepository.refresh_total_jobs(db, worker.id) == 2
        db.commit()
        assert db.get(WorkerProfile, worker.id).total_jobs == 2


class TestBookingResponse:
    def test_viewer_specific_fields(self, hirer, worker, make_booking) -> None:
        booking = make_booking(hirer, worker, BookingStatus.COMPLETED)
        as_hirer = BookingResponse.from_model(booking, hirer)
        as_worker = BookingResponse.from_model(booking, worker.user)
        assert as_hirer.can_review is True
        assert as_worker.can_review is False
        assert as_hirer.allowed_transitions == []

    def test_worker_sees_next_moves(self, hirer, worker, make_booking) -> None:
        booking = make_booking(hirer, worker)
        response = BookingResponse.from_model(booking, worker.user)
        assert set(response.allowed_transitions) == {"confirmed", "cancelled"}
        assert response.worker_name == "Walt Worker"
