"""Tests for review gating and the derived worker rating."""

import pytest
from pydantic import ValidationError

from dailyhire.domain.reviews.schemas import ReviewCreate, ReviewResponse, ReviewUpdate
from dailyhire.domain.reviews.service import ReviewService
from dailyhire.errors import Conflict, NotFound, Unauthorized
from dailyhire.models import BookingStatus, Review


@pytest.fixture
def service(db) -> ReviewService:
    return ReviewService(db)


@pytest.fixture
def completed(hirer, worker, make_booking):
    return make_booking(hirer, worker, BookingStatus.COMPLETED)


class TestReviewGating:
    def test_hirer_reviews_completed_booking(self, service, completed, hirer, worker) -> None:
        review = service.create_review(hirer, ReviewCreate(booking_id=completed.id, rating=4, review_text=" Great "))
        assert review.worker_id == worker.id
        assert review.hirer_id == hirer.id
        assert review.review_text == "Great"

    @pytest.mark.parametrize("status", [BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.CANCELLED])
    def test_only_completed_bookings(self, service, hirer, worker, make_booking, status) -> None:
        booking = make_booking(hirer, worker, status)
        with pytest.raises(Unauthorized):
            service.create_review(hirer, ReviewCreate(booking_id=booking.id, rating=5))

    def test_worker_cannot_review(self, service, completed, worker) -> None:
        with pytest.raises(Unauthorized):
            service.create_review(worker.user, ReviewCreate(booking_id=completed.id, rating=5))

    def test_outsider_cannot_review(self, service, completed, make_principal) -> None:
        with pytest.raises(Unauthorized):
            service.create_review(make_principal(), ReviewCreate(booking_id=completed.id, rating=5))

    def test_one_review_per_booking(self, db, service, completed, hirer) -> None:
        service.create_review(hirer, ReviewCreate(booking_id=completed.id, rating=5))
        with pytest.raises(Conflict):
            service.create_review(hirer, ReviewCreate(booking_id=completed.id, rating=1))
        assert db.query(Review).count() == 1

    def test_unknown_booking_looks_like_foreign_booking(self, service, completed, make_principal) -> None:
        outsider = make_principal()
        with pytest.raises(Unauthorized) as foreign:
            service.create_review(outsider, ReviewCreate(booking_id=completed.id, rating=3))
        with pytest.raises(Unauthorized) as missing:
            service.create_review(outsider, ReviewCreate(booking_id="missing", rating=3))
        assert foreign.value.to_dict() == missing.value.to_dict()
        assert foreign.value.status_code == missing.value.status_code == 403

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_bounds(self, rating) -> None:
        with pytest.raises(ValidationError):
            ReviewCreate(booking_id="b", rating=rating)


class TestReviewUpdate:
    def test_author_edits(self, db, service, completed, hirer, worker) -> None:
        review = service.create_review(hirer, ReviewCreate(booking_id=completed.id, rating=2))
        updated = service.update_review(hirer, review.id, ReviewUpdate(rating=5, review_text="Came back and fixed it"))
        assert updated.rating == 5
        db.refresh(worker)
        assert float(worker.rating) == 5.0

    def test_others_cannot_edit(self, service, completed, hirer, worker) -> None:
        review = service.create_review(hirer, ReviewCreate(booking_id=completed.id, rating=2))
        with pytest.raises(Unauthorized):
            service.update_review(worker.user, review.id, ReviewUpdate(rating=5))

    def test_missing_review(self, service, hirer) -> None:
        with pytest.raises(NotFound):
            service.update_review(hirer, "missing", ReviewUpdate(rating=5))


class TestAggregateRating:
    def test_no_reviews(self, service, worker) -> None:
        summary = service.get_rating_summary(worker.id)
        assert summary["rating"] is None
        assert summary["rating_display"] == "No rating yet"
        assert summary["review_count"] == 0

    def test_mean_rounded_to_one_decimal(self, db, service, hirer, worker, make_booking) -> None:
        for rating in (5, 4, 4):
            booking = make_booking(hirer, worker, BookingStatus.COMPLETED)
            service.create_review(hirer, ReviewCreate(booking_id=booking.id, rating=rating))

        summary = service.get_rating_summary(worker.id)
        assert summary["rating"] == 4.3
        assert summary["rating_display"] == "4.3"
        assert summary["review_count"] == 3

        db.refresh(worker)
        assert float(worker.rating) == pytest.approx(4.33)

    def test_unknown_worker(self, service) -> None:
        with pytest.raises(NotFound):
            service.get_rating_summary("missing")

    def test_reviews_listed_with_names(self, service, hirer, worker, make_booking) -> None:
        booking = make_booking(hirer, worker, BookingStatus.COMPLETED)
        service.create_review(hirer, ReviewCreate(booking_id=booking.id, rating=3))

        reviews = service.list_worker_reviews(worker.id)
        assert [ReviewResponse.from_model(r).hirer_name for r in reviews] == ["Hana Hirer"]
        assert service.list_worker_reviews("missing") == []
