"""Review service - Post-job reviews and the worker rating derived from them"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...errors import Conflict, NotFound, Unauthorized
from ...models import BookingStatus, Profile, Review, WorkerProfile
from ...shared.ratings import rating_label, round_rating
from ...shared.validators import sanitize_string
from .repository import ReviewRepository
from .schemas import ReviewCreate, ReviewUpdate

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepository()

    def create_review(self, principal: Profile, data: ReviewCreate) -> Review:
        """
        Review a completed booking. The booking row stays locked while the
        eligibility check, the insert and the rating recompute run, so they
        commit or fail together.
        """
        try:
            booking = self.repo.lock_booking(self.db, data.booking_id)
            # A missing booking and someone else's booking fail alike
            if not booking or booking.hirer_id != principal.id:
                raise Unauthorized(f"{principal.id} is not the hirer of booking {data.booking_id}")

            if booking.status != BookingStatus.COMPLETED.value:
                raise Unauthorized(f"Booking {booking.id} is {booking.status}, not completed")

            if self.repo.get_for_booking(self.db, booking.id):
                raise Conflict("You have already reviewed this booking.")

            review = self.repo.add_review(
                self.db,
                booking_id=booking.id,
                hirer_id=principal.id,
                worker_id=booking.worker_id,
                rating=data.rating,
                review_text=sanitize_string(data.review_text) if data.review_text else None,
            )
            rating = self.repo.recompute_rating(self.db, booking.worker_id)
            self.db.commit()
        except IntegrityError as e:
            # Lost the race to another insert for the same booking
            self.db.rollback()
            raise Conflict("You have already reviewed this booking.") from e
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(review)
        logger.info(f"⭐ Review {review.id} ({review.rating}) for worker {review.worker_id}; rating now {rating}")
        return review

    def update_review(self, principal: Profile, review_id: str, data: ReviewUpdate) -> Review:
        review = self.repo.get_review(self.db, review_id)
        if not review:
            raise NotFound("Review")
        if review.hirer_id != principal.id:
            raise Unauthorized(f"{principal.id} tried to edit review {review_id}")

        changes = data.model_dump(exclude_unset=True)
        if changes.get("rating") is None:
            changes.pop("rating", None)
        if "review_text" in changes and changes["review_text"]:
            changes["review_text"] = sanitize_string(changes["review_text"])

        try:
            for field, value in changes.items():
                setattr(review, field, value)
            self.db.flush()
            self.repo.recompute_rating(self.db, review.worker_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(review)
        logger.info(f"✅ Review {review.id} updated")
        return review

    def list_worker_reviews(self, worker_id: str) -> list[Review]:
        return self.repo.list_for_worker(self.db, worker_id)

    def get_rating_summary(self, worker_id: str) -> dict:
        worker = self.db.query(WorkerProfile).filter(WorkerProfile.id == worker_id).first()
        if not worker:
            raise NotFound("Worker")

        average, count = self.repo.rating_stats(self.db, worker_id)
        return {
            "worker_id": worker.id,
            "rating": round_rating(average),
            "rating_display": rating_label(average),
            "review_count": count,
            "total_jobs": worker.total_jobs or 0,
        }
