"""Review repository - Database operations for reviews and the derived worker rating"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, Review, WorkerProfile


class ReviewRepository:
    @staticmethod
    def get_review(db: Session, review_id: str) -> Optional[Review]:
        return db.query(Review).filter(Review.id == review_id).first()

    @staticmethod
    def get_for_booking(db: Session, booking_id: str) -> Optional[Review]:
        return db.query(Review).filter(Review.booking_id == booking_id).first()

    @staticmethod
    def lock_booking(db: Session, booking_id: str) -> Optional[Booking]:
        """Load the booking with a row lock held until the transaction ends"""
        return db.query(Booking).filter(Booking.id == booking_id).with_for_update().first()

    @staticmethod
    def list_for_worker(db: Session, worker_id: str) -> list[Review]:
        return (
            db.query(Review)
            .options(joinedload(Review.hirer))
            .filter(Review.worker_id == worker_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )

    @staticmethod
    def add_review(db: Session, **review_data) -> Review:
        """Stage a review. Does not commit."""
        review = Review(**review_data)
        db.add(review)
        db.flush()
        return review

    @staticmethod
    def rating_stats(db: Session, worker_id: str) -> tuple[Optional[float], int]:
        average, count = (
            db.query(func.avg(Review.rating), func.count(Review.id))
            .filter(Review.worker_id == worker_id)
            .one()
        )
        return average, count

    @staticmethod
    def recompute_rating(db: Session, worker_id: str) -> Optional[Decimal]:
        """Store the mean review rating on the worker profile. Does not commit."""
        average, _count = ReviewRepository.rating_stats(db, worker_id)
        rating = None
        if average is not None:
            rating = Decimal(str(average)).quantize(Decimal("0.01"))
        db.execute(
            update(WorkerProfile)
            .where(WorkerProfile.id == worker_id)
            .values(rating=rating)
            .execution_options(synchronize_session=False)
        )
        return rating
