"""Review schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import Review


def _clean_text(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    return v.strip() or None


class ReviewCreate(BaseModel):
    booking_id: str
    rating: int = Field(..., ge=1, le=5)
    review_text: Optional[str] = Field(None, max_length=2000)

    @field_validator("review_text")
    @classmethod
    def strip_text(cls, v):
        return _clean_text(v)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    review_text: Optional[str] = Field(None, max_length=2000)

    @field_validator("review_text")
    @classmethod
    def strip_text(cls, v):
        return _clean_text(v)


class ReviewResponse(BaseModel):
    id: str
    booking_id: str
    hirer_id: str
    hirer_name: Optional[str] = None
    worker_id: str
    rating: int
    review_text: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, review: Review) -> "ReviewResponse":
        return cls(
            id=review.id,
            booking_id=review.booking_id,
            hirer_id=review.hirer_id,
            hirer_name=review.hirer.full_name if review.hirer else None,
            worker_id=review.worker_id,
            rating=review.rating,
            review_text=review.review_text,
            created_at=review.created_at,
            updated_at=review.updated_at,
        )


class RatingSummary(BaseModel):
    worker_id: str
    rating: Optional[float] = None
    rating_display: str
    review_count: int
    total_jobs: int
