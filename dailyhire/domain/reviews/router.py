"""Review router - FastAPI endpoints for reviews and worker ratings"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_principal
from ...database import get_db
from ...models import Profile
from .schemas import RatingSummary, ReviewCreate, ReviewResponse, ReviewUpdate
from .service import ReviewService

router = APIRouter(tags=["Reviews"])


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    """Dependency injection for ReviewService"""
    return ReviewService(db)


@router.post("/reviews", response_model=ReviewResponse, status_code=201)
async def create_review(
    data: ReviewCreate,
    current_principal: Profile = Depends(get_current_principal),
    service: ReviewService = Depends(get_review_service),
):
    """Rate the worker of a completed booking (the booking's hirer only, once)"""
    return ReviewResponse.from_model(service.create_review(current_principal, data))


@router.patch("/reviews/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: str,
    data: ReviewUpdate,
    current_principal: Profile = Depends(get_current_principal),
    service: ReviewService = Depends(get_review_service),
):
    return ReviewResponse.from_model(service.update_review(current_principal, review_id, data))


# Reviews are a public reputation signal: no sign-in needed to read them


@router.get("/workers/{worker_id}/reviews", response_model=list[ReviewResponse])
async def list_worker_reviews(worker_id: str, service: ReviewService = Depends(get_review_service)):
    return [ReviewResponse.from_model(r) for r in service.list_worker_reviews(worker_id)]


@router.get("/workers/{worker_id}/rating", response_model=RatingSummary)
async def get_worker_rating(worker_id: str, service: ReviewService = Depends(get_review_service)):
    return service.get_rating_summary(worker_id)
