"""Directory schemas - Pydantic models for categories and worker profiles"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...models import WorkerProfile
from ...shared.ratings import rating_label, round_rating
from ...shared.validators import validate_skills


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None


def check_daily_rate(v: Optional[Decimal]) -> Optional[Decimal]:
    # The form sends 0 for "no daily rate"
    if v is None or v == 0:
        return None
    if v < 500:
        raise ValueError("Daily rate must be at least ₹500")
    if v > 50000:
        raise ValueError("Daily rate cannot exceed ₹50,000")
    return v


class WorkerProfileCreate(BaseModel):
    """Worker application form"""

    category_id: str
    hourly_rate: Decimal = Field(..., ge=100, le=10000)
    daily_rate: Optional[Decimal] = None
    experience_years: int = Field(0, ge=0, le=50)
    skills: Union[str, list[str]]
    bio: Optional[str] = Field(None, max_length=1000)

    @field_validator("daily_rate")
    @classmethod
    def validate_daily_rate(cls, v):
        return check_daily_rate(v)

    @field_validator("skills")
    @classmethod
    def check_skills(cls, v):
        return validate_skills(v)

    @field_validator("bio")
    @classmethod
    def strip_bio(cls, v):
        if v is None:
            return None
        return v.strip() or None


class WorkerProfileUpdate(BaseModel):
    category_id: Optional[str] = None
    hourly_rate: Optional[Decimal] = Field(None, ge=100, le=10000)
    daily_rate: Optional[Decimal] = None
    experience_years: Optional[int] = Field(None, ge=0, le=50)
    skills: Optional[Union[str, list[str]]] = None
    bio: Optional[str] = Field(None, max_length=1000)

    @field_validator("daily_rate")
    @classmethod
    def validate_daily_rate(cls, v):
        return check_daily_rate(v)

    @field_validator("skills")
    @classmethod
    def check_skills(cls, v):
        if v is None:
            return None
        return validate_skills(v)


class WorkerResponse(BaseModel):
    id: str
    user_id: str
    full_name: str
    avatar_url: Optional[str] = None
    category: Optional[CategoryResponse] = None
    hourly_rate: float
    daily_rate: Optional[float] = None
    experience_years: int
    skills: list[str]
    bio: Optional[str] = None
    verification_status: Optional[str] = None
    rating: Optional[float] = None
    rating_display: str
    total_jobs: int
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, worker: WorkerProfile) -> "WorkerResponse":
        return cls(
            id=worker.id,
            user_id=worker.user_id,
            full_name=worker.user.full_name,
            avatar_url=worker.user.avatar_url,
            category=CategoryResponse.model_validate(worker.category) if worker.category else None,
            hourly_rate=float(worker.hourly_rate),
            daily_rate=float(worker.daily_rate) if worker.daily_rate is not None else None,
            experience_years=worker.experience_years or 0,
            skills=list(worker.skills or []),
            bio=worker.bio,
            verification_status=worker.verification_status,
            rating=round_rating(worker.rating),
            rating_display=rating_label(worker.rating),
            total_jobs=worker.total_jobs or 0,
            created_at=worker.created_at,
        )
