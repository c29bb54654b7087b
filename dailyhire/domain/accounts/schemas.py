"""Account schemas - Pydantic models for principal profiles"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import validate_phone


class ProfileUpdate(BaseModel):
    """Fields a principal may change on their own profile"""

    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = None
    location_lat: Optional[Decimal] = Field(None, ge=-90, le=90)
    location_lng: Optional[Decimal] = Field(None, ge=-180, le=180)
    address: Optional[str] = Field(None, max_length=500)
    avatar_url: Optional[str] = Field(None, max_length=500)
    # Accepted only so a role change can be rejected explicitly
    role: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if v else v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: str
    phone: Optional[str] = None
    role: str
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    address: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None


class PublicProfileResponse(BaseModel):
    """What any signed-in principal can see about another"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    role: str
    avatar_url: Optional[str] = None
