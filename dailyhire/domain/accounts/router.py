"""Account router - FastAPI endpoints for principal profiles"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_principal
from ...database import get_db
from ...models import Profile
from .schemas import ProfileResponse, ProfileUpdate, PublicProfileResponse
from .service import AccountService

router = APIRouter(prefix="/profiles", tags=["Profiles"])


def get_account_service(db: Session = Depends(get_db)) -> AccountService:
    """Dependency injection for AccountService"""
    return AccountService(db)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(current_principal: Profile = Depends(get_current_principal)):
    return current_principal


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    data: ProfileUpdate,
    current_principal: Profile = Depends(get_current_principal),
    service: AccountService = Depends(get_account_service),
):
    """Update the signed-in principal's profile (role cannot change)"""
    return service.update_own_profile(current_principal, data)


@router.get("/{profile_id}", response_model=PublicProfileResponse)
async def get_profile(
    profile_id: str,
    current_principal: Profile = Depends(get_current_principal),
    service: AccountService = Depends(get_account_service),
):
    return service.get_profile(profile_id)
