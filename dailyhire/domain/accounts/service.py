"""Account service - Principal profile reads and owner-only updates"""

import logging

from sqlalchemy.orm import Session

from ...errors import NotFound, ValidationFailed
from ...models import Profile
from .repository import ProfileRepository
from .schemas import ProfileUpdate

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ProfileRepository()

    def get_profile(self, profile_id: str) -> Profile:
        profile = self.repo.get_by_id(self.db, profile_id)
        if not profile:
            raise NotFound("Profile")
        return profile

    def update_own_profile(self, principal: Profile, data: ProfileUpdate) -> Profile:
        """
        Apply an owner's profile edit. Role is fixed at signup: a payload
        carrying a different role is rejected before anything is written.
        """
        if data.role is not None and data.role != principal.role:
            logger.warning(
                f"⚠️ Principal {principal.id} attempted role change {principal.role} -> {data.role}"
            )
            raise ValidationFailed({"role": "Role cannot be changed"})

        updates = data.model_dump(exclude_unset=True, exclude={"role"})
        if "full_name" in updates and not updates["full_name"]:
            raise ValidationFailed({"full_name": "Full name must be at least 2 characters"})

        return self.repo.update(self.db, principal, **updates)
