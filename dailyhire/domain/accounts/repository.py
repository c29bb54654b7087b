"""Account repository - Database operations for principal profiles"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Profile


class ProfileRepository:
    @staticmethod
    def get_by_id(db: Session, profile_id: str) -> Optional[Profile]:
        return db.query(Profile).filter(Profile.id == profile_id).first()

    @staticmethod
    def update(db: Session, profile: Profile, **updates) -> Profile:
        for key, value in updates.items():
            setattr(profile, key, value)
        db.commit()
        db.refresh(profile)
        return profile
