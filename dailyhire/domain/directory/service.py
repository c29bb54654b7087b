"""Directory service - Catalog search and worker profile ownership rules"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...errors import Conflict, NotFound, Unauthorized, ValidationFailed
from ...models import Category, Profile, Role, WorkerProfile
from .repository import DirectoryRepository
from .schemas import WorkerProfileCreate, WorkerProfileUpdate

logger = logging.getLogger(__name__)

# Fields that may be cleared by sending null; everything else ignores nulls
CLEARABLE_FIELDS = {"daily_rate", "bio"}


def worker_matches(worker: WorkerProfile, term: str) -> bool:
    """Case-insensitive substring match on name, bio, or any skill"""
    needle = term.lower()
    if needle in (worker.user.full_name or "").lower():
        return True
    if needle in (worker.bio or "").lower():
        return True
    return any(needle in skill.lower() for skill in worker.skills or [])


class DirectoryService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = DirectoryRepository()

    def list_categories(self) -> list[Category]:
        return self.repo.list_categories(self.db)

    def search_workers(
        self, category_id: Optional[str] = None, q: Optional[str] = None
    ) -> list[WorkerProfile]:
        workers = self.repo.list_workers(self.db, category_id)
        term = (q or "").strip()
        if term:
            workers = [w for w in workers if worker_matches(w, term)]
        return workers

    def get_worker(self, worker_id: str) -> WorkerProfile:
        worker = self.repo.get_worker(self.db, worker_id)
        if not worker:
            raise NotFound("Worker")
        return worker

    def get_own_worker_profile(self, principal: Profile) -> WorkerProfile:
        worker = self.repo.get_worker_by_user(self.db, principal.id)
        if not worker:
            raise NotFound("Worker profile")
        return worker

    def _require_category(self, category_id: str) -> None:
        if not self.repo.get_category(self.db, category_id):
            raise ValidationFailed({"category_id": "Please select a valid category"})

    def create_worker_profile(self, principal: Profile, data: WorkerProfileCreate) -> WorkerProfile:
        """A worker may create exactly one profile, for themselves"""
        if principal.role != Role.WORKER.value:
            raise Unauthorized(f"{principal.role} {principal.id} tried to create a worker profile")

        if self.repo.get_worker_by_user(self.db, principal.id):
            raise Conflict("You already have a worker profile.")

        self._require_category(data.category_id)

        try:
            worker = self.repo.create_worker(
                self.db,
                principal,
                category_id=data.category_id,
                hourly_rate=data.hourly_rate,
                daily_rate=data.daily_rate,
                experience_years=data.experience_years,
                skills=data.skills,
                bio=data.bio,
            )
        except IntegrityError as e:
            # Concurrent second application lost the unique(user_id) race
            self.db.rollback()
            raise Conflict("You already have a worker profile.") from e

        logger.info(f"✅ Worker profile {worker.id} created for {principal.id}")
        return worker

    def update_worker_profile(self, principal: Profile, data: WorkerProfileUpdate) -> WorkerProfile:
        worker = self.get_own_worker_profile(principal)

        updates = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key in CLEARABLE_FIELDS
        }
        if "category_id" in updates:
            self._require_category(updates["category_id"])

        return self.repo.update_worker(self.db, worker, **updates)
