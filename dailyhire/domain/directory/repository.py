"""Directory repository - Database operations for categories and worker profiles"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import DEFAULT_CATEGORIES, Category, Profile, WorkerProfile


class DirectoryRepository:
    @staticmethod
    def list_categories(db: Session) -> list[Category]:
        return db.query(Category).order_by(Category.name.asc()).all()

    @staticmethod
    def get_category(db: Session, category_id: str) -> Optional[Category]:
        return db.query(Category).filter(Category.id == category_id).first()

    @staticmethod
    def seed_categories(db: Session) -> int:
        """Insert the default taxonomy if the table is empty"""
        if db.query(Category.id).first():
            return 0
        for name, description, icon in DEFAULT_CATEGORIES:
            db.add(Category(name=name, description=description, icon=icon))
        db.commit()
        return len(DEFAULT_CATEGORIES)

    @staticmethod
    def list_workers(db: Session, category_id: Optional[str] = None) -> list[WorkerProfile]:
        """Workers with their principal and category, best rated first, unrated last"""
        query = db.query(WorkerProfile).options(
            joinedload(WorkerProfile.user), joinedload(WorkerProfile.category)
        )
        if category_id:
            query = query.filter(WorkerProfile.category_id == category_id)

        return query.order_by(
            WorkerProfile.rating.is_(None),
            WorkerProfile.rating.desc(),
            WorkerProfile.created_at.asc(),
        ).all()

    @staticmethod
    def get_worker(db: Session, worker_id: str) -> Optional[WorkerProfile]:
        return (
            db.query(WorkerProfile)
            .options(joinedload(WorkerProfile.user), joinedload(WorkerProfile.category))
            .filter(WorkerProfile.id == worker_id)
            .first()
        )

    @staticmethod
    def get_worker_by_user(db: Session, user_id: str) -> Optional[WorkerProfile]:
        return db.query(WorkerProfile).filter(WorkerProfile.user_id == user_id).first()

    @staticmethod
    def create_worker(db: Session, user: Profile, **worker_data) -> WorkerProfile:
        worker = WorkerProfile(user_id=user.id, **worker_data)
        db.add(worker)
        db.commit()
        db.refresh(worker)
        return worker

    @staticmethod
    def update_worker(db: Session, worker: WorkerProfile, **updates) -> WorkerProfile:
        for key, value in updates.items():
            setattr(worker, key, value)
        db.commit()
        db.refresh(worker)
        return worker
