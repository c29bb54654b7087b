"""Shared fixtures: an in-memory database, principals, workers and fakes for R2 and Redis."""

import os

# Keep the module-level engine off disk; tests use their own engine below
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("FIREBASE_PROJECT_ID", "dailyhire-test")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

from datetime import date, timedelta
from decimal import Decimal

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dailyhire.auth import get_current_principal
from dailyhire.database import Base, get_db
from dailyhire.domain.directory.repository import DirectoryRepository
from dailyhire.errors import Unauthenticated
from dailyhire.main import app
from dailyhire.models import Booking, BookingStatus, Category, Profile, Role, WorkerProfile
from dailyhire.services.change_feed import ChangeFeed, get_change_feed
from dailyhire.services.object_storage import ObjectStorage, get_object_storage

PUBLIC_BASE_URL = "https://files.dailyhire.test"


# =====================================================================
# Fakes
# =====================================================================


class RecordingFeed(ChangeFeed):
    """Change feed that keeps published events in memory"""

    def __init__(self):
        super().__init__(client=None, url=None)
        self.events: list[tuple[str, str, str, str, str]] = []

    def publish(self, table, column, value, event, record_id=None):
        self.events.append((table, column, value, event, record_id))
        return True

    def channels(self) -> set[str]:
        return {f"{table}:{column}={value}" for table, column, value, _, _ in self.events}


class _Body:
    def __init__(self, data: bytes):
        self._data = data

    def read(self) -> bytes:
        return self._data


class FakeS3:
    """The slice of the boto3 S3 client that ObjectStorage uses"""

    def __init__(self):
        self.objects: dict[tuple[str, str], dict] = {}

    def put_object(self, Bucket, Key, Body, ContentType=None):
        self.objects[(Bucket, Key)] = {"Body": Body, "ContentType": ContentType}

    def get_object(self, Bucket, Key):
        if (Bucket, Key) not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey"}}, "GetObject")
        return {"Body": _Body(self.objects[(Bucket, Key)]["Body"])}

    def delete_object(self, Bucket, Key):
        self.objects.pop((Bucket, Key), None)


# =====================================================================
# Database
# =====================================================================


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def category(db) -> Category:
    DirectoryRepository.seed_categories(db)
    return db.query(Category).filter(Category.name == "Plumber").one()


@pytest.fixture
def make_principal(db):
    counter = {"n": 0}

    def _make(role: Role = Role.HIRER, full_name: str = None) -> Profile:
        counter["n"] += 1
        n = counter["n"]
        principal = Profile(
            firebase_uid=f"uid-{n}",
            email=f"user{n}@example.com",
            full_name=full_name or f"User {n}",
            role=role.value,
        )
        db.add(principal)
        db.commit()
        db.refresh(principal)
        return principal

    return _make


@pytest.fixture
def make_worker(db, make_principal, category):
    def _make(
        full_name: str = None,
        hourly_rate: str = "500",
        daily_rate: str = None,
        skills: list = None,
        bio: str = None,
    ) -> WorkerProfile:
        principal = make_principal(Role.WORKER, full_name)
        worker = WorkerProfile(
            user_id=principal.id,
            category_id=category.id,
            hourly_rate=Decimal(hourly_rate),
            daily_rate=Decimal(daily_rate) if daily_rate else None,
            experience_years=3,
            skills=skills or ["Pipe fitting"],
            bio=bio,
        )
        db.add(worker)
        db.commit()
        db.refresh(worker)
        return worker

    return _make


@pytest.fixture
def hirer(make_principal) -> Profile:
    return make_principal(Role.HIRER, "Hana Hirer")


@pytest.fixture
def worker(make_worker) -> WorkerProfile:
    return make_worker("Walt Worker", skills=["Pipe fitting", "Leak repair"])


@pytest.fixture
def make_booking(db):
    """Insert a booking directly in a given status"""

    def _make(hirer: Profile, worker: WorkerProfile, status: BookingStatus = BookingStatus.PENDING) -> Booking:
        booking = Booking(
            hirer_id=hirer.id,
            worker_id=worker.id,
            booking_date=date.today() + timedelta(days=2),
            duration_hours=Decimal("4"),
            status=status.value,
            work_description="Fix the kitchen sink",
            agreed_rate=Decimal("2000.00"),
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return _make


# =====================================================================
# Collaborators
# =====================================================================


@pytest.fixture
def feed() -> RecordingFeed:
    return RecordingFeed()


@pytest.fixture
def s3() -> FakeS3:
    return FakeS3()


@pytest.fixture
def storage(s3) -> ObjectStorage:
    return ObjectStorage(client=s3, bucket="chat-files", public_base_url=PUBLIC_BASE_URL)


# =====================================================================
# HTTP
# =====================================================================


@pytest.fixture
def signed_in():
    """Holds the principal the test client acts as; None means signed out"""
    return {"principal": None}


@pytest.fixture
def sign_in(signed_in):
    def _sign_in(principal):
        signed_in["principal"] = principal
        return principal

    return _sign_in


@pytest.fixture
def client(db, storage, feed, signed_in):
    def override_get_db():
        yield db

    def override_principal():
        if signed_in["principal"] is None:
            raise Unauthenticated()
        return signed_in["principal"]

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_principal] = override_principal
    app.dependency_overrides[get_object_storage] = lambda: storage
    app.dependency_overrides[get_change_feed] = lambda: feed
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
