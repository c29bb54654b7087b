import enum
import uuid

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Opaque string identifier used for every primary key"""
    return str(uuid.uuid4())


class Role(str, enum.Enum):
    HIRER = "hirer"
    WORKER = "worker"


class AvailabilityStatus(str, enum.Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    HOLIDAY = "holiday"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


def _in_check(column: str, values) -> str:
    quoted = ", ".join(f"'{v.value}'" for v in values)
    return f"{column} IN ({quoted})"


class Profile(Base):
    """An authenticated principal. `role` is written once, at creation."""

    __tablename__ = "profiles"
    __table_args__ = (CheckConstraint(_in_check("role", Role), name="valid_role"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    firebase_uid = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=False, default="User")
    phone = Column(String(20), nullable=True)
    role = Column(String(10), nullable=False, default=Role.HIRER.value)
    location_lat = Column(Numeric(10, 8), nullable=True)
    location_lng = Column(Numeric(11, 8), nullable=True)
    address = Column(Text, nullable=True)
    avatar_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    worker_profile = relationship(
        "WorkerProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(50), nullable=True)  # lucide icon name used by the frontend
    created_at = Column(DateTime, server_default=func.now())


class WorkerProfile(Base):
    __tablename__ = "worker_profiles"
    __table_args__ = (
        CheckConstraint("hourly_rate > 0", name="positive_hourly_rate"),
        CheckConstraint("experience_years >= 0", name="non_negative_experience"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False)
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    daily_rate = Column(Numeric(10, 2), nullable=True)
    experience_years = Column(Integer, nullable=False, default=0)
    skills = Column(JSON, nullable=False, default=list)  # ordered list of skill names
    bio = Column(Text, nullable=True)
    verification_status = Column(String(20), default="pending")
    # Derived from reviews; NULL until the first review lands
    rating = Column(Numeric(3, 2), nullable=True)
    # Derived from bookings that reached "completed"
    total_jobs = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("Profile", back_populates="worker_profile")
    category = relationship("Category")
    availability = relationship(
        "AvailabilityRecord", back_populates="worker", cascade="all, delete-orphan"
    )


class AvailabilityRecord(Base):
    __tablename__ = "availability_calendar"
    __table_args__ = (
        UniqueConstraint("worker_id", "date", name="uq_availability_worker_date"),
        CheckConstraint(_in_check("status", AvailabilityStatus), name="valid_availability_status"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    worker_id = Column(
        String(36), ForeignKey("worker_profiles.id", ondelete="CASCADE"), nullable=False
    )
    date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    worker = relationship("WorkerProfile", back_populates="availability")


class Booking(Base):
    """A single hire. Rows are never deleted; status only moves forward."""

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint(_in_check("status", BookingStatus), name="valid_booking_status"),
        CheckConstraint(_in_check("payment_status", PaymentStatus), name="valid_payment_status"),
        Index("idx_bookings_hirer_id", "hirer_id"),
        Index("idx_bookings_worker_id", "worker_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    hirer_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    worker_id = Column(
        String(36), ForeignKey("worker_profiles.id", ondelete="CASCADE"), nullable=False
    )
    booking_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=True)
    duration_hours = Column(Numeric(5, 2), nullable=True)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    work_description = Column(Text, nullable=False)
    # Contract price, fixed when the booking is created
    agreed_rate = Column(Numeric(10, 2), nullable=False)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    hirer = relationship("Profile", foreign_keys=[hirer_id])
    worker = relationship("WorkerProfile")
    messages = relationship("BookingMessage", back_populates="booking")
    review = relationship("Review", back_populates="booking", uselist=False)


class BookingMessage(Base):
    __tablename__ = "messages"
    __table_args__ = (Index("idx_messages_booking_id", "booking_id"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    booking_id = Column(String(36), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    file_url = Column(String(1000), nullable=True)
    file_type = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    booking = relationship("Booking", back_populates="messages")
    sender = relationship("Profile")


class DirectMessage(Base):
    __tablename__ = "direct_messages"
    __table_args__ = (
        CheckConstraint("sender_id != receiver_id", name="different_users"),
        Index("idx_direct_messages_sender", "sender_id"),
        Index("idx_direct_messages_receiver", "receiver_id"),
        Index("idx_direct_messages_created_at", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    sender_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    receiver_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    content = Column(Text, nullable=False)
    file_url = Column(String(1000), nullable=True)
    file_type = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    read_at = Column(DateTime, nullable=True)  # set once, by the receiver

    sender = relationship("Profile", foreign_keys=[sender_id])
    receiver = relationship("Profile", foreign_keys=[receiver_id])


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("booking_id", name="uq_reviews_booking_id"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="rating_range"),
        Index("idx_reviews_worker_id", "worker_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    booking_id = Column(String(36), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)
    hirer_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    worker_id = Column(
        String(36), ForeignKey("worker_profiles.id", ondelete="CASCADE"), nullable=False
    )
    rating = Column(Integer, nullable=False)
    review_text = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    booking = relationship("Booking", back_populates="review")
    hirer = relationship("Profile")


DEFAULT_CATEGORIES = [
    ("Plumber", "Plumbing and pipe repair services", "wrench"),
    ("Carpenter", "Woodwork and furniture services", "hammer"),
    ("Painter", "Painting and decoration services", "paintbrush"),
    ("Electrician", "Electrical repair and installation", "zap"),
    ("Chef", "Cooking and catering services", "chef-hat"),
    ("Cleaner", "Cleaning and housekeeping services", "sparkles"),
    ("Gardener", "Gardening and landscaping services", "leaf"),
    ("Mason", "Construction and masonry work", "building"),
]
