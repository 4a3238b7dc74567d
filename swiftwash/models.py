import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base
from .domain.enums import BookingStatus, JobRequestStatus, WorkerRole, WorkerStatus


def generate_public_id():
    """Generate an opaque unique id"""
    return str(uuid.uuid4())


def default_worker_settings():
    return {
        "notifications": {"sms": True, "newJobs": True, "statusUpdates": True},
        "availability": {
            day: day != "sunday"
            for day in (
                "monday",
                "tuesday",
                "wednesday",
                "thursday",
                "friday",
                "saturday",
                "sunday",
            )
        },
        "workingHours": {"start": "08:00", "end": "17:00"},
    }


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    name = Column(String(255), nullable=True)
    phone = Column(String(20), unique=True, index=True, nullable=False)  # canonical 254XXXXXXXXX
    email = Column(String(255), nullable=True)
    loyalty_points = Column(Integer, default=0, nullable=False)
    wallet_balance = Column(Float, default=0, nullable=False)  # credit from redeemed points
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    bookings = relationship("Booking", back_populates="customer")


class Worker(Base):
    __tablename__ = "workers"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(20), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), default=WorkerRole.WORKER.value, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)  # soft-delete flag
    status = Column(String(20), default=WorkerStatus.AVAILABLE.value, nullable=False)
    total_earnings = Column(Float, default=0, nullable=False)
    current_booking_id = Column(String(36), nullable=True)
    settings = Column(JSON, default=default_worker_settings, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    bookings = relationship("Booking", back_populates="assigned_worker", passive_deletes=True)
    daily_earnings = relationship(
        "WorkerDailyEarning",
        back_populates="worker",
        cascade="all, delete-orphan",
        order_by="WorkerDailyEarning.date",
    )
    job_requests = relationship(
        "JobRequest",
        back_populates="worker",
        cascade="all, delete-orphan",
        order_by="JobRequest.created_at",
    )


class WorkerDailyEarning(Base):
    """One ledger row per worker per calendar date; amounts accumulate within the date"""

    __tablename__ = "worker_daily_earnings"
    __table_args__ = (UniqueConstraint("worker_id", "date", name="uq_worker_daily_earning"),)

    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(String(36), ForeignKey("workers.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    amount = Column(Float, default=0, nullable=False)
    tasks_completed = Column(Integer, default=0, nullable=False)

    worker = relationship("Worker", back_populates="daily_earnings")


class JobRequest(Base):
    __tablename__ = "job_requests"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    worker_id = Column(String(36), ForeignKey("workers.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    date = Column(Date, nullable=True)  # day the worker asks about
    status = Column(String(20), default=JobRequestStatus.PENDING.value, nullable=False)
    admin_response = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    responded_at = Column(DateTime, nullable=True)

    worker = relationship("Worker", back_populates="job_requests")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=True, index=True)

    # Customer details as entered
    customer_name = Column(String(255), nullable=False)
    phone = Column(String(20), index=True, nullable=False)
    location = Column(Text, nullable=False)
    special_instructions = Column(Text, nullable=True)
    car_details = Column(JSON, nullable=True)  # make, model, color, plate

    vehicle_class = Column(String(20), nullable=False)
    service_type = Column(String(30), nullable=False)
    scheduled_date = Column(Date, nullable=False, index=True)
    scheduled_time = Column(String(5), nullable=False)

    status = Column(String(20), default=BookingStatus.PENDING.value, nullable=False, index=True)
    price = Column(Integer, nullable=False)  # fixed at creation
    loyalty_points_earned = Column(Integer, default=0, nullable=False)

    assigned_worker_id = Column(
        String(36), ForeignKey("workers.id", ondelete="SET NULL"), nullable=True, index=True
    )

    completed_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)

    rejection_reason = Column(Text, nullable=True)
    rejected_by = Column(String(20), nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by = Column(String(20), nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    # Embedded feedback, set at most once
    feedback_rating = Column(Integer, nullable=True)
    feedback_comment = Column(Text, nullable=True)
    feedback_submitted_at = Column(DateTime, nullable=True)
    feedback_worker_id = Column(String(36), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer", back_populates="bookings")
    assigned_worker = relationship("Worker", back_populates="bookings")
    modifications = relationship(
        "BookingModification",
        back_populates="booking",
        order_by="BookingModification.id",
        cascade="all, delete-orphan",
    )


class BookingModification(Base):
    """Append-only audit log entry; rows are never updated"""

    __tablename__ = "booking_modifications"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    type = Column(String(30), nullable=False)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    reason = Column(Text, nullable=True)
    actor = Column(String(20), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    booking = relationship("Booking", back_populates="modifications")


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), unique=True, nullable=False)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=True)
    worker_id = Column(String(36), nullable=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    service_type = Column(String(30), nullable=True)
    admin_alerted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class PromoBanner(Base):
    __tablename__ = "promo_banners"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(String(500), nullable=True)
    action_url = Column(String(500), nullable=True)
    action_text = Column(String(100), default="Learn More", nullable=True)
    discount_code = Column(String(50), nullable=True)
    discount_amount = Column(Float, nullable=True)
    discount_type = Column(String(20), default="percentage", nullable=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    priority = Column(Integer, default=1, nullable=False)
    target_audience = Column(JSON, default=lambda: ["all"], nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class PhoneVerification(Base):
    __tablename__ = "phone_verifications"

    id = Column(Integer, primary_key=True, index=True)
    phone = Column(String(20), index=True, nullable=False)
    otp = Column(String(6), nullable=False)
    is_used = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    attempts = Column(Integer, default=0, nullable=False)
    max_attempts = Column(Integer, default=3, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
