"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_phone
from ..enums import TIME_SLOTS, ServiceType, VehicleClass
from ..pricing import estimated_duration


def _validate_slot(v):
    if v is not None and v not in TIME_SLOTS:
        raise ValueError(f"Time slot must be one of {', '.join(TIME_SLOTS)}")
    return v


class BookingCreate(BaseModel):
    """Schema for a public booking request; any client-side price is ignored"""

    customerName: str = Field(..., min_length=1, max_length=255)
    phone: str
    email: Optional[str] = None
    location: str = Field(..., min_length=1)
    vehicleClass: VehicleClass
    serviceType: ServiceType
    scheduledDate: date
    scheduledTime: str
    specialInstructions: Optional[str] = None
    carDetails: Optional[dict] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)

    @field_validator("scheduledTime")
    @classmethod
    def validate_time_slot(cls, v):
        return _validate_slot(v)


class StatusUpdate(BaseModel):
    status: str
    reason: Optional[str] = None


class AssignRequest(BaseModel):
    workerId: str = Field(..., min_length=1)


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class BookingModify(BaseModel):
    modificationType: Literal["reschedule", "location_change", "cancel"]
    newDate: Optional[date] = None
    newTime: Optional[str] = None
    newLocation: Optional[str] = None
    reason: Optional[str] = None

    @field_validator("newTime")
    @classmethod
    def validate_time_slot(cls, v):
        return _validate_slot(v)


class FeedbackCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)
    workerId: Optional[str] = None


class ModificationResponse(BaseModel):
    type: str
    oldValue: Optional[str] = None
    newValue: Optional[str] = None
    reason: Optional[str] = None
    actor: str
    timestamp: datetime


class FeedbackInfo(BaseModel):
    rating: int
    comment: Optional[str] = None
    submittedAt: Optional[datetime] = None
    workerId: Optional[str] = None


class BookingResponse(BaseModel):
    """Schema for booking response"""

    id: str
    customerName: str
    phone: str
    location: str
    vehicleClass: str
    serviceType: str
    scheduledDate: date
    scheduledTime: str
    status: str
    price: int
    estimatedDuration: int
    assignedWorker: Optional[str] = None
    specialInstructions: Optional[str] = None
    carDetails: Optional[dict] = None
    loyaltyPointsEarned: int = 0
    createdAt: Optional[datetime] = None
    completedAt: Optional[datetime] = None
    deliveredAt: Optional[datetime] = None
    rejectionReason: Optional[str] = None
    rejectedBy: Optional[str] = None
    rejectedAt: Optional[datetime] = None
    cancellationReason: Optional[str] = None
    cancelledBy: Optional[str] = None
    cancelledAt: Optional[datetime] = None
    feedback: Optional[FeedbackInfo] = None
    modifications: list[ModificationResponse] = []

    @classmethod
    def from_booking(cls, b) -> "BookingResponse":
        feedback = None
        if b.feedback_rating is not None:
            feedback = FeedbackInfo(
                rating=b.feedback_rating,
                comment=b.feedback_comment,
                submittedAt=b.feedback_submitted_at,
                workerId=b.feedback_worker_id,
            )
        return cls(
            id=b.id,
            customerName=b.customer_name,
            phone=b.phone,
            location=b.location,
            vehicleClass=b.vehicle_class,
            serviceType=b.service_type,
            scheduledDate=b.scheduled_date,
            scheduledTime=b.scheduled_time,
            status=b.status,
            price=b.price,
            estimatedDuration=estimated_duration(b.service_type),
            assignedWorker=b.assigned_worker_id,
            specialInstructions=b.special_instructions,
            carDetails=b.car_details,
            loyaltyPointsEarned=b.loyalty_points_earned or 0,
            createdAt=b.created_at,
            completedAt=b.completed_at,
            deliveredAt=b.delivered_at,
            rejectionReason=b.rejection_reason,
            rejectedBy=b.rejected_by,
            rejectedAt=b.rejected_at,
            cancellationReason=b.cancellation_reason,
            cancelledBy=b.cancelled_by,
            cancelledAt=b.cancelled_at,
            feedback=feedback,
            modifications=[
                ModificationResponse(
                    type=m.type,
                    oldValue=m.old_value,
                    newValue=m.new_value,
                    reason=m.reason,
                    actor=m.actor,
                    timestamp=m.created_at,
                )
                for m in b.modifications
            ],
        )


class StatusUpdateResponse(BaseModel):
    booking: BookingResponse
    changed: bool
    previousStatus: str
    earningsCredited: int = 0


class AssignResponse(BaseModel):
    message: str
    booking: BookingResponse
    previousWorker: Optional[str] = None


class FeedbackResponse(BaseModel):
    id: str
    bookingId: str
    customerId: Optional[str] = None
    workerId: Optional[str] = None
    rating: int
    comment: Optional[str] = None
    serviceType: Optional[str] = None
    adminAlerted: bool
    createdAt: datetime

    @classmethod
    def from_feedback(cls, f) -> "FeedbackResponse":
        return cls(
            id=f.id,
            bookingId=f.booking_id,
            customerId=f.customer_id,
            workerId=f.worker_id,
            rating=f.rating,
            comment=f.comment,
            serviceType=f.service_type,
            adminAlerted=f.admin_alerted,
            createdAt=f.created_at,
        )
