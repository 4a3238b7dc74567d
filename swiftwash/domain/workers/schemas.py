"""Worker domain schemas - Pydantic models for validation"""

import datetime as dt
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_phone
from ..enums import WorkerRole, WorkerStatus


class WorkerLogin(BaseModel):
    email: str
    password: str = Field(..., min_length=6)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)


class WorkerCreate(BaseModel):
    """Schema for an admin creating a worker account"""

    name: str = Field(..., min_length=1)
    email: str
    password: str = Field(..., min_length=6)
    phone: str
    role: WorkerRole = WorkerRole.WORKER

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone(v)


class WorkerActiveUpdate(BaseModel):
    isActive: bool


class WorkerDetailsUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[WorkerRole] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone(v)


class PasswordChange(BaseModel):
    currentPassword: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=6)


class WorkerStatusUpdate(BaseModel):
    status: WorkerStatus
    bookingId: Optional[str] = None


class SettingsUpdate(BaseModel):
    """Partial settings; each section is merged into the stored one"""

    notifications: Optional[dict[str, bool]] = None
    availability: Optional[dict[str, bool]] = None
    workingHours: Optional[dict[str, str]] = None


class JobRequestCreate(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)
    date: Optional[dt.date] = None


class JobRequestResponseUpdate(BaseModel):
    status: Literal["approved", "rejected"]
    adminResponse: str = Field(..., min_length=1)


class WorkerResponse(BaseModel):
    """Worker profile; never includes the password hash"""

    id: str
    name: str
    email: str
    phone: str
    role: str
    isActive: bool
    status: str
    totalEarnings: float
    currentBooking: Optional[str] = None
    createdAt: Optional[datetime] = None

    @classmethod
    def from_worker(cls, w) -> "WorkerResponse":
        return cls(
            id=w.id,
            name=w.name,
            email=w.email,
            phone=w.phone,
            role=w.role,
            isActive=w.is_active,
            status=w.status,
            totalEarnings=w.total_earnings or 0,
            currentBooking=w.current_booking_id,
            createdAt=w.created_at,
        )


class DailyEarningResponse(BaseModel):
    date: dt.date
    amount: float
    tasksCompleted: int


class EarningsResponse(BaseModel):
    period: str
    earnings: list[DailyEarningResponse]
    totalAmount: float
    totalTasks: int
    totalEarnings: float
    worker: Optional[WorkerResponse] = None


class JobRequestResponse(BaseModel):
    id: str
    workerId: str
    workerName: Optional[str] = None
    workerEmail: Optional[str] = None
    message: str
    date: Optional[dt.date] = None
    status: str
    adminResponse: Optional[str] = None
    createdAt: datetime

    @classmethod
    def from_job_request(cls, r) -> "JobRequestResponse":
        return cls(
            id=r.id,
            workerId=r.worker_id,
            workerName=r.worker.name if r.worker else None,
            workerEmail=r.worker.email if r.worker else None,
            message=r.message,
            date=r.date,
            status=r.status,
            adminResponse=r.admin_response,
            createdAt=r.created_at,
        )
