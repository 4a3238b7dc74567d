"""Worker router - endpoints used by the workers app"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Actor, create_worker_token, require_worker
from ...database import get_db
from ...services.notification_service import (
    NotificationDispatcher,
    get_dispatcher,
    schedule_notification,
)
from ..bookings.router import _status_response, get_booking_service
from ..bookings.schemas import BookingResponse, StatusUpdate, StatusUpdateResponse
from ..bookings.service import BookingService
from .schemas import (
    EarningsResponse,
    JobRequestCreate,
    JobRequestResponse,
    PasswordChange,
    SettingsUpdate,
    WorkerLogin,
    WorkerResponse,
    WorkerStatusUpdate,
)
from .service import WorkerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workers", tags=["Workers"])


def get_worker_service(db: Session = Depends(get_db)) -> WorkerService:
    """Dependency injection for WorkerService"""
    return WorkerService(db)


@router.post("/login")
async def login(data: WorkerLogin, service: WorkerService = Depends(get_worker_service)):
    worker = service.authenticate(data.email, data.password)
    return {"token": create_worker_token(worker), "worker": WorkerResponse.from_worker(worker)}


@router.get("/profile", response_model=WorkerResponse)
async def get_profile(actor: Actor = Depends(require_worker)):
    return WorkerResponse.from_worker(actor.worker)


@router.put("/change-password")
async def change_password(
    data: PasswordChange,
    actor: Actor = Depends(require_worker),
    service: WorkerService = Depends(get_worker_service),
):
    service.change_password(actor.worker, data.currentPassword, data.newPassword)
    return {"message": "Password changed successfully"}


# ============================================================================
# TASKS
# ============================================================================


@router.get("/tasks", response_model=list[BookingResponse])
async def get_tasks(
    actor: Actor = Depends(require_worker),
    service: WorkerService = Depends(get_worker_service),
):
    """Confirmed, in-progress and finished bookings assigned to the caller"""
    return [BookingResponse.from_booking(b) for b in service.get_tasks(actor.worker)]


@router.put("/tasks/{booking_id}/status", response_model=StatusUpdateResponse)
async def update_task_status(
    booking_id: str,
    data: StatusUpdate,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_worker),
    bookings: BookingService = Depends(get_booking_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Start, finish or deliver one of the caller's bookings"""
    result = bookings.update_status(booking_id, data.status, actor, data.reason)
    schedule_notification(background_tasks, dispatcher, result.notification)
    return _status_response(result)


# ============================================================================
# EARNINGS
# ============================================================================


@router.get("/earnings", response_model=EarningsResponse)
async def get_earnings(
    period: str = Query("all", description="today, week, month or all"),
    actor: Actor = Depends(require_worker),
    service: WorkerService = Depends(get_worker_service),
):
    return service.get_earnings(actor.worker, period)


# ============================================================================
# JOB REQUESTS
# ============================================================================


@router.post("/job-requests", response_model=JobRequestResponse, status_code=201)
async def submit_job_request(
    data: JobRequestCreate,
    actor: Actor = Depends(require_worker),
    service: WorkerService = Depends(get_worker_service),
):
    return JobRequestResponse.from_job_request(service.submit_job_request(actor.worker, data))


@router.get("/job-requests", response_model=list[JobRequestResponse])
async def get_job_requests(
    actor: Actor = Depends(require_worker),
    service: WorkerService = Depends(get_worker_service),
):
    return [JobRequestResponse.from_job_request(r) for r in service.list_job_requests(worker_id=actor.id)]


# ============================================================================
# SETTINGS AND STATUS
# ============================================================================


@router.get("/settings")
async def get_settings(
    actor: Actor = Depends(require_worker),
    service: WorkerService = Depends(get_worker_service),
):
    return {"settings": service.get_settings(actor.worker)}


@router.put("/settings")
async def update_settings(
    data: SettingsUpdate,
    actor: Actor = Depends(require_worker),
    service: WorkerService = Depends(get_worker_service),
):
    settings = service.update_settings(actor.worker, data)
    return {"message": "Settings updated successfully", "settings": settings}


@router.put("/status", response_model=WorkerResponse)
async def update_status(
    data: WorkerStatusUpdate,
    actor: Actor = Depends(require_worker),
    service: WorkerService = Depends(get_worker_service),
):
    """Self-reported availability; independent of booking state"""
    return WorkerResponse.from_worker(service.update_status(actor.worker, data.status.value, data.bookingId))
