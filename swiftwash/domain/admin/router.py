"""Admin router - dashboard endpoints for bookings, workers, job requests and feedback"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...auth import Actor, create_admin_token, require_admin
from ...config import ADMIN_PASSWORD, ADMIN_USERNAME
from ...database import get_db
from ...security_utils import constant_time_compare
from ..bookings.repository import BookingRepository
from ..bookings.router import get_booking_service
from ..bookings.schemas import BookingResponse, FeedbackResponse
from ..bookings.service import BookingService
from ..enums import BookingStatus
from ..errors import NotAuthenticated
from ..workers.router import get_worker_service
from ..workers.schemas import (
    EarningsResponse,
    JobRequestResponse,
    JobRequestResponseUpdate,
    WorkerActiveUpdate,
    WorkerCreate,
    WorkerDetailsUpdate,
    WorkerResponse,
)
from ..workers.service import WorkerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


class AdminLogin(BaseModel):
    username: str
    password: str


# ============================================================================
# AUTHENTICATION
# ============================================================================


@router.post("/login")
async def login(data: AdminLogin):
    valid = constant_time_compare(data.username, ADMIN_USERNAME) and constant_time_compare(
        data.password, ADMIN_PASSWORD
    )
    if not valid:
        logger.warning(f"⚠️ Failed admin login for {data.username!r}")
        raise NotAuthenticated("Invalid credentials")

    logger.info("✅ Admin logged in")
    return {"token": create_admin_token(ADMIN_USERNAME), "admin": {"id": "admin", "username": ADMIN_USERNAME}}


@router.get("/verify")
async def verify(actor: Actor = Depends(require_admin)):
    return {"admin": {"id": actor.id, "kind": actor.kind.value}}


# ============================================================================
# BOOKINGS AND STATS
# ============================================================================


@router.get("/bookings", response_model=list[BookingResponse])
async def list_bookings(
    status: Optional[str] = Query(None),
    workerId: Optional[str] = Query(None),
    month: Optional[str] = Query(None, description="YYYY-MM"),
    _: Actor = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    return [BookingResponse.from_booking(b) for b in service.list_bookings(status, workerId, month)]


@router.get("/stats")
async def get_stats(_: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    """Counts per status, revenue and average rating"""
    repo = BookingRepository()
    counts = repo.count_by_status(db)
    today = datetime.utcnow().date()

    stats = {
        "totalBookings": sum(counts.values()),
        "pendingBookings": counts.get(BookingStatus.PENDING.value, 0),
        "confirmedBookings": counts.get(BookingStatus.CONFIRMED.value, 0),
        "inProgressBookings": counts.get(BookingStatus.STARTED_CLEANING.value, 0),
        "completedBookings": counts.get(BookingStatus.DONE.value, 0),
        "deliveredBookings": counts.get(BookingStatus.DELIVERED.value, 0),
        "rejectedBookings": counts.get(BookingStatus.REJECTED.value, 0),
        "cancelledBookings": counts.get(BookingStatus.CANCELLED.value, 0),
        "totalRevenue": repo.revenue(db),
        "monthlyRevenue": repo.revenue(db, since=today.replace(day=1)),
        "todayBookings": repo.count_scheduled_on(db, today),
        "averageRating": repo.average_rating(db),
    }
    return {"stats": stats}


@router.get("/feedback", response_model=list[FeedbackResponse])
async def list_feedback(
    lowRatingsOnly: bool = Query(False),
    _: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return [FeedbackResponse.from_feedback(f) for f in BookingRepository.list_feedback(db, lowRatingsOnly)]


# ============================================================================
# WORKERS
# ============================================================================


@router.get("/workers", response_model=list[WorkerResponse])
async def list_workers(
    _: Actor = Depends(require_admin),
    service: WorkerService = Depends(get_worker_service),
):
    return [WorkerResponse.from_worker(w) for w in service.list_workers()]


@router.post("/workers", response_model=WorkerResponse, status_code=201)
async def create_worker(
    data: WorkerCreate,
    _: Actor = Depends(require_admin),
    service: WorkerService = Depends(get_worker_service),
):
    return WorkerResponse.from_worker(service.create_worker(data))


@router.get("/workers/status")
async def workers_status(
    _: Actor = Depends(require_admin),
    service: WorkerService = Depends(get_worker_service),
):
    """Active workers with their current booking and whether they are on shift"""
    return {"workers": service.workers_status()}


@router.put("/workers/{worker_id}", response_model=WorkerResponse)
async def set_worker_active(
    worker_id: str,
    data: WorkerActiveUpdate,
    _: Actor = Depends(require_admin),
    service: WorkerService = Depends(get_worker_service),
):
    """Activate or deactivate a worker"""
    return WorkerResponse.from_worker(service.set_active(worker_id, data.isActive))


@router.put("/workers/{worker_id}/details", response_model=WorkerResponse)
async def update_worker_details(
    worker_id: str,
    data: WorkerDetailsUpdate,
    _: Actor = Depends(require_admin),
    service: WorkerService = Depends(get_worker_service),
):
    return WorkerResponse.from_worker(service.update_details(worker_id, data))


@router.delete("/workers/{worker_id}")
async def delete_worker(
    worker_id: str,
    _: Actor = Depends(require_admin),
    service: WorkerService = Depends(get_worker_service),
):
    """Delete a worker; refused while they hold confirmed or in-progress bookings"""
    service.delete_worker(worker_id)
    return {"message": "Worker deleted successfully", "workerId": worker_id}


@router.get("/workers/{worker_id}/earnings", response_model=EarningsResponse)
async def worker_earnings(
    worker_id: str,
    period: str = Query("all", description="today, week, month or all"),
    _: Actor = Depends(require_admin),
    service: WorkerService = Depends(get_worker_service),
):
    worker = service.get_worker(worker_id)
    earnings = service.get_earnings(worker, period)
    earnings["worker"] = WorkerResponse.from_worker(worker)
    return earnings


# ============================================================================
# JOB REQUESTS
# ============================================================================


@router.get("/job-requests", response_model=list[JobRequestResponse])
async def list_job_requests(
    status: Optional[str] = Query(None),
    _: Actor = Depends(require_admin),
    service: WorkerService = Depends(get_worker_service),
):
    return [JobRequestResponse.from_job_request(r) for r in service.list_job_requests(status=status)]


@router.put("/job-requests/{request_id}", response_model=JobRequestResponse)
async def respond_to_job_request(
    request_id: str,
    data: JobRequestResponseUpdate,
    _: Actor = Depends(require_admin),
    service: WorkerService = Depends(get_worker_service),
):
    job_request = service.respond_to_job_request(request_id, data.status, data.adminResponse)
    return JobRequestResponse.from_job_request(job_request)
