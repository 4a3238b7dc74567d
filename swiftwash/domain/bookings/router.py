"""Booking router - FastAPI endpoints for booking operations"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import Actor, require_admin, require_customer_or_admin, require_staff
from ...database import get_db
from ...services.notification_service import (
    NotificationDispatcher,
    get_dispatcher,
    schedule_notification,
)
from .schemas import (
    AssignRequest,
    AssignResponse,
    BookingCreate,
    BookingModify,
    BookingResponse,
    FeedbackCreate,
    FeedbackResponse,
    RejectRequest,
    StatusUpdate,
    StatusUpdateResponse,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def _status_response(result) -> StatusUpdateResponse:
    return StatusUpdateResponse(
        booking=BookingResponse.from_booking(result.booking),
        changed=result.changed,
        previousStatus=result.previous_status,
        earningsCredited=result.earnings_credited,
    )


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================


@router.get("/pricing")
async def get_pricing(service: BookingService = Depends(get_booking_service)):
    """Price list per vehicle class and service type"""
    return {"pricing": service.get_pricing()}


@router.get("", response_model=list[BookingResponse])
async def find_bookings(
    phone: str = Query(..., min_length=1, description="Customer phone in any common format"),
    status: Optional[str] = Query(None),
    month: Optional[str] = Query(None, description="YYYY-MM"),
    serviceType: Optional[str] = Query(None),
    service: BookingService = Depends(get_booking_service),
):
    """Bookings for a phone number, newest scheduled date first"""
    bookings = service.find_by_phone(phone, status=status, month=month, service_type=serviceType)
    return [BookingResponse.from_booking(b) for b in bookings]


@router.get("/track/{phone}", response_model=list[BookingResponse])
async def track_bookings(phone: str, service: BookingService = Depends(get_booking_service)):
    """Last ten bookings for a phone number"""
    return [BookingResponse.from_booking(b) for b in service.track(phone)]


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreate,
    background_tasks: BackgroundTasks,
    service: BookingService = Depends(get_booking_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Create a booking; the price always comes from the price list"""
    booking, notification = service.create_booking(data)
    schedule_notification(background_tasks, dispatcher, notification)
    return BookingResponse.from_booking(booking)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(booking_id: str, service: BookingService = Depends(get_booking_service)):
    return BookingResponse.from_booking(service.get_booking(booking_id))


@router.post("/{booking_id}/feedback", response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    booking_id: str,
    data: FeedbackCreate,
    service: BookingService = Depends(get_booking_service),
):
    """Rate a completed booking (once)"""
    return FeedbackResponse.from_feedback(service.submit_feedback(booking_id, data))


# ============================================================================
# LIFECYCLE
# ============================================================================


@router.patch("/{booking_id}/status", response_model=StatusUpdateResponse)
async def update_booking_status(
    booking_id: str,
    data: StatusUpdate,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_staff),
    service: BookingService = Depends(get_booking_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Move a booking along its lifecycle; repeating the current status is a no-op"""
    result = service.update_status(booking_id, data.status, actor, data.reason)
    schedule_notification(background_tasks, dispatcher, result.notification)
    return _status_response(result)


@router.post("/{booking_id}/reject", response_model=StatusUpdateResponse)
async def reject_booking(
    booking_id: str,
    data: RejectRequest,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = service.reject(booking_id, data.reason, actor)
    schedule_notification(background_tasks, dispatcher, result.notification)
    return _status_response(result)


@router.put("/{booking_id}/assign", response_model=AssignResponse)
async def assign_booking(
    booking_id: str,
    data: AssignRequest,
    background_tasks: BackgroundTasks,
    _: Actor = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Assign (or reassign) a worker; the booking status is left as is"""
    result = service.assign(booking_id, data.workerId)
    schedule_notification(background_tasks, dispatcher, result.notification)
    return AssignResponse(
        message="Booking assigned to worker successfully",
        booking=BookingResponse.from_booking(result.booking),
        previousWorker=result.previous_worker_id,
    )


@router.patch("/{booking_id}/modify", response_model=BookingResponse)
async def modify_booking(
    booking_id: str,
    data: BookingModify,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_customer_or_admin),
    service: BookingService = Depends(get_booking_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Reschedule, change location or cancel a pending or confirmed booking"""
    booking, notification = service.modify(booking_id, data, actor)
    schedule_notification(background_tasks, dispatcher, notification)
    return BookingResponse.from_booking(booking)
