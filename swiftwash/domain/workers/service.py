"""Worker service - Business logic for worker accounts, earnings and job requests"""

import copy
import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Booking, Worker, default_worker_settings
from ...security_utils import hash_password_bcrypt, verify_password_bcrypt
from ..bookings.assignment import AssignmentCoordinator
from ..bookings.repository import BookingRepository
from ..enums import WORKER_TASK_STATUSES, JobRequestStatus
from ..errors import Duplicate, Forbidden, NotAuthenticated, NotFound, ValidationError
from .repository import WorkerRepository
from .schemas import JobRequestCreate, SettingsUpdate, WorkerCreate, WorkerDetailsUpdate

logger = logging.getLogger(__name__)

EARNINGS_PERIODS = ("today", "week", "month", "all")
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def period_start(period: str, today: Optional[date] = None) -> Optional[date]:
    """First ledger date included in an earnings period; None means everything"""
    today = today or datetime.utcnow().date()
    if period == "today":
        return today
    if period == "week":
        return today - timedelta(days=7)
    if period == "month":
        return today - timedelta(days=30)
    if period == "all":
        return None
    raise ValidationError(f"period must be one of {', '.join(EARNINGS_PERIODS)}", period=period)


def schedule_for(worker: Worker, now: datetime) -> dict:
    """Whether a worker is on shift right now, from their availability settings"""
    settings = worker.settings or default_worker_settings()
    weekday = WEEKDAYS[now.weekday()]
    hours = settings.get("workingHours") or {}
    start_time = hours.get("start", "08:00")
    end_time = hours.get("end", "17:00")
    current_time = now.strftime("%H:%M")

    is_available_today = bool((settings.get("availability") or {}).get(weekday, False))
    is_within_hours = start_time <= current_time <= end_time
    return {
        "isAvailableToday": is_available_today,
        "startTime": start_time,
        "endTime": end_time,
        "isWithinWorkingHours": is_within_hours,
        "isWorking": is_available_today and is_within_hours,
    }


class WorkerService:
    """Service layer for worker business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = WorkerRepository()
        self.bookings = BookingRepository()

    def get_worker(self, worker_id: str) -> Worker:
        worker = self.repo.get_worker(self.db, worker_id)
        if not worker:
            raise NotFound("Worker not found", workerId=worker_id)
        return worker

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def authenticate(self, email: str, password: str) -> Worker:
        worker = self.repo.get_worker_by_email(self.db, email)
        if not worker or not verify_password_bcrypt(password, worker.password_hash):
            logger.warning(f"⚠️ Failed worker login for {email}")
            raise NotAuthenticated("Invalid credentials")
        if not worker.is_active:
            logger.warning(f"⚠️ Deactivated worker {worker.id} tried to log in")
            raise NotAuthenticated("Account is deactivated")
        logger.info(f"✅ Worker {worker.id} logged in")
        return worker

    def change_password(self, worker: Worker, current_password: str, new_password: str) -> None:
        if not verify_password_bcrypt(current_password, worker.password_hash):
            raise ValidationError("Current password is incorrect")
        self.repo.update_worker(self.db, worker, password_hash=hash_password_bcrypt(new_password))
        logger.info(f"🔑 Worker {worker.id} changed password")

    # ------------------------------------------------------------------
    # Admin management
    # ------------------------------------------------------------------

    def list_workers(self) -> list[Worker]:
        return self.repo.list_workers(self.db)

    def create_worker(self, data: WorkerCreate) -> Worker:
        if self.repo.get_worker_by_email(self.db, data.email):
            raise Duplicate("Worker with this email already exists", email=data.email)

        worker = self.repo.create_worker(
            self.db,
            name=data.name.strip(),
            email=data.email,
            phone=data.phone,
            role=data.role.value,
            password_hash=hash_password_bcrypt(data.password),
            settings=default_worker_settings(),
        )
        logger.info(f"🆕 Worker {worker.id} created ({worker.role})")
        return worker

    def set_active(self, worker_id: str, is_active: bool) -> Worker:
        worker = self.get_worker(worker_id)
        worker.is_active = is_active
        self.db.commit()
        self.db.refresh(worker)
        logger.info(f"Worker {worker.id} {'activated' if is_active else 'deactivated'}")
        return worker

    def update_details(self, worker_id: str, data: WorkerDetailsUpdate) -> Worker:
        worker = self.get_worker(worker_id)

        if data.email and data.email != worker.email:
            existing = self.repo.get_worker_by_email(self.db, data.email)
            if existing and existing.id != worker.id:
                raise Duplicate("Worker with this email already exists", email=data.email)

        return self.repo.update_worker(
            self.db,
            worker,
            name=data.name.strip() if data.name else None,
            email=data.email,
            phone=data.phone,
            role=data.role.value if data.role else None,
        )

    def delete_worker(self, worker_id: str) -> None:
        AssignmentCoordinator(self.db).delete_worker(worker_id)

    def workers_status(self, now: Optional[datetime] = None) -> list[dict]:
        """Active workers with their current booking and today's shift"""
        now = now or datetime.now()
        result = []
        for worker in self.repo.list_workers(self.db, active_only=True):
            current = None
            if worker.current_booking_id:
                booking = self.bookings.get_booking(self.db, worker.current_booking_id)
                if booking:
                    current = {
                        "id": booking.id,
                        "customerName": booking.customer_name,
                        "vehicleClass": booking.vehicle_class,
                        "serviceType": booking.service_type,
                        "status": booking.status,
                        "scheduledDate": booking.scheduled_date.isoformat(),
                        "scheduledTime": booking.scheduled_time,
                    }
            result.append(
                {
                    "id": worker.id,
                    "name": worker.name,
                    "email": worker.email,
                    "phone": worker.phone,
                    "status": worker.status,
                    "currentBooking": current,
                    "schedule": schedule_for(worker, now),
                }
            )
        return result

    # ------------------------------------------------------------------
    # Worker self-service
    # ------------------------------------------------------------------

    def get_tasks(self, worker: Worker) -> list[Booking]:
        return self.bookings.list_bookings(
            self.db, worker_id=worker.id, statuses=[s.value for s in WORKER_TASK_STATUSES]
        )

    def get_earnings(self, worker: Worker, period: str = "all") -> dict:
        since = period_start(period)
        rows = self.repo.get_daily_earnings(self.db, worker.id, since)
        return {
            "period": period,
            "earnings": [
                {"date": r.date, "amount": r.amount, "tasksCompleted": r.tasks_completed} for r in rows
            ],
            "totalAmount": sum(r.amount for r in rows),
            "totalTasks": sum(r.tasks_completed for r in rows),
            "totalEarnings": worker.total_earnings or 0,
        }

    def get_settings(self, worker: Worker) -> dict:
        return worker.settings or default_worker_settings()

    def update_settings(self, worker: Worker, data: SettingsUpdate) -> dict:
        settings = copy.deepcopy(worker.settings or default_worker_settings())

        if data.availability:
            unknown = set(data.availability) - set(WEEKDAYS)
            if unknown:
                raise ValidationError(f"Unknown weekday(s): {', '.join(sorted(unknown))}")

        for section, values in (
            ("notifications", data.notifications),
            ("availability", data.availability),
            ("workingHours", data.workingHours),
        ):
            if values:
                settings[section] = {**settings.get(section, {}), **values}

        # Reassign so the JSON column is flagged dirty
        worker.settings = settings
        self.db.commit()
        self.db.refresh(worker)
        return worker.settings

    def update_status(self, worker: Worker, status: str, booking_id: Optional[str]) -> Worker:
        """Self-reported availability; a current booking must be one assigned to this worker"""
        if booking_id:
            booking = self.bookings.get_booking(self.db, booking_id)
            if not booking:
                raise NotFound("Booking not found", bookingId=booking_id)
            if booking.assigned_worker_id != worker.id:
                raise Forbidden("Booking is not assigned to you", bookingId=booking_id)

        worker.status = status
        worker.current_booking_id = booking_id
        self.db.commit()
        self.db.refresh(worker)
        return worker

    # ------------------------------------------------------------------
    # Job requests
    # ------------------------------------------------------------------

    def submit_job_request(self, worker: Worker, data: JobRequestCreate):
        job_request = self.repo.create_job_request(
            self.db, worker.id, data.message.strip(), data.date or datetime.utcnow().date()
        )
        logger.info(f"📨 Job request {job_request.id} from worker {worker.id}")
        return job_request

    def list_job_requests(self, worker_id: Optional[str] = None, status: Optional[str] = None):
        return self.repo.list_job_requests(self.db, worker_id=worker_id, status=status)

    def respond_to_job_request(self, request_id: str, status: str, response: str):
        job_request = self.repo.get_job_request(self.db, request_id)
        if not job_request:
            raise NotFound("Job request not found", requestId=request_id)
        if status not in (JobRequestStatus.APPROVED.value, JobRequestStatus.REJECTED.value):
            raise ValidationError("status must be approved or rejected")
        return self.repo.respond_to_job_request(self.db, job_request, status, response.strip())
