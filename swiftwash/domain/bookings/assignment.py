"""Binding workers to bookings, and the guard on deleting workers"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Booking, Worker
from ...services.notification_service import assignment_message
from ..enums import ACTIVE_WORK_STATUSES
from ..errors import InactiveWorker, NotFound, WorkerHasActiveBookings
from ..workers.repository import WorkerRepository
from .repository import BookingRepository

logger = logging.getLogger(__name__)


@dataclass
class AssignmentResult:
    booking: Booking
    worker: Worker
    previous_worker_id: Optional[str]
    notification: Optional[tuple[str, str]] = None


class AssignmentCoordinator:
    def __init__(self, db: Session):
        self.db = db
        self.bookings = BookingRepository()
        self.workers = WorkerRepository()

    def assign(self, booking_id: str, worker_id: str) -> AssignmentResult:
        """
        Assign a worker to a booking, replacing any earlier assignment.

        The booking's status is neither checked nor changed.
        """
        booking = self.bookings.get_booking(self.db, booking_id)
        if not booking:
            raise NotFound("Booking not found", bookingId=booking_id)

        worker = self.workers.get_worker(self.db, worker_id)
        if not worker:
            raise NotFound("Worker not found", workerId=worker_id)
        if not worker.is_active:
            raise InactiveWorker("Worker is inactive and cannot be assigned", workerId=worker_id)

        previous_worker_id = booking.assigned_worker_id
        try:
            if previous_worker_id and previous_worker_id != worker.id:
                self.workers.clear_current_booking(self.db, booking.id)
            booking.assigned_worker_id = worker.id
            worker.current_booking_id = booking.id
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        self.db.refresh(worker)

        if previous_worker_id and previous_worker_id != worker.id:
            logger.info(f"🔄 Booking {booking.id} reassigned from {previous_worker_id} to {worker.id}")
        else:
            logger.info(f"✅ Booking {booking.id} assigned to worker {worker.id}")

        message = assignment_message(
            worker.name,
            booking.service_type.replace("_", " "),
            booking.scheduled_date.isoformat(),
            booking.scheduled_time,
            booking.location,
        )
        return AssignmentResult(
            booking=booking,
            worker=worker,
            previous_worker_id=previous_worker_id,
            notification=(worker.phone, message),
        )

    def delete_worker(self, worker_id: str) -> None:
        """
        Remove a worker unless they hold confirmed or in-progress bookings.

        Their finished bookings keep their history with the worker reference
        cleared by the foreign key.
        """
        worker = self.workers.get_worker(self.db, worker_id)
        if not worker:
            raise NotFound("Worker not found", workerId=worker_id)

        active = self.bookings.count_for_worker(
            self.db, worker_id, [status.value for status in ACTIVE_WORK_STATUSES]
        )
        if active:
            raise WorkerHasActiveBookings(
                "Cannot delete worker with active bookings. Reassign or complete their bookings first.",
                workerId=worker_id,
                activeBookings=active,
            )

        # Not every backend enforces ON DELETE SET NULL (SQLite without foreign_keys pragma)
        self.db.query(Booking).filter(Booking.assigned_worker_id == worker_id).update(
            {Booking.assigned_worker_id: None}, synchronize_session=False
        )
        self.workers.delete_worker(self.db, worker)
        logger.info(f"🗑️ Worker {worker_id} deleted")
