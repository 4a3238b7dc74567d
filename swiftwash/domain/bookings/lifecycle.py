"""
Booking lifecycle engine.

Legal status changes are kept as data in ``BOOKING_TRANSITIONS``. A transition
is applied with a compare-and-swap on the current status, so of two
concurrent requests for the same change exactly one writes the status, the
audit entry and the earnings credit; the other observes the new status and
returns as a no-op.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...config import WORKER_EARNINGS_RATE
from ...models import Booking
from ...services.notification_service import status_message
from ..enums import BookingStatus, ModificationType, TERMINAL_STATUSES
from ..errors import InvalidTransition, NotFound, StaleState, ValidationError
from ..workers.repository import WorkerRepository
from .repository import BookingRepository

logger = logging.getLogger(__name__)

BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.REJECTED, BookingStatus.CANCELLED}
    ),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.STARTED_CLEANING, BookingStatus.REJECTED, BookingStatus.CANCELLED}
    ),
    BookingStatus.STARTED_CLEANING: frozenset({BookingStatus.DONE}),
    BookingStatus.DONE: frozenset({BookingStatus.DELIVERED}),
    BookingStatus.DELIVERED: frozenset(),
    BookingStatus.REJECTED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

REASON_REQUIRED = frozenset({BookingStatus.REJECTED, BookingStatus.CANCELLED})


def parse_status(value) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError as e:
        raise ValidationError(f"Unknown booking status: {value!r}", status=str(value)) from e


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in BOOKING_TRANSITIONS[current]


def assert_transition(current: BookingStatus, target: BookingStatus) -> None:
    if not can_transition(current, target):
        allowed = sorted(s.value for s in BOOKING_TRANSITIONS[current])
        if current in TERMINAL_STATUSES:
            message = f"Booking is already {current.value} and cannot change"
        else:
            message = f"Cannot move booking from {current.value} to {target.value}"
        raise InvalidTransition(message, currentStatus=current.value, requestedStatus=target.value, allowed=allowed)


def compute_worker_earnings(price) -> int:
    """Worker share of a booking price, rounded half up"""
    return int(math.floor(float(price) * WORKER_EARNINGS_RATE + 0.5))


@dataclass
class TransitionResult:
    booking: Booking
    changed: bool
    previous_status: str
    earnings_credited: int = 0
    notification: Optional[tuple[str, str]] = None  # (phone, message) to send after commit


class LifecycleEngine:
    """Applies status transitions to bookings"""

    def __init__(self, db: Session):
        self.db = db
        self.bookings = BookingRepository()
        self.workers = WorkerRepository()

    def transition(
        self, booking_id: str, target, actor: str, reason: Optional[str] = None
    ) -> TransitionResult:
        """
        Move a booking to ``target``.

        Re-requesting the status the booking already holds succeeds without
        side effects.

        Raises:
            NotFound: unknown booking
            ValidationError: unknown status, or missing reason for rejected/cancelled
            InvalidTransition: target not reachable from the current status
            StaleState: the booking changed to some other status concurrently
        """
        target = parse_status(target)
        booking = self.bookings.get_booking(self.db, booking_id)
        if not booking:
            raise NotFound("Booking not found", bookingId=booking_id)

        current = parse_status(booking.status)
        if current == target:
            logger.info(f"Booking {booking_id} already {target.value}, nothing to do")
            return TransitionResult(booking=booking, changed=False, previous_status=current.value)

        assert_transition(current, target)

        reason = (reason or "").strip() or None
        if target in REASON_REQUIRED and not reason:
            raise ValidationError(f"A reason is required to set a booking {target.value}")

        now = datetime.utcnow()
        fields = self._status_fields(target, actor, reason, now)

        try:
            applied = self.bookings.compare_and_set_status(
                self.db, booking.id, current.value, target.value, **fields
            )
            if not applied:
                self.db.rollback()
                return self._resolve_lost_race(booking_id, current, target)

            self.bookings.add_modification(
                self.db,
                booking.id,
                self._modification_type(target),
                actor,
                old_value=current.value,
                new_value=target.value,
                reason=reason,
            )

            credited = 0
            if target == BookingStatus.DONE:
                credited = self._credit_worker(booking, now)

            if target in TERMINAL_STATUSES:
                self.workers.clear_current_booking(self.db, booking.id)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"✅ Booking {booking.id}: {current.value} -> {target.value} by {actor}")

        refreshed = self.bookings.get_booking(self.db, booking.id) or booking

        message = status_message(target.value, reason)
        notification = (booking.phone, message) if message else None
        return TransitionResult(
            booking=refreshed,
            changed=True,
            previous_status=current.value,
            earnings_credited=credited,
            notification=notification,
        )

    def _status_fields(self, target: BookingStatus, actor: str, reason: Optional[str], now: datetime) -> dict:
        if target == BookingStatus.DONE:
            return {"completed_at": now}
        if target == BookingStatus.DELIVERED:
            return {"delivered_at": now}
        if target == BookingStatus.REJECTED:
            return {"rejection_reason": reason, "rejected_by": actor, "rejected_at": now}
        if target == BookingStatus.CANCELLED:
            return {"cancellation_reason": reason, "cancelled_by": actor, "cancelled_at": now}
        return {}

    @staticmethod
    def _modification_type(target: BookingStatus) -> str:
        if target == BookingStatus.REJECTED:
            return ModificationType.REJECT.value
        if target == BookingStatus.CANCELLED:
            return ModificationType.CANCEL.value
        return ModificationType.STATUS_CHANGE.value

    def _credit_worker(self, booking: Booking, now: datetime) -> int:
        if not booking.assigned_worker_id:
            logger.info(f"Booking {booking.id} finished without an assigned worker, no earnings credited")
            return 0

        amount = compute_worker_earnings(booking.price)
        self.workers.credit_earnings(self.db, booking.assigned_worker_id, amount, now.date())
        logger.info(f"💰 Credited {amount} to worker {booking.assigned_worker_id} for booking {booking.id}")
        return amount

    def _resolve_lost_race(self, booking_id: str, expected: BookingStatus, target: BookingStatus) -> TransitionResult:
        latest = self.bookings.get_status(self.db, booking_id)
        if latest == target.value:
            logger.info(f"Booking {booking_id} reached {target.value} concurrently, treating as no-op")
            booking = self.bookings.get_booking(self.db, booking_id)
            return TransitionResult(booking=booking, changed=False, previous_status=latest)

        logger.warning(
            f"⚠️ Stale status for booking {booking_id}: expected {expected.value}, found {latest}"
        )
        raise StaleState(
            "Booking was changed by someone else, reload and try again",
            expectedStatus=expected.value,
            actualStatus=latest,
        )
