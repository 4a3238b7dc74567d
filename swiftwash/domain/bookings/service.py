"""Booking service - Business logic for booking operations"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import Actor
from ...config import LOYALTY_POINTS_PER_BOOKING
from ...models import Booking, Customer, Feedback
from ...services.notification_service import booking_received_message, modification_message
from ...shared.validators import normalize_phone
from ..enums import (
    MODIFIABLE_STATUSES,
    WORKER_SETTABLE_STATUSES,
    ActorKind,
    BookingStatus,
    ModificationType,
)
from ..errors import (
    FeedbackAlreadySubmitted,
    Forbidden,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from ..pricing import get_price, pricing_table
from .assignment import AssignmentCoordinator, AssignmentResult
from .lifecycle import LifecycleEngine, TransitionResult, parse_status
from .repository import BookingRepository
from .schemas import BookingCreate, BookingModify, FeedbackCreate

logger = logging.getLogger(__name__)

TRACK_LIMIT = 10
FEEDBACK_STATUSES = frozenset({BookingStatus.DONE.value, BookingStatus.DELIVERED.value})
LOW_RATING_THRESHOLD = 3


def month_range(month: str) -> tuple[date, date]:
    """'2025-03' -> (2025-03-01, 2025-04-01)"""
    try:
        start = datetime.strptime(month, "%Y-%m").date()
    except ValueError as e:
        raise ValidationError("month must be formatted YYYY-MM", month=month) from e
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def _phone_variants(phone: str):
    try:
        return normalize_phone(phone)
    except ValueError as e:
        raise ValidationError(str(e), phone=phone) from e


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.engine = LifecycleEngine(db)
        self.coordinator = AssignmentCoordinator(db)

    def get_pricing(self) -> dict:
        return pricing_table()

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise NotFound("Booking not found", bookingId=booking_id)
        return booking

    # ------------------------------------------------------------------
    # Creation and lookup
    # ------------------------------------------------------------------

    def create_booking(self, data: BookingCreate) -> tuple[Booking, tuple[str, str]]:
        """
        Create a pending booking priced from the price list, crediting the
        customer's loyalty points. Returns the booking and the confirmation
        SMS to schedule.
        """
        price = get_price(data.vehicleClass, data.serviceType)
        phone = _phone_variants(data.phone)

        logger.info(f"📥 Creating booking: {data.vehicleClass.value}/{data.serviceType.value} for {phone.canonical}")

        try:
            customer = self._find_or_create_customer(phone, data.customerName, data.email)
            self.repo.add_loyalty_points(self.db, customer.id, LOYALTY_POINTS_PER_BOOKING)
            booking = self.repo.create_booking(
                self.db,
                customer_id=customer.id,
                customer_name=data.customerName.strip(),
                phone=phone.canonical,
                location=data.location.strip(),
                special_instructions=data.specialInstructions,
                car_details=data.carDetails,
                vehicle_class=data.vehicleClass.value,
                service_type=data.serviceType.value,
                scheduled_date=data.scheduledDate,
                scheduled_time=data.scheduledTime,
                status=BookingStatus.PENDING.value,
                price=price,
                loyalty_points_earned=LOYALTY_POINTS_PER_BOOKING,
            )
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"✅ Booking {booking.id} created, price {price}")

        message = booking_received_message(
            booking.customer_name,
            booking.service_type.replace("_", " "),
            booking.scheduled_date.isoformat(),
            booking.scheduled_time,
            booking.id,
        )
        return booking, (booking.phone, message)

    def _find_or_create_customer(self, phone, name: str, email: Optional[str]) -> Customer:
        customer = self.repo.find_customer_by_phone(self.db, phone.variants)
        if customer:
            return customer

        # Flushed, not committed: the insert belongs to the booking's transaction
        customer = Customer(name=name.strip(), phone=phone.canonical, email=email)
        self.db.add(customer)
        try:
            self.db.flush()
        except IntegrityError:
            # Created by a concurrent booking for the same phone; nothing else is pending yet
            self.db.rollback()
            customer = self.repo.find_customer_by_phone(self.db, phone.variants)
            if not customer:
                raise
        else:
            logger.info(f"🆕 Created customer {customer.id} for {phone.canonical}")
        return customer

    def find_by_phone(
        self,
        phone: str,
        status: Optional[str] = None,
        month: Optional[str] = None,
        service_type: Optional[str] = None,
    ) -> list[Booking]:
        variants = _phone_variants(phone).variants
        if status:
            status = parse_status(status).value
        date_from = date_to = None
        if month:
            date_from, date_to = month_range(month)
        return self.repo.find_by_phone(
            self.db,
            variants,
            status=status,
            date_from=date_from,
            date_to=date_to,
            service_type=service_type,
        )

    def track(self, phone: str) -> list[Booking]:
        return self.repo.find_by_phone(self.db, _phone_variants(phone).variants, limit=TRACK_LIMIT)

    def list_bookings(
        self, status: Optional[str] = None, worker_id: Optional[str] = None, month: Optional[str] = None
    ) -> list[Booking]:
        if status:
            status = parse_status(status).value
        date_from = date_to = None
        if month:
            date_from, date_to = month_range(month)
        return self.repo.list_bookings(
            self.db, status=status, worker_id=worker_id, date_from=date_from, date_to=date_to
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def update_status(
        self, booking_id: str, status: str, actor: Actor, reason: Optional[str] = None
    ) -> TransitionResult:
        target = parse_status(status)

        if not actor.is_admin:
            booking = self.get_booking(booking_id)
            if target not in WORKER_SETTABLE_STATUSES:
                raise Forbidden(f"Workers cannot set bookings to {target.value}")
            if booking.assigned_worker_id != actor.id:
                raise Forbidden("Booking is not assigned to you")

        return self.engine.transition(booking_id, target, self._actor_label(actor), reason)

    def reject(self, booking_id: str, reason: str, actor: Actor) -> TransitionResult:
        return self.engine.transition(booking_id, BookingStatus.REJECTED, self._actor_label(actor), reason)

    def assign(self, booking_id: str, worker_id: str) -> AssignmentResult:
        return self.coordinator.assign(booking_id, worker_id)

    def modify(self, booking_id: str, data: BookingModify, actor: Actor):
        """
        Reschedule, relocate or cancel a booking that has not started.

        Returns the updated booking and the SMS to schedule.
        """
        booking = self.get_booking(booking_id)
        self._check_ownership(booking, actor)

        if booking.status not in {s.value for s in MODIFIABLE_STATUSES}:
            raise InvalidTransition(
                f"Booking is {booking.status} and can no longer be modified",
                currentStatus=booking.status,
            )

        if data.modificationType == ModificationType.CANCEL.value:
            result = self.engine.transition(booking_id, BookingStatus.CANCELLED, self._actor_label(actor), data.reason)
            return result.booking, result.notification

        if data.modificationType == ModificationType.RESCHEDULE.value:
            if not data.newDate or not data.newTime:
                raise ValidationError("newDate and newTime are required to reschedule")
            old_value = f"{booking.scheduled_date.isoformat()} at {booking.scheduled_time}"
            new_value = f"{data.newDate.isoformat()} at {data.newTime}"
            updates = {"scheduled_date": data.newDate, "scheduled_time": data.newTime}
        else:
            if not data.newLocation or not data.newLocation.strip():
                raise ValidationError("newLocation is required to change location")
            old_value = booking.location
            new_value = data.newLocation.strip()
            updates = {"location": new_value}

        try:
            self.repo.update_fields(self.db, booking, **updates)
            self.repo.add_modification(
                self.db,
                booking.id,
                data.modificationType,
                self._actor_label(actor),
                old_value=old_value,
                new_value=new_value,
                reason=data.reason,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(f"✏️ Booking {booking.id} {data.modificationType}: {old_value} -> {new_value}")
        return booking, (booking.phone, modification_message(data.modificationType, data.reason))

    # ------------------------------------------------------------------
    # Feedback
    # ------------------------------------------------------------------

    def submit_feedback(self, booking_id: str, data: FeedbackCreate) -> Feedback:
        booking = self.get_booking(booking_id)

        if booking.status not in FEEDBACK_STATUSES:
            raise ValidationError(
                "Feedback can only be submitted for completed bookings", currentStatus=booking.status
            )

        worker_id = data.workerId or booking.assigned_worker_id
        try:
            if not self.repo.record_feedback(self.db, booking.id, data.rating, data.comment, worker_id):
                raise FeedbackAlreadySubmitted("Feedback was already submitted for this booking")

            feedback = Feedback(
                booking_id=booking.id,
                customer_id=booking.customer_id,
                worker_id=worker_id,
                rating=data.rating,
                comment=data.comment,
                service_type=booking.service_type,
                admin_alerted=data.rating <= LOW_RATING_THRESHOLD,
            )
            self.db.add(feedback)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise FeedbackAlreadySubmitted("Feedback was already submitted for this booking") from e
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(feedback)
        if feedback.admin_alerted:
            logger.warning(f"⚠️ Low rating alert: booking {booking.id} received {data.rating} stars")
        else:
            logger.info(f"⭐ Feedback {data.rating}/5 for booking {booking.id}")
        return feedback

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _actor_label(actor: Actor) -> str:
        return actor.kind.value

    @staticmethod
    def _check_ownership(booking: Booking, actor: Actor) -> None:
        if actor.is_admin:
            return
        if actor.kind != ActorKind.CUSTOMER or actor.customer is None:
            raise Forbidden("Only the customer who booked or an admin can modify a booking")

        owner = normalize_phone(booking.phone).canonical
        if normalize_phone(actor.customer.phone).canonical != owner:
            raise Forbidden("You can only modify your own bookings")
