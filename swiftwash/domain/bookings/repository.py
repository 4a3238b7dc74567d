"""Booking repository - Database operations for bookings"""

from datetime import date, datetime
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Booking, BookingModification, Customer, Feedback


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: str) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_status(db: Session, booking_id: str) -> Optional[str]:
        """Fresh read of the persisted status, bypassing any loaded instance"""
        return db.query(Booking.status).filter(Booking.id == booking_id).scalar()

    @staticmethod
    def find_by_phone(
        db: Session,
        phone_variants: Iterable[str],
        status: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        service_type: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[Booking]:
        """Bookings stored under any of the equivalent phone forms, newest scheduled first"""
        query = db.query(Booking).filter(Booking.phone.in_(list(phone_variants)))

        if status:
            query = query.filter(Booking.status == status)
        if date_from:
            query = query.filter(Booking.scheduled_date >= date_from)
        if date_to:
            query = query.filter(Booking.scheduled_date < date_to)
        if service_type:
            query = query.filter(Booking.service_type == service_type)

        query = query.order_by(Booking.scheduled_date.desc(), Booking.created_at.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def list_bookings(
        db: Session,
        status: Optional[str] = None,
        worker_id: Optional[str] = None,
        statuses: Optional[Iterable[str]] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Booking]:
        query = db.query(Booking)

        if status:
            query = query.filter(Booking.status == status)
        if statuses is not None:
            query = query.filter(Booking.status.in_(list(statuses)))
        if worker_id:
            query = query.filter(Booking.assigned_worker_id == worker_id)
        if date_from:
            query = query.filter(Booking.scheduled_date >= date_from)
        if date_to:
            query = query.filter(Booking.scheduled_date < date_to)

        return query.order_by(Booking.created_at.desc()).all()

    @staticmethod
    def count_for_worker(db: Session, worker_id: str, statuses: Iterable[str]) -> int:
        return (
            db.query(func.count(Booking.id))
            .filter(Booking.assigned_worker_id == worker_id, Booking.status.in_(list(statuses)))
            .scalar()
        )

    @staticmethod
    def create_booking(db: Session, **booking_data) -> Booking:
        booking = Booking(**booking_data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def compare_and_set_status(
        db: Session, booking_id: str, expected_status: str, new_status: str, **fields
    ) -> bool:
        """
        Conditionally move a booking from ``expected_status`` to ``new_status``.

        Issues a single ``UPDATE ... WHERE id = :id AND status = :expected``;
        does not commit. Returns True when exactly this call applied the change.
        """
        values = {Booking.status: new_status, Booking.updated_at: datetime.utcnow()}
        values.update({getattr(Booking, name): value for name, value in fields.items()})

        rowcount = (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.status == expected_status)
            .update(values, synchronize_session=False)
        )
        return rowcount == 1

    @staticmethod
    def update_fields(db: Session, booking: Booking, **updates) -> Booking:
        """Plain read-modify-write for fields with no lifecycle consequence; does not commit"""
        for key, value in updates.items():
            setattr(booking, key, value)
        return booking

    @staticmethod
    def add_modification(
        db: Session,
        booking_id: str,
        modification_type: str,
        actor: str,
        old_value: Optional[str] = None,
        new_value: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> BookingModification:
        """Append an audit log entry; does not commit"""
        entry = BookingModification(
            booking_id=booking_id,
            type=modification_type,
            old_value=old_value,
            new_value=new_value,
            reason=reason,
            actor=actor,
        )
        db.add(entry)
        return entry

    # Customers
    @staticmethod
    def find_customer_by_phone(db: Session, phone_variants: Iterable[str]) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.phone.in_(list(phone_variants))).first()

    @staticmethod
    def get_customer(db: Session, customer_id: str) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.id == customer_id).first()

    @staticmethod
    def add_loyalty_points(db: Session, customer_id: str, points: int) -> None:
        db.query(Customer).filter(Customer.id == customer_id).update(
            {Customer.loyalty_points: Customer.loyalty_points + points}, synchronize_session=False
        )

    # Feedback
    @staticmethod
    def record_feedback(
        db: Session, booking_id: str, rating: int, comment: Optional[str], worker_id: Optional[str]
    ) -> bool:
        """Set the embedded feedback only if none was submitted yet; does not commit"""
        rowcount = (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.feedback_rating.is_(None))
            .update(
                {
                    Booking.feedback_rating: rating,
                    Booking.feedback_comment: comment,
                    Booking.feedback_submitted_at: datetime.utcnow(),
                    Booking.feedback_worker_id: worker_id,
                },
                synchronize_session=False,
            )
        )
        return rowcount == 1

    @staticmethod
    def list_feedback(db: Session, low_ratings_only: bool = False) -> list[Feedback]:
        query = db.query(Feedback)
        if low_ratings_only:
            query = query.filter(Feedback.admin_alerted.is_(True))
        return query.order_by(Feedback.created_at.desc()).all()

    # Statistics
    @staticmethod
    def count_by_status(db: Session) -> dict[str, int]:
        rows = db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all()
        return {status: count for status, count in rows}

    @staticmethod
    def revenue(db: Session, since: Optional[date] = None) -> float:
        """Sum of prices of completed (done or delivered) bookings"""
        query = db.query(func.coalesce(func.sum(Booking.price), 0)).filter(
            Booking.status.in_(["done", "delivered"])
        )
        if since:
            query = query.filter(Booking.scheduled_date >= since)
        return float(query.scalar() or 0)

    @staticmethod
    def count_scheduled_on(db: Session, day: date) -> int:
        return db.query(func.count(Booking.id)).filter(Booking.scheduled_date == day).scalar()

    @staticmethod
    def average_rating(db: Session) -> Optional[float]:
        value = db.query(func.avg(Feedback.rating)).scalar()
        return round(float(value), 2) if value is not None else None
