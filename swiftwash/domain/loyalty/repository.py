"""Loyalty repository"""

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Booking, Customer


class LoyaltyRepository:
    @staticmethod
    def get_customer(db: Session, customer_id: str):
        return db.query(Customer).filter(Customer.id == customer_id).first()

    @staticmethod
    def redeem_points(db: Session, customer_id: str, required: int, points_used: int, credit: float) -> bool:
        """
        Swap points for wallet credit in one conditional UPDATE; does not commit.
        Returns False when the customer no longer holds ``required`` points.
        """
        rowcount = (
            db.query(Customer)
            .filter(Customer.id == customer_id, Customer.loyalty_points >= required)
            .update(
                {
                    Customer.loyalty_points: Customer.loyalty_points - points_used,
                    Customer.wallet_balance: Customer.wallet_balance + credit,
                },
                synchronize_session=False,
            )
        )
        return rowcount == 1

    @staticmethod
    def bookings_for_customer(db: Session, customer: Customer) -> list[Booking]:
        # Bookings made before the customer signed in are only linked by phone
        return (
            db.query(Booking)
            .filter(or_(Booking.customer_id == customer.id, Booking.phone == customer.phone))
            .order_by(Booking.scheduled_date.desc(), Booking.created_at.desc())
            .all()
        )
