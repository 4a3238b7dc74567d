"""Loyalty service - points balance, redemption into wallet credit, booking history"""

import logging

from sqlalchemy.orm import Session

from ...config import LOYALTY_REWARD_CREDIT, LOYALTY_REWARD_POINTS
from ...models import Customer
from ..enums import BookingStatus
from ..errors import NotFound, ValidationError
from .repository import LoyaltyRepository

logger = logging.getLogger(__name__)

COMPLETED_STATUSES = frozenset({BookingStatus.DONE.value, BookingStatus.DELIVERED.value})


class LoyaltyService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = LoyaltyRepository()

    def get_customer(self, customer_id: str) -> Customer:
        customer = self.repo.get_customer(self.db, customer_id)
        if not customer:
            raise NotFound("Customer not found", customerId=customer_id)
        return customer

    def get_points(self, customer: Customer) -> dict:
        points = customer.loyalty_points
        return {
            "loyaltyPoints": points,
            "walletBalance": customer.wallet_balance,
            "pointsNeeded": LOYALTY_REWARD_POINTS - points % LOYALTY_REWARD_POINTS,
            "rewardsEarned": points // LOYALTY_REWARD_POINTS,
            "canRedeem": points >= LOYALTY_REWARD_POINTS,
        }

    def redeem(self, customer: Customer, points_to_redeem: int) -> dict:
        """
        Turn whole blocks of points into wallet credit.

        Only full rewards are redeemed: asking for 250 points uses 200 of them.
        The balance check and the deduction are a single conditional UPDATE, so
        two concurrent redemptions can never overdraw the points.

        Raises:
            ValidationError: below the minimum, or not enough points
        """
        if points_to_redeem < LOYALTY_REWARD_POINTS:
            raise ValidationError(
                f"Minimum {LOYALTY_REWARD_POINTS} points required for redemption",
                pointsToRedeem=points_to_redeem,
            )

        rewards = points_to_redeem // LOYALTY_REWARD_POINTS
        points_used = rewards * LOYALTY_REWARD_POINTS
        credit = rewards * LOYALTY_REWARD_CREDIT

        try:
            applied = self.repo.redeem_points(self.db, customer.id, points_to_redeem, points_used, credit)
            if applied:
                self.db.commit()
            else:
                self.db.rollback()
        except Exception:
            self.db.rollback()
            raise

        if not applied:
            raise ValidationError(
                "Insufficient loyalty points",
                pointsToRedeem=points_to_redeem,
                loyaltyPoints=self.get_customer(customer.id).loyalty_points,
            )

        self.db.refresh(customer)
        logger.info(f"🎁 Customer {customer.id} redeemed {points_used} points for {credit} credit")

        return {
            "message": "Points redeemed successfully",
            "pointsRedeemed": points_used,
            "rewardAmount": credit,
            "newBalance": customer.loyalty_points,
            "newWalletBalance": customer.wallet_balance,
        }

    def history(self, customer: Customer) -> dict:
        bookings = self.repo.bookings_for_customer(self.db, customer)
        return {
            "totalPoints": customer.loyalty_points,
            "totalWashes": len(bookings),
            "completedWashes": sum(1 for b in bookings if b.status in COMPLETED_STATUSES),
            "bookings": [
                {
                    "id": b.id,
                    "serviceType": b.service_type,
                    "scheduledDate": b.scheduled_date,
                    "price": b.price,
                    "loyaltyPointsEarned": b.loyalty_points_earned,
                    "status": b.status,
                }
                for b in bookings
            ],
        }
