"""
Phone verification service
One-time codes sent by SMS let customers sign in with just their phone number.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from ...config import OTP_MAX_ATTEMPTS, OTP_TTL_MINUTES
from ...models import Booking, Customer, PhoneVerification
from ...security_utils import constant_time_compare, generate_otp
from ...services.notification_service import NotificationDispatcher, otp_message
from ...shared.validators import mask_phone, normalize_phone
from ..bookings.repository import BookingRepository
from ..errors import NotFound, NotificationFailed, ValidationError

logger = logging.getLogger(__name__)


class VerificationService:
    def __init__(self, db: Session):
        self.db = db
        self.bookings = BookingRepository()

    async def send_otp(self, phone: str, dispatcher: NotificationDispatcher) -> dict:
        normalized = normalize_phone(phone)

        customer = self.bookings.find_customer_by_phone(self.db, normalized.variants)
        has_booking = bool(self.bookings.find_by_phone(self.db, normalized.variants, limit=1))
        if not customer and not has_booking:
            raise NotFound("No account or bookings found with this phone number")

        verification = PhoneVerification(
            phone=normalized.canonical,
            otp=generate_otp(),
            expires_at=datetime.utcnow() + timedelta(minutes=OTP_TTL_MINUTES),
            max_attempts=OTP_MAX_ATTEMPTS,
        )
        self.db.add(verification)
        self.db.commit()
        self.db.refresh(verification)

        result = await dispatcher.send(normalized.canonical, otp_message(verification.otp))
        if not result.get("success"):
            self.db.delete(verification)
            self.db.commit()
            logger.error(f"❌ OTP SMS to {mask_phone(normalized.canonical)} failed: {result.get('error')}")
            raise NotificationFailed("Failed to send OTP. Please try again.")

        logger.info(f"📱 OTP sent to {mask_phone(normalized.canonical)}")
        return {"success": True, "message": "OTP sent successfully", "phone": mask_phone(normalized.canonical)}

    def verify_otp(self, phone: str, otp: str) -> Customer:
        """
        Check a code and return the customer it signs in, creating the
        customer record for booking-only phones.
        """
        normalized = normalize_phone(phone)
        verification = (
            self.db.query(PhoneVerification)
            .filter(
                PhoneVerification.phone == normalized.canonical,
                PhoneVerification.is_used.is_(False),
                PhoneVerification.expires_at > datetime.utcnow(),
            )
            .order_by(PhoneVerification.created_at.desc(), PhoneVerification.id.desc())
            .first()
        )
        if not verification:
            raise ValidationError("Invalid or expired OTP")

        if verification.attempts >= verification.max_attempts:
            raise ValidationError("Too many attempts. Please request a new OTP.")

        if not constant_time_compare(otp, verification.otp):
            verification.attempts += 1
            self.db.commit()
            remaining = max(verification.max_attempts - verification.attempts, 0)
            logger.warning(f"⚠️ Wrong OTP for {mask_phone(normalized.canonical)}, {remaining} attempts left")
            raise ValidationError("Invalid OTP", attemptsRemaining=remaining)

        verification.attempts += 1
        verification.is_used = True

        customer = self.bookings.find_customer_by_phone(self.db, normalized.variants)
        if not customer:
            latest = (
                self.db.query(Booking)
                .filter(Booking.phone.in_(list(normalized.variants)))
                .order_by(Booking.created_at.desc())
                .first()
            )
            if not latest:
                self.db.commit()
                raise NotFound("No account or bookings found")
            customer = Customer(name=latest.customer_name, phone=normalized.canonical)
            self.db.add(customer)
            logger.info(f"🆕 Created customer for {mask_phone(normalized.canonical)} on first sign-in")

        self.db.commit()
        self.db.refresh(customer)
        logger.info(f"✅ Phone verified for customer {customer.id}")
        return customer
