"""
Notification Dispatcher
Sends customer and worker SMS through Twilio or the simulated provider.

Delivery is best-effort: ``send`` never raises, callers schedule it as a
background task after the write it reports on has committed.
"""

import logging
import uuid
from typing import Callable, Optional

import httpx
from sqlalchemy.orm import Session

from ..config import OTP_TTL_MINUTES, SmsSettings, load_sms_settings
from ..models_sms import SmsLog
from ..shared.validators import normalize_phone

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


class NotificationDispatcher:
    def __init__(self, settings: SmsSettings, session_factory: Optional[Callable[[], Session]] = None):
        self.settings = settings
        self.session_factory = session_factory

    @property
    def provider(self) -> str:
        return "twilio" if self.settings.twilio_configured else "simulated"

    async def send(self, phone: str, message: str) -> dict:
        """
        Send one SMS.

        Returns:
            ``{"success": bool, "provider": str, "messageId": str | None, "error": str | None}``
        """
        try:
            if not self.settings.enabled:
                logger.info(f"SMS disabled, not sending to {phone}")
                return self._result(False, error="SMS disabled")

            try:
                to_phone = normalize_phone(phone).e164
            except ValueError as e:
                logger.warning(f"⚠️ Cannot send SMS to {phone!r}: {e}")
                return self._result(False, error=str(e))

            if self.settings.twilio_configured:
                success, message_id, error = await self._send_twilio(to_phone, message)
            else:
                success, message_id, error = self._send_simulated(to_phone, message)

            self._log(to_phone, message, success, message_id, error)
            return self._result(success, message_id=message_id, error=error)
        except Exception as e:
            logger.error(f"❌ Unexpected error sending SMS to {phone}: {str(e)}")
            return self._result(False, error=str(e))

    async def _send_twilio(self, to_phone: str, message: str):
        data = {"To": to_phone, "Body": message, "From": self.settings.from_number}
        try:
            logger.info(f"🚀 Sending SMS to Twilio API for {to_phone}")
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    TWILIO_MESSAGES_URL.format(sid=self.settings.account_sid),
                    auth=(self.settings.account_sid, self.settings.auth_token),
                    data=data,
                    timeout=self.settings.timeout_seconds,
                )

            if response.status_code in [200, 201]:
                message_sid = response.json().get("sid")
                logger.info(f"✅ SMS sent to {to_phone} (SID: {message_sid})")
                return True, message_sid, None

            error_data = response.json()
            error_message = error_data.get("message", "Unknown error")
            error_code = error_data.get("code")
            logger.error(f"❌ Twilio API error [{error_code}]: {error_message}")
            return False, None, f"[{error_code}] {error_message}" if error_code else error_message
        except httpx.HTTPError as e:
            logger.error(f"Twilio API error: {str(e)}")
            return False, None, str(e)

    def _send_simulated(self, to_phone: str, message: str):
        message_id = f"sim-{uuid.uuid4().hex[:12]}"
        logger.info(f"📱 [simulated] SMS to {to_phone}: {message}")
        return True, message_id, None

    def _log(self, to_phone, message, success, message_id, error) -> None:
        if self.session_factory is None:
            return
        db = self.session_factory()
        try:
            db.add(
                SmsLog(
                    to_phone=to_phone,
                    message_body=message,
                    provider=self.provider,
                    provider_message_id=message_id,
                    status="sent" if success else "failed",
                    error_message=error,
                )
            )
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to record SMS log for {to_phone}: {str(e)}")
        finally:
            db.close()

    def _result(self, success: bool, message_id: Optional[str] = None, error: Optional[str] = None) -> dict:
        return {"success": success, "provider": self.provider, "messageId": message_id, "error": error}


_dispatcher: Optional[NotificationDispatcher] = None


def get_dispatcher() -> NotificationDispatcher:
    """FastAPI dependency returning the process-wide dispatcher"""
    global _dispatcher
    if _dispatcher is None:
        from ..database import SessionLocal

        _dispatcher = NotificationDispatcher(load_sms_settings(), session_factory=SessionLocal)
    return _dispatcher


# SMS Template Functions
def booking_received_message(name: str, service_label: str, date: str, time: str, booking_id: str) -> str:
    return (
        f"Hi {name}! Your {service_label} is booked for {date} at {time}. "
        f"Booking ID: {booking_id}. We'll confirm shortly. - SwiftWash"
    )


STATUS_MESSAGES = {
    "confirmed": "Your booking has been confirmed!",
    "started_cleaning": "Your car wash has started!",
    "done": "Your car wash is complete!",
    "delivered": "Your car has been delivered!",
}


def status_message(status: str, reason: Optional[str] = None) -> Optional[str]:
    """Customer-facing text for a status change, or None when no SMS is sent"""
    if status in STATUS_MESSAGES:
        return f"{STATUS_MESSAGES[status]} - SwiftWash"
    if status == "rejected":
        return f"Sorry, your booking could not be accepted. Reason: {reason} - SwiftWash"
    if status == "cancelled":
        return f"Your booking has been cancelled. Reason: {reason} - SwiftWash"
    return None


def modification_message(modification_type: str, reason: Optional[str] = None) -> str:
    action = "cancelled" if modification_type == "cancel" else "modified"
    suffix = f" Reason: {reason}" if reason else ""
    return f"Your booking has been {action}.{suffix} - SwiftWash"


def otp_message(otp: str) -> str:
    return f"Your SwiftWash verification code is {otp}. It expires in {OTP_TTL_MINUTES} minutes."


def assignment_message(worker_name: str, service_label: str, date: str, time: str, location: str) -> str:
    return (
        f"Hi {worker_name}! New job: {service_label} on {date} at {time}, {location}. - SwiftWash"
    )


def schedule_notification(background_tasks, dispatcher: NotificationDispatcher, notification) -> None:
    """Queue ``(phone, message)`` to be sent after the response is returned"""
    if not notification:
        return
    phone, message = notification
    if phone and message:
        background_tasks.add_task(dispatcher.send, phone, message)
