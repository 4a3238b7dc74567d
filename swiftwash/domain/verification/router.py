"""Phone verification router - OTP sign-in for customers"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import create_customer_token
from ...database import get_db
from ...rate_limiter import rate_limit_otp_send
from ...services.notification_service import NotificationDispatcher, get_dispatcher
from .schemas import SendOtpRequest, VerifyOtpRequest
from .service import VerificationService

router = APIRouter(prefix="/phone-verification", tags=["Phone Verification"])


def get_verification_service(db: Session = Depends(get_db)) -> VerificationService:
    return VerificationService(db)


@router.post("/send-otp")
async def send_otp(
    data: SendOtpRequest,
    _: None = Depends(rate_limit_otp_send),
    service: VerificationService = Depends(get_verification_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Text a six-digit sign-in code to a phone that has an account or bookings"""
    return await service.send_otp(data.phone, dispatcher)


@router.post("/verify-otp")
async def verify_otp(
    data: VerifyOtpRequest,
    service: VerificationService = Depends(get_verification_service),
):
    customer = service.verify_otp(data.phone, data.otp)
    return {
        "success": True,
        "message": "Phone verification successful",
        "token": create_customer_token(customer),
        "customer": {
            "id": customer.id,
            "name": customer.name,
            "phone": customer.phone,
            "email": customer.email,
            "loyaltyPoints": customer.loyalty_points,
        },
    }
