import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./swiftwash.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = "HS256"
ADMIN_TOKEN_HOURS = int(os.getenv("ADMIN_TOKEN_HOURS", "24"))
WORKER_TOKEN_DAYS = int(os.getenv("WORKER_TOKEN_DAYS", "7"))
CUSTOMER_TOKEN_DAYS = int(os.getenv("CUSTOMER_TOKEN_DAYS", "7"))

# Built-in dashboard admin
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")

# Frontend origins for CORS
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:3001,http://localhost:5173",
).split(",")

# Business constants
WORKER_EARNINGS_RATE = 0.4  # share of the booking price credited to the worker at "done"
LOYALTY_POINTS_PER_BOOKING = 10
LOYALTY_REWARD_POINTS = 100  # points per reward
LOYALTY_REWARD_CREDIT = 300  # wallet credit per reward
COUNTRY_CALLING_CODE = "254"

# Phone verification
OTP_TTL_MINUTES = 10
OTP_MAX_ATTEMPTS = 3
OTP_SEND_LIMIT = int(os.getenv("OTP_SEND_LIMIT", "5"))
OTP_SEND_WINDOW_SECONDS = int(os.getenv("OTP_SEND_WINDOW_SECONDS", "600"))


@dataclass(frozen=True)
class SmsSettings:
    """SMS provider configuration, read once at start-up and handed to the dispatcher"""

    enabled: bool = True
    provider: str = "simulated"  # simulated or twilio
    account_sid: str = ""
    auth_token: str = ""
    from_number: str = ""
    timeout_seconds: float = 10.0

    @property
    def twilio_configured(self) -> bool:
        return bool(
            self.provider == "twilio"
            and self.enabled
            and self.account_sid
            and self.auth_token
            and self.from_number
        )


def load_sms_settings() -> SmsSettings:
    return SmsSettings(
        enabled=os.getenv("SMS_ENABLED", "true").lower() == "true",
        provider=os.getenv("SMS_PROVIDER", "simulated").lower(),
        account_sid=os.getenv("TWILIO_ACCOUNT_SID", ""),
        auth_token=os.getenv("TWILIO_AUTH_TOKEN", ""),
        from_number=os.getenv("SMS_FROM_NUMBER", ""),
        timeout_seconds=float(os.getenv("SMS_TIMEOUT_SECONDS", "10")),
    )
