"""
Domain error taxonomy.

Every error carries a stable ``kind`` so API clients can branch on it without
parsing messages. ``main.py`` renders them as ``{"error": kind, "detail": ...}``.
"""

from typing import Any


class DomainError(Exception):
    """Base class for errors raised by the booking domain"""

    kind = "domain_error"
    status_code = 400

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.message, **self.details}


class NotFound(DomainError):
    kind = "not_found"
    status_code = 404


class InvalidTransition(DomainError):
    kind = "invalid_transition"
    status_code = 409


class StaleState(DomainError):
    """The booking changed between read and conditional write"""

    kind = "stale_state"
    status_code = 409


class InactiveWorker(DomainError):
    kind = "inactive_worker"
    status_code = 400


class WorkerHasActiveBookings(DomainError):
    kind = "worker_has_active_bookings"
    status_code = 409


class ValidationError(DomainError):
    kind = "validation_error"
    status_code = 400


class FeedbackAlreadySubmitted(DomainError):
    kind = "feedback_already_submitted"
    status_code = 409


class Duplicate(DomainError):
    kind = "duplicate"
    status_code = 409


class Forbidden(DomainError):
    kind = "forbidden"
    status_code = 403


class NotAuthenticated(DomainError):
    kind = "not_authenticated"
    status_code = 401


class NotificationFailed(DomainError):
    """Raised only where the SMS itself is the requested operation (OTP, admin send)"""

    kind = "notification_failed"
    status_code = 502
