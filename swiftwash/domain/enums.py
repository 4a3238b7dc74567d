"""Domain enumerations shared by models, schemas and services"""

import enum


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    STARTED_CLEANING = "started_cleaning"
    DONE = "done"
    DELIVERED = "delivered"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class VehicleClass(str, enum.Enum):
    SALOON = "saloon"
    SUV = "suv"
    TRUCK = "truck"


class ServiceType(str, enum.Enum):
    BODY_WASH = "body_wash"
    INTERIOR_EXTERIOR = "interior_exterior"
    ENGINE = "engine"
    VACUUM = "vacuum"
    FULL_SERVICE = "full_service"


class ActorKind(str, enum.Enum):
    ADMIN = "admin"
    WORKER = "worker"
    CUSTOMER = "customer"


class WorkerRole(str, enum.Enum):
    WORKER = "worker"
    SUPERVISOR = "supervisor"


class WorkerStatus(str, enum.Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"


class JobRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ModificationType(str, enum.Enum):
    STATUS_CHANGE = "status_change"
    RESCHEDULE = "reschedule"
    LOCATION_CHANGE = "location_change"
    CANCEL = "cancel"
    REJECT = "reject"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


# Ten hourly slots, 08:00 through 17:00
TIME_SLOTS = tuple(f"{hour:02d}:00" for hour in range(8, 18))

TERMINAL_STATUSES = frozenset(
    {BookingStatus.DELIVERED, BookingStatus.REJECTED, BookingStatus.CANCELLED}
)

# Bookings that block deleting the assigned worker
ACTIVE_WORK_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.STARTED_CLEANING})

# Statuses a booking may still be modified (rescheduled, relocated, cancelled) in
MODIFIABLE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

# Tasks shown on a worker's board
WORKER_TASK_STATUSES = frozenset(
    {BookingStatus.CONFIRMED, BookingStatus.STARTED_CLEANING, BookingStatus.DONE}
)

# Transitions a worker may drive on their own bookings
WORKER_SETTABLE_STATUSES = frozenset(
    {BookingStatus.STARTED_CLEANING, BookingStatus.DONE, BookingStatus.DELIVERED}
)
