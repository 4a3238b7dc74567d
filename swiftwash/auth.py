import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import ADMIN_TOKEN_HOURS, CUSTOMER_TOKEN_DAYS, WORKER_TOKEN_DAYS
from .database import get_db
from .domain.enums import ActorKind, WorkerRole
from .domain.errors import Forbidden, NotAuthenticated
from .models import Customer, Worker
from .security_utils import create_jwt_token, verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass
class Actor:
    """Authenticated caller; ``kind`` is used for authorization and audit attribution only"""

    kind: ActorKind
    id: str
    worker: Optional[Worker] = None
    customer: Optional[Customer] = None

    @property
    def is_admin(self) -> bool:
        if self.kind == ActorKind.ADMIN:
            return True
        return bool(
            self.worker is not None
            and self.worker.is_active
            and self.worker.role == WorkerRole.SUPERVISOR.value
        )


def create_admin_token(username: str) -> str:
    return create_jwt_token(
        {"sub": username, "kind": ActorKind.ADMIN.value}, timedelta(hours=ADMIN_TOKEN_HOURS)
    )


def create_worker_token(worker: Worker) -> str:
    return create_jwt_token(
        {"sub": worker.id, "kind": ActorKind.WORKER.value, "role": worker.role},
        timedelta(days=WORKER_TOKEN_DAYS),
    )


def create_customer_token(customer: Customer) -> str:
    return create_jwt_token(
        {"sub": customer.id, "kind": ActorKind.CUSTOMER.value, "phone": customer.phone},
        timedelta(days=CUSTOMER_TOKEN_DAYS),
    )


def _resolve_actor(credentials: Optional[HTTPAuthorizationCredentials], db: Session) -> Optional[Actor]:
    if not credentials:
        return None

    payload = verify_jwt_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        logger.warning("⚠️ Rejected invalid or expired token")
        raise NotAuthenticated("Invalid or expired token")

    try:
        kind = ActorKind(payload.get("kind"))
    except ValueError as e:
        raise NotAuthenticated("Invalid token claims") from e

    subject = payload["sub"]
    if kind == ActorKind.ADMIN:
        return Actor(kind=kind, id=subject)

    if kind == ActorKind.WORKER:
        worker = db.query(Worker).filter(Worker.id == subject).first()
        if not worker:
            raise NotAuthenticated("Worker account no longer exists")
        return Actor(kind=kind, id=subject, worker=worker)

    customer = db.query(Customer).filter(Customer.id == subject).first()
    if not customer:
        raise NotAuthenticated("Customer account no longer exists")
    return Actor(kind=kind, id=subject, customer=customer)


async def get_optional_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[Actor]:
    """Actor for endpoints that are public but behave differently when authenticated"""
    return _resolve_actor(credentials, db)


async def get_current_actor(actor: Optional[Actor] = Depends(get_optional_actor)) -> Actor:
    if actor is None:
        raise NotAuthenticated(
            "Not authenticated. Please provide a valid Bearer token in the Authorization header."
        )
    return actor


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Admin token, or a token of an active supervisor"""
    if not actor.is_admin:
        logger.warning(f"⚠️ {actor.kind.value} {actor.id} attempted an admin action")
        raise Forbidden("Admin access required")
    return actor


async def require_worker(actor: Actor = Depends(get_current_actor)) -> Actor:
    if actor.kind != ActorKind.WORKER or actor.worker is None:
        raise Forbidden("Worker access required")
    if not actor.worker.is_active:
        raise Forbidden("Worker account is deactivated")
    return actor


async def require_staff(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Admin, supervisor or active worker"""
    if actor.is_admin:
        return actor
    return await require_worker(actor)


async def require_customer_or_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if actor.kind == ActorKind.CUSTOMER or actor.is_admin:
        return actor
    raise Forbidden("Customer or admin access required")
