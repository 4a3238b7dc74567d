"""Loyalty router - customer points and wallet credit"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Actor, require_customer_or_admin
from ...database import get_db
from ...models import Customer
from ..enums import ActorKind
from ..errors import ValidationError
from .schemas import HistoryResponse, PointsResponse, RedeemRequest, RedeemResponse
from .service import LoyaltyService

router = APIRouter(prefix="/loyalty", tags=["Loyalty"])


def get_loyalty_service(db: Session = Depends(get_db)) -> LoyaltyService:
    return LoyaltyService(db)


def _target_customer(actor: Actor, service: LoyaltyService, customer_id: Optional[str]) -> Customer:
    """Customers act on themselves; admins name the customer"""
    if actor.kind == ActorKind.CUSTOMER:
        return service.get_customer(actor.customer.id)
    if not customer_id:
        raise ValidationError("customerId is required for admin requests")
    return service.get_customer(customer_id)


@router.get("/my-points", response_model=PointsResponse)
async def my_points(
    customerId: Optional[str] = Query(None),
    actor: Actor = Depends(require_customer_or_admin),
    service: LoyaltyService = Depends(get_loyalty_service),
):
    return service.get_points(_target_customer(actor, service, customerId))


@router.post("/redeem", response_model=RedeemResponse)
async def redeem_points(
    data: RedeemRequest,
    customerId: Optional[str] = Query(None),
    actor: Actor = Depends(require_customer_or_admin),
    service: LoyaltyService = Depends(get_loyalty_service),
):
    return service.redeem(_target_customer(actor, service, customerId), data.pointsToRedeem)


@router.get("/history", response_model=HistoryResponse)
async def loyalty_history(
    customerId: Optional[str] = Query(None),
    actor: Actor = Depends(require_customer_or_admin),
    service: LoyaltyService = Depends(get_loyalty_service),
):
    return service.history(_target_customer(actor, service, customerId))
