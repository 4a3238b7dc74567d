"""
Admin SMS endpoints
Manual sends and a read-only view of the provider configuration
"""

import logging
import re

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator

from ..auth import Actor, require_admin
from ..domain.errors import NotificationFailed
from ..services.notification_service import NotificationDispatcher, get_dispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sms", tags=["SMS"])

PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")


class SmsSendRequest(BaseModel):
    to: str
    message: str = Field(..., min_length=1, max_length=160)

    @field_validator("to")
    @classmethod
    def validate_to(cls, v):
        v = re.sub(r"\s", "", v)
        if not PHONE_PATTERN.match(v):
            raise ValueError("Invalid phone number format")
        return v


@router.post("/send")
async def send_sms(
    data: SmsSendRequest,
    actor: Actor = Depends(require_admin),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = await dispatcher.send(data.to, data.message)
    if not result["success"]:
        raise NotificationFailed(result.get("error") or "Failed to send SMS", provider=result["provider"])

    logger.info(f"✅ Manual SMS sent by {actor.kind.value} via {result['provider']}")
    response = {"success": True, "messageId": result["messageId"], "provider": result["provider"]}
    if result["provider"] == "simulated":
        response["simulated"] = True
        response["warning"] = "This is a simulated SMS. No actual message was sent."
    return response


@router.get("/config")
async def get_config(
    _: Actor = Depends(require_admin),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Provider settings as loaded at start-up; credentials are never returned"""
    settings = dispatcher.settings
    return {
        "enabled": settings.enabled,
        "provider": dispatcher.provider,
        "configuredProvider": settings.provider,
        "fromNumber": settings.from_number or None,
    }


@router.get("/status")
async def get_status(
    _: Actor = Depends(require_admin),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    return {
        "service": "SMS Service",
        "status": "operational" if dispatcher.settings.enabled else "disabled",
        "provider": dispatcher.provider,
        "enabled": dispatcher.settings.enabled,
    }
