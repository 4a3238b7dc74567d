"""Promo banner schemas"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

Audience = Literal["all", "new_users", "returning_users", "students", "golf_players"]


class PromoBannerCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    imageUrl: Optional[str] = None
    actionUrl: Optional[str] = None
    actionText: Optional[str] = "Learn More"
    discountCode: Optional[str] = None
    discountAmount: Optional[float] = Field(0, ge=0)
    discountType: Literal["percentage", "fixed"] = "percentage"
    startDate: datetime
    endDate: datetime
    priority: int = 1
    targetAudience: list[Audience] = ["all"]

    @model_validator(mode="after")
    def check_dates(self):
        if self.startDate >= self.endDate:
            raise ValueError("startDate must be before endDate")
        return self


class PromoBannerUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    imageUrl: Optional[str] = None
    actionUrl: Optional[str] = None
    actionText: Optional[str] = None
    discountCode: Optional[str] = None
    discountAmount: Optional[float] = Field(None, ge=0)
    discountType: Optional[Literal["percentage", "fixed"]] = None
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    isActive: Optional[bool] = None
    priority: Optional[int] = None
    targetAudience: Optional[list[Audience]] = None


class PromoBannerResponse(BaseModel):
    id: str
    title: str
    description: str
    imageUrl: Optional[str] = None
    actionUrl: Optional[str] = None
    actionText: Optional[str] = None
    discountCode: Optional[str] = None
    discountAmount: Optional[float] = None
    discountType: Optional[str] = None
    startDate: datetime
    endDate: datetime
    isActive: bool
    priority: int
    targetAudience: list[str] = []
    createdAt: Optional[datetime] = None

    @classmethod
    def from_banner(cls, b) -> "PromoBannerResponse":
        return cls(
            id=b.id,
            title=b.title,
            description=b.description,
            imageUrl=b.image_url,
            actionUrl=b.action_url,
            actionText=b.action_text,
            discountCode=b.discount_code,
            discountAmount=b.discount_amount,
            discountType=b.discount_type,
            startDate=b.start_date,
            endDate=b.end_date,
            isActive=b.is_active,
            priority=b.priority,
            targetAudience=b.target_audience or [],
            createdAt=b.created_at,
        )
