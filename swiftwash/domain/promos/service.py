"""Promo banner service"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import PromoBanner
from ..errors import NotFound, ValidationError
from .repository import PromoRepository
from .schemas import PromoBannerCreate, PromoBannerUpdate

logger = logging.getLogger(__name__)


class PromoService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = PromoRepository()

    def get_banner(self, banner_id: str) -> PromoBanner:
        banner = self.repo.get_banner(self.db, banner_id)
        if not banner:
            raise NotFound("Banner not found", bannerId=banner_id)
        return banner

    def list_active(self, now: Optional[datetime] = None) -> list[PromoBanner]:
        return self.repo.list_active(self.db, now or datetime.utcnow())

    def list_all(self) -> list[PromoBanner]:
        return self.repo.list_all(self.db)

    def create_banner(self, data: PromoBannerCreate) -> PromoBanner:
        banner = self.repo.create_banner(
            self.db,
            title=data.title.strip(),
            description=data.description.strip(),
            image_url=data.imageUrl,
            action_url=data.actionUrl,
            action_text=data.actionText,
            discount_code=data.discountCode,
            discount_amount=data.discountAmount,
            discount_type=data.discountType,
            start_date=data.startDate,
            end_date=data.endDate,
            priority=data.priority,
            target_audience=list(data.targetAudience),
        )
        logger.info(f"📣 Promo banner {banner.id} created: {banner.title}")
        return banner

    def update_banner(self, banner_id: str, data: PromoBannerUpdate) -> PromoBanner:
        banner = self.get_banner(banner_id)

        start = data.startDate or banner.start_date
        end = data.endDate or banner.end_date
        if start >= end:
            raise ValidationError("startDate must be before endDate")

        return self.repo.update_banner(
            self.db,
            banner,
            title=data.title,
            description=data.description,
            image_url=data.imageUrl,
            action_url=data.actionUrl,
            action_text=data.actionText,
            discount_code=data.discountCode,
            discount_amount=data.discountAmount,
            discount_type=data.discountType,
            start_date=data.startDate,
            end_date=data.endDate,
            is_active=data.isActive,
            priority=data.priority,
            target_audience=list(data.targetAudience) if data.targetAudience is not None else None,
        )

    def delete_banner(self, banner_id: str) -> None:
        self.repo.delete_banner(self.db, self.get_banner(banner_id))
        logger.info(f"🗑️ Promo banner {banner_id} deleted")

    def toggle_banner(self, banner_id: str) -> PromoBanner:
        banner = self.get_banner(banner_id)
        banner.is_active = not banner.is_active
        self.db.commit()
        self.db.refresh(banner)
        return banner
