"""Promo banner repository"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import PromoBanner


class PromoRepository:
    @staticmethod
    def get_banner(db: Session, banner_id: str) -> Optional[PromoBanner]:
        return db.query(PromoBanner).filter(PromoBanner.id == banner_id).first()

    @staticmethod
    def list_active(db: Session, now: datetime) -> list[PromoBanner]:
        """Enabled banners whose date window contains ``now``, highest priority first"""
        return (
            db.query(PromoBanner)
            .filter(
                PromoBanner.is_active.is_(True),
                PromoBanner.start_date <= now,
                PromoBanner.end_date >= now,
            )
            .order_by(PromoBanner.priority.desc(), PromoBanner.created_at.desc())
            .all()
        )

    @staticmethod
    def list_all(db: Session) -> list[PromoBanner]:
        return db.query(PromoBanner).order_by(PromoBanner.created_at.desc()).all()

    @staticmethod
    def create_banner(db: Session, **banner_data) -> PromoBanner:
        banner = PromoBanner(**banner_data)
        db.add(banner)
        db.commit()
        db.refresh(banner)
        return banner

    @staticmethod
    def update_banner(db: Session, banner: PromoBanner, **updates) -> PromoBanner:
        for key, value in updates.items():
            if value is not None and hasattr(banner, key):
                setattr(banner, key, value)
        db.commit()
        db.refresh(banner)
        return banner

    @staticmethod
    def delete_banner(db: Session, banner: PromoBanner) -> None:
        db.delete(banner)
        db.commit()
