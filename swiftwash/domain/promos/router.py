"""Promo banner router"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import Actor, require_admin
from ...database import get_db
from .schemas import PromoBannerCreate, PromoBannerResponse, PromoBannerUpdate
from .service import PromoService

router = APIRouter(prefix="/promos", tags=["Promos"])


def get_promo_service(db: Session = Depends(get_db)) -> PromoService:
    return PromoService(db)


@router.get("/active", response_model=list[PromoBannerResponse])
async def active_banners(service: PromoService = Depends(get_promo_service)):
    """Banners shown in the customer app right now"""
    return [PromoBannerResponse.from_banner(b) for b in service.list_active()]


@router.get("/admin", response_model=list[PromoBannerResponse])
async def all_banners(
    _: Actor = Depends(require_admin),
    service: PromoService = Depends(get_promo_service),
):
    return [PromoBannerResponse.from_banner(b) for b in service.list_all()]


@router.post("", response_model=PromoBannerResponse, status_code=201)
async def create_banner(
    data: PromoBannerCreate,
    _: Actor = Depends(require_admin),
    service: PromoService = Depends(get_promo_service),
):
    return PromoBannerResponse.from_banner(service.create_banner(data))


@router.put("/{banner_id}", response_model=PromoBannerResponse)
async def update_banner(
    banner_id: str,
    data: PromoBannerUpdate,
    _: Actor = Depends(require_admin),
    service: PromoService = Depends(get_promo_service),
):
    return PromoBannerResponse.from_banner(service.update_banner(banner_id, data))


@router.delete("/{banner_id}")
async def delete_banner(
    banner_id: str,
    _: Actor = Depends(require_admin),
    service: PromoService = Depends(get_promo_service),
):
    service.delete_banner(banner_id)
    return {"message": "Banner deleted successfully"}


@router.patch("/{banner_id}/toggle", response_model=PromoBannerResponse)
async def toggle_banner(
    banner_id: str,
    _: Actor = Depends(require_admin),
    service: PromoService = Depends(get_promo_service),
):
    return PromoBannerResponse.from_banner(service.toggle_banner(banner_id))
