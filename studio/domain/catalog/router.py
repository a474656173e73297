"""Catalog router - Public service listing and admin service management"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import Service
from .schemas import ServiceCreate, ServiceResponse, ServiceUpdate
from .service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["Services"])
admin_router = APIRouter(
    prefix="/admin/services", tags=["Admin Services"], dependencies=[Depends(require_admin)]
)


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


def to_service_response(service: Service) -> ServiceResponse:
    return ServiceResponse(
        id=service.id,
        name=service.name,
        description=service.description,
        category=service.category,
        durationMinutes=service.duration_minutes,
        priceCents=service.price_cents,
        imageUrl=service.image_url,
        isActive=service.is_active,
    )


@router.get("", response_model=list[ServiceResponse])
def list_services(service: CatalogService = Depends(get_catalog_service)):
    """Active services in creation order"""
    return [to_service_response(s) for s in service.list_active_services()]


@router.get("/{service_id}", response_model=ServiceResponse)
def get_service(service_id: str, service: CatalogService = Depends(get_catalog_service)):
    return to_service_response(service.get_active_service(service_id))


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("", response_model=list[ServiceResponse])
def list_all_services(service: CatalogService = Depends(get_catalog_service)):
    """All services including deactivated ones"""
    return [to_service_response(s) for s in service.list_all_services()]


@admin_router.post("", response_model=ServiceResponse, status_code=201)
def create_service(data: ServiceCreate, service: CatalogService = Depends(get_catalog_service)):
    return to_service_response(service.create_service(data))


@admin_router.patch("/{service_id}", response_model=ServiceResponse)
def update_service(
    service_id: str,
    data: ServiceUpdate,
    service: CatalogService = Depends(get_catalog_service),
):
    return to_service_response(service.update_service(service_id, data))


@admin_router.delete("/{service_id}", response_model=ServiceResponse)
def deactivate_service(service_id: str, service: CatalogService = Depends(get_catalog_service)):
    """Soft delete: the service stops being bookable, history is kept"""
    return to_service_response(service.deactivate_service(service_id))
