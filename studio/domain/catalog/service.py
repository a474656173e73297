"""Catalog service - Business logic for the service catalog"""

import logging

from sqlalchemy.orm import Session

from ...database import with_store_retry
from ...exceptions import InvalidServiceError, NotFoundError
from ...models import Service
from .repository import ServiceRepository
from .schemas import ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)


class CatalogService:
    """Service layer for bookable service definitions"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ServiceRepository()

    @with_store_retry
    def list_active_services(self) -> list[Service]:
        return self.repo.get_active_services(self.db)

    @with_store_retry
    def list_all_services(self) -> list[Service]:
        return self.repo.get_all_services(self.db)

    @with_store_retry
    def get_service(self, service_id: str) -> Service:
        service = self.repo.get_service_by_id(self.db, service_id)
        if not service:
            raise NotFoundError("Service not found")
        return service

    @with_store_retry
    def get_active_service(self, service_id: str) -> Service:
        """Resolve a service that can be booked right now"""
        service = self.repo.get_service_by_id(self.db, service_id)
        if not service or not service.is_active:
            raise InvalidServiceError("Service does not exist or is no longer offered")
        return service

    @with_store_retry
    def create_service(self, data: ServiceCreate) -> Service:
        service = self.repo.create_service(
            self.db,
            name=data.name,
            description=data.description,
            category=data.category.value,
            duration_minutes=data.durationMinutes,
            price_cents=data.priceCents,
            image_url=data.imageUrl,
            is_active=data.isActive,
        )
        logger.info(f"Service created: {service.id} ({service.name}, {service.duration_minutes} min)")
        return service

    @with_store_retry
    def update_service(self, service_id: str, data: ServiceUpdate) -> Service:
        """Apply an administrative correction. Existing bookings keep their snapshots."""
        service = self.get_service(service_id)
        updates = {
            "name": data.name,
            "description": data.description,
            "category": data.category.value if data.category is not None else None,
            "duration_minutes": data.durationMinutes,
            "price_cents": data.priceCents,
            "image_url": data.imageUrl,
            "is_active": data.isActive,
        }
        service = self.repo.update_service(self.db, service, **updates)
        logger.info(f"Service updated: {service.id}")
        return service

    @with_store_retry
    def deactivate_service(self, service_id: str) -> Service:
        service = self.get_service(service_id)
        service = self.repo.update_service(self.db, service, is_active=False)
        logger.info(f"Service deactivated: {service.id}")
        return service
