"""Service catalog repository - Database operations for bookable services"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Service


class ServiceRepository:
    """Repository for service catalog database operations"""

    @staticmethod
    def get_active_services(db: Session) -> list[Service]:
        """Get active services in creation order"""
        return (
            db.query(Service)
            .filter(Service.is_active.is_(True))
            .order_by(Service.created_at.asc())
            .all()
        )

    @staticmethod
    def get_all_services(db: Session) -> list[Service]:
        return db.query(Service).order_by(Service.created_at.asc()).all()

    @staticmethod
    def get_service_by_id(db: Session, service_id: str) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def create_service(db: Session, **service_data) -> Service:
        service = Service(**service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update_service(db: Session, service: Service, **updates) -> Service:
        """Update a service with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(service, key):
                setattr(service, key, value)

        db.commit()
        db.refresh(service)
        return service
