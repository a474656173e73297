"""Contact router - Public contact form and admin inbox"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import Contact, ContactStatus
from ...rate_limiter import create_rate_limiter
from .schemas import ContactCreate, ContactResponse, ContactStatusUpdate
from .service import ContactService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contacts", tags=["Contacts"])
admin_router = APIRouter(
    prefix="/admin/contacts", tags=["Admin Contacts"], dependencies=[Depends(require_admin)]
)

contact_rate_limit = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="contacts")


def get_contact_service(db: Session = Depends(get_db)) -> ContactService:
    """Dependency injection for ContactService"""
    return ContactService(db)


def to_contact_response(contact: Contact) -> ContactResponse:
    return ContactResponse(
        id=contact.id,
        firstName=contact.first_name,
        lastName=contact.last_name,
        email=contact.email,
        phone=contact.phone,
        inquiryType=contact.inquiry_type,
        message=contact.message,
        status=contact.status,
        createdAt=contact.created_at,
    )


@router.post("", response_model=ContactResponse, status_code=201)
def submit_contact(
    data: ContactCreate,
    service: ContactService = Depends(get_contact_service),
    _: None = Depends(contact_rate_limit),
):
    return to_contact_response(service.submit_contact(data))


@admin_router.get("", response_model=list[ContactResponse])
def list_contacts(
    status: Optional[str] = Query(None),
    service: ContactService = Depends(get_contact_service),
):
    try:
        status_value = ContactStatus(status).value if status else None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return [to_contact_response(c) for c in service.list_contacts(status_value)]


@admin_router.patch("/{contact_id}", response_model=ContactResponse)
def update_contact_status(
    contact_id: str,
    data: ContactStatusUpdate,
    service: ContactService = Depends(get_contact_service),
):
    return to_contact_response(service.update_status(contact_id, data.status.value))
