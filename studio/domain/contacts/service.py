"""Contact service - Contact form inbox"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...database import with_store_retry
from ...exceptions import NotFoundError
from ...models import Contact, ContactStatus
from ..customers.service import CustomerService
from .repository import ContactRepository
from .schemas import ContactCreate

logger = logging.getLogger(__name__)


class ContactService:
    """Service layer for contact inquiries"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ContactRepository()

    @with_store_retry
    def _store_contact(self, data: ContactCreate) -> Contact:
        return self.repo.create_contact(
            self.db,
            first_name=data.firstName,
            last_name=data.lastName,
            email=data.email,
            phone=data.phone,
            inquiry_type=data.inquiryType,
            message=data.message,
            status=ContactStatus.NEW.value,
        )

    def submit_contact(self, data: ContactCreate) -> Contact:
        """Store the inquiry and make sure the sender exists as a customer"""
        contact = self._store_contact(data)
        CustomerService(self.db).find_or_create_customer(data.firstName, data.lastName, data.email, data.phone)
        logger.info(f"New {contact.inquiry_type} inquiry received: {contact.id}")
        return contact

    @with_store_retry
    def list_contacts(self, status: Optional[str] = None) -> list[Contact]:
        return self.repo.get_contacts(self.db, status)

    @with_store_retry
    def update_status(self, contact_id: str, status: str) -> Contact:
        contact = self.repo.get_contact_by_id(self.db, contact_id)
        if not contact:
            raise NotFoundError("Contact not found")
        return self.repo.update_status(self.db, contact, status)
