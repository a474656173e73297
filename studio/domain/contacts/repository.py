"""Contact repository - Database operations for contact inquiries"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Contact


class ContactRepository:
    """Repository for contact inquiry database operations"""

    @staticmethod
    def get_contact_by_id(db: Session, contact_id: str) -> Optional[Contact]:
        return db.query(Contact).filter(Contact.id == contact_id).first()

    @staticmethod
    def get_contacts(db: Session, status: Optional[str] = None) -> list[Contact]:
        query = db.query(Contact)
        if status:
            query = query.filter(Contact.status == status)
        return query.order_by(Contact.created_at.desc()).all()

    @staticmethod
    def create_contact(db: Session, **contact_data) -> Contact:
        contact = Contact(**contact_data)
        db.add(contact)
        db.commit()
        db.refresh(contact)
        return contact

    @staticmethod
    def update_status(db: Session, contact: Contact, status: str) -> Contact:
        contact.status = status
        db.commit()
        db.refresh(contact)
        return contact
