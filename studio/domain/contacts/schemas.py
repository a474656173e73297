"""Contact domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import ContactStatus
from ...shared.validators import normalize_email, validate_phone
from ...utils.sanitization import validate_and_sanitize_input


class ContactCreate(BaseModel):
    """Public contact form submission"""

    firstName: str
    lastName: str
    email: str
    phone: Optional[str] = None
    inquiryType: str = "general"
    message: str

    @field_validator("firstName", "lastName", "inquiryType")
    @classmethod
    def validate_required_text(cls, v: str) -> str:
        v = validate_and_sanitize_input(v, max_length=120)
        if not v:
            raise ValueError("Field is required")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_phone(v)
        return None

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        v = validate_and_sanitize_input(v, max_length=5000)
        if not v:
            raise ValueError("Message is required")
        return v


class ContactStatusUpdate(BaseModel):
    status: ContactStatus


class ContactResponse(BaseModel):
    id: str
    firstName: str
    lastName: str
    email: str
    phone: Optional[str] = None
    inquiryType: str
    message: str
    status: str
    createdAt: Optional[datetime] = None
