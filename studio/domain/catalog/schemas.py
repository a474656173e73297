"""Catalog domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import ServiceCategory


class ServiceCreate(BaseModel):
    """Schema for creating a bookable service"""

    name: str
    description: str = ""
    category: ServiceCategory = ServiceCategory.OTHER
    durationMinutes: int
    priceCents: int
    imageUrl: Optional[str] = None
    isActive: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("durationMinutes")
    @classmethod
    def validate_duration(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("durationMinutes must be a positive integer")
        return v

    @field_validator("priceCents")
    @classmethod
    def validate_price(cls, v: int) -> int:
        if v < 0:
            raise ValueError("priceCents must not be negative")
        return v


class ServiceUpdate(BaseModel):
    """Schema for administrative corrections to a service"""

    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[ServiceCategory] = None
    durationMinutes: Optional[int] = None
    priceCents: Optional[int] = None
    imageUrl: Optional[str] = None
    isActive: Optional[bool] = None

    @field_validator("durationMinutes")
    @classmethod
    def validate_duration(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("durationMinutes must be a positive integer")
        return v

    @field_validator("priceCents")
    @classmethod
    def validate_price(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("priceCents must not be negative")
        return v


class ServiceResponse(BaseModel):
    """Schema for service response"""

    id: str
    name: str
    description: str
    category: str
    durationMinutes: int
    priceCents: int
    imageUrl: Optional[str] = None
    isActive: bool
