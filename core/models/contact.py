"""Contact domain models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


NAME_MAX_LENGTH = 255


class ContactCreate(BaseModel):
    """Data required to create a contact. Name falls back to the email."""

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    email: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    company_id: UUID | None = None
    org_id: UUID | None = None


class Contact(BaseModel):
    """Full contact entity as stored."""

    id: UUID
    user_id: UUID
    org_id: UUID | None = None
    name: str
    email: str | None = None
    phone: str | None = None
    company_id: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
