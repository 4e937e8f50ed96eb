"""Company domain models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class CompanyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    org_id: UUID | None = None


class Company(BaseModel):
    """Full company entity as stored."""

    id: UUID
    user_id: UUID
    org_id: UUID | None = None
    name: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
