"""Deal domain models."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class DealStage(str, Enum):
    """Pipeline stage. Converted leads start in DISCOVERY."""

    DISCOVERY = "discovery"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    CLOSED_WON = "closed_won"
    CLOSED_LOST = "closed_lost"


class DealPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


TITLE_MAX_LENGTH = 500


class DealCreate(BaseModel):
    """Data required to create a deal."""

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = None
    stage: DealStage = DealStage.DISCOVERY
    value: Decimal = Field(Decimal("0"), ge=0)
    priority: DealPriority = DealPriority.MEDIUM
    channel: str | None = Field(None, max_length=255)
    close_date: date | None = None
    expected_close_date: date | None = None
    company_id: UUID | None = None
    contact_id: UUID | None = None
    lead_id: UUID | None = None
    assigned_to: UUID | None = None
    org_id: UUID | None = None


class Deal(BaseModel):
    """Full deal entity as stored."""

    id: UUID
    user_id: UUID
    org_id: UUID | None = None
    title: str
    description: str | None = None
    stage: DealStage
    value: Decimal
    priority: DealPriority
    channel: str | None = None
    close_date: date | None = None
    expected_close_date: date | None = None
    company_id: UUID | None = None
    contact_id: UUID | None = None
    lead_id: UUID | None = None
    assigned_to: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
