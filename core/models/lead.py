"""Lead domain models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, EmailStr, field_validator, model_validator


class LeadStatus(str, Enum):
    """Lead lifecycle status. Only QUALIFIED leads convert."""

    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    CONVERTED = "converted"
    LOST = "lost"
    ARCHIVED = "archived"


class LeadSource(str, Enum):
    """How the lead was acquired. Anything unrecognized is OTHER."""

    REFERRAL = "referral"
    LINKEDIN = "linkedin"
    WEBSITE = "website"
    GOOGLE_ADS = "google_ads"
    FACEBOOK_ADS = "facebook_ads"
    EMAIL_MARKETING = "email_marketing"
    COLD_OUTREACH = "cold_outreach"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str | None) -> "LeadSource":
        if not value:
            return cls.OTHER
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.OTHER


class LeadPriority(str, Enum):
    """Sales priority. Unrecognized values are treated as MEDIUM."""

    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def parse(cls, value: str | None) -> "LeadPriority":
        if not value:
            return cls.MEDIUM
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.MEDIUM


def _blank_to_none(value: str | None) -> str | None:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class LeadCreate(BaseModel):
    """Data required to create a lead."""

    first_name: str | None = Field(None, max_length=255)
    last_name: str | None = Field(None, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    company_name: str | None = Field(None, max_length=255)
    job_title: str | None = Field(None, max_length=255)
    # Free text: webhook intakes send lead-magnet ids and channel names here
    source: str = Field("website", max_length=255)
    priority: str = Field(LeadPriority.MEDIUM.value, max_length=50)
    value: Decimal | None = Field(None, ge=0)
    notes: str | None = Field(None, max_length=10000)
    assigned_to: UUID | None = None
    org_id: UUID | None = None

    @field_validator(
        "first_name", "last_name", "email", "phone", "company_name", "job_title", "notes",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)

    @model_validator(mode="after")
    def require_contact_point(self) -> "LeadCreate":
        """At least a name, email, phone or company is required."""
        if not any([self.first_name, self.last_name, self.email, self.phone, self.company_name]):
            raise ValueError("At least name, email, phone, or company is required")
        return self


class LeadUpdate(BaseModel):
    """
    Fields that can be changed on a lead. All optional.

    Only fields explicitly present in the request are applied, so sending
    `"phone": null` clears the phone. `score` is derived and not updatable.
    """

    first_name: str | None = Field(None, max_length=255)
    last_name: str | None = Field(None, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    company_name: str | None = Field(None, max_length=255)
    job_title: str | None = Field(None, max_length=255)
    source: str | None = Field(None, max_length=255)
    priority: str | None = Field(None, max_length=50)
    status: LeadStatus | None = None
    value: Decimal | None = Field(None, ge=0)
    notes: str | None = Field(None, max_length=10000)
    assigned_to: UUID | None = None

    @field_validator(
        "first_name", "last_name", "email", "phone", "company_name", "job_title", "notes",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)

    model_config = {"extra": "forbid"}


class Lead(BaseModel):
    """Full lead entity as stored."""

    id: UUID
    user_id: UUID
    org_id: UUID | None = None
    status: LeadStatus
    first_name: str | None
    last_name: str | None
    email: str | None
    phone: str | None
    company_name: str | None
    job_title: str | None
    source: str | None
    priority: str | None
    score: int = 0
    value: Decimal | None = None
    notes: str | None = None
    assigned_to: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def full_name(self) -> str:
        return " ".join(p for p in [self.first_name, self.last_name] if p)

    @property
    def display_name(self) -> str:
        """Human-readable name used in activity records."""
        return self.full_name or self.company_name or "Lead"

    @property
    def is_convertible(self) -> bool:
        return self.status == LeadStatus.QUALIFIED
