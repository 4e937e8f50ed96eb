"""Product catalog domain models.

All amounts are integer minor units (cents for usd). $10.00 = 1000.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator


class PriceType(str, Enum):
    """How a price is charged."""

    ONE_TIME = "one_time"
    RECURRING = "recurring"


class RecurringInterval(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class LinkStatus(str, Enum):
    """Whether the record is mirrored in the external payment catalog."""

    UNLINKED = "unlinked"
    LINKED = "linked"


# Supported currencies and their smallest chargeable amount
MINIMUM_AMOUNTS = {
    "usd": 50,
    "eur": 50,
    "gbp": 30,
    "thb": 2000,
}


class PriceCreate(BaseModel):
    """Data required to add a price to a product."""

    unit_amount: int = Field(..., ge=0)
    currency: str = Field("usd", min_length=3, max_length=3)
    type: PriceType = PriceType.ONE_TIME
    interval: RecurringInterval | None = None
    interval_count: int | None = Field(None, ge=1, le=52)
    active: bool = True

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @model_validator(mode="after")
    def validate_amount(self) -> "PriceCreate":
        """Currency must be supported and the amount above its minimum."""
        minimum = MINIMUM_AMOUNTS.get(self.currency)
        if minimum is None:
            supported = ", ".join(c.upper() for c in MINIMUM_AMOUNTS)
            raise ValueError(f"Unsupported currency '{self.currency}'. Supported: {supported}")
        if self.unit_amount < minimum:
            raise ValueError(
                f"Minimum amount for {self.currency.upper()} is {minimum} (smallest currency unit)"
            )
        return self

    @property
    def recurring_interval(self) -> str | None:
        if self.type != PriceType.RECURRING:
            return None
        return (self.interval or RecurringInterval.MONTH).value

    @property
    def recurring_interval_count(self) -> int | None:
        if self.type != PriceType.RECURRING:
            return None
        return self.interval_count or 1


class Price(BaseModel):
    """Full price entity as stored."""

    id: UUID
    product_id: UUID
    unit_amount: int
    currency: str
    type: PriceType = PriceType.ONE_TIME
    interval: str | None = None
    interval_count: int | None = None
    active: bool = True
    stripe_price_id: str | None = None
    stripe_linked: bool = False
    stripe_link_status: LinkStatus = LinkStatus.UNLINKED
    last_stripe_sync: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def is_recurring(self) -> bool:
        return self.type == PriceType.RECURRING


class Product(BaseModel):
    """Full product entity, with its prices when loaded together."""

    id: UUID
    user_id: UUID | None = None
    name: str
    description: str | None = None
    active: bool = True
    stripe_product_id: str | None = None
    stripe_linked: bool = False
    stripe_link_status: LinkStatus = LinkStatus.UNLINKED
    last_stripe_sync: datetime | None = None
    created_at: datetime
    updated_at: datetime
    prices: list[Price] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @property
    def active_prices(self) -> list[Price]:
        return [p for p in self.prices if p.active]

    @property
    def unlinked_prices(self) -> list[Price]:
        return [p for p in self.prices if not p.stripe_linked]
