"""Catalog reconciliation models.

Request and response shapes are camelCase on the wire. Fields are populated
by name internally and dumped with `by_alias=True`.
"""

from enum import Enum
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field
from pydantic.alias_generators import to_camel

_CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


class MatchConfidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Recommendation(str, Enum):
    """What the reviewer is advised to do with an unlinked product."""

    AUTO_LINK = "auto-link"
    REVIEW_SUGGESTED = "review-suggested"
    CREATE_NEW = "create-new"


class LinkAction(str, Enum):
    LINK = "link"
    CREATE = "create"
    SKIP = "skip"

    @classmethod
    def parse(cls, value: str | None) -> "LinkAction | None":
        """Known action, or None for anything unrecognized."""
        try:
            return cls(value)
        except ValueError:
            return None


# Suggest

class ProductSummary(BaseModel):
    id: UUID
    name: str
    description: str | None = None
    price_count: int = 0

    model_config = _CAMEL


class SuggestedMatch(BaseModel):
    """One ranked external candidate for an internal product."""

    external_product_id: str
    name: str
    description: str | None = None
    similarity: int = Field(..., ge=0, le=100)
    confidence: MatchConfidence

    model_config = _CAMEL


class ProductSuggestion(BaseModel):
    product: ProductSummary
    suggested_matches: list[SuggestedMatch] = Field(default_factory=list)
    recommendation: Recommendation

    model_config = _CAMEL


class SuggestionStats(BaseModel):
    total_unlinked_products: int = 0
    total_stripe_products: int = 0
    high_confidence_matches: int = 0
    suggested_matches: int = 0
    create_new_recommended: int = 0

    model_config = _CAMEL


class SuggestionReport(BaseModel):
    """Read-only output of the matcher. Never persisted."""

    suggestions: list[ProductSuggestion] = Field(default_factory=list)
    stats: SuggestionStats = Field(default_factory=SuggestionStats)

    model_config = _CAMEL


# Apply

class ProductMapping(BaseModel):
    """
    One reviewer decision.

    `action` stays a plain string so an unknown action fails only its own
    item instead of rejecting the whole batch.
    """

    product_id: str = Field(..., validation_alias=AliasChoices("productId", "product_id"))
    action: str
    stripe_product_id: str | None = Field(
        None,
        validation_alias=AliasChoices("stripeProductId", "externalProductId", "stripe_product_id"),
    )

    model_config = _CAMEL


class ApplyRequest(BaseModel):
    mappings: list[ProductMapping]


class ItemResult(BaseModel):
    """Outcome for one mapping. Dump with exclude_none for the wire."""

    product_id: str
    success: bool
    action: str | None = None
    stripe_product_id: str | None = None
    prices_linked: int | None = None
    total_prices: int | None = None
    error: str | None = None
    message: str | None = None

    model_config = _CAMEL

    @classmethod
    def failure(cls, product_id: str, error: str) -> "ItemResult":
        return cls(product_id=product_id, success=False, error=error)


class ApplySummary(BaseModel):
    total: int
    successful: int
    failed: int
    message: str


class ApplyReport(BaseModel):
    success: bool = True
    results: list[ItemResult] = Field(default_factory=list)
    summary: ApplySummary

    @classmethod
    def from_results(cls, results: list[ItemResult]) -> "ApplyReport":
        successful = sum(1 for r in results if r.success)
        total = len(results)
        return cls(
            results=results,
            summary=ApplySummary(
                total=total,
                successful=successful,
                failed=total - successful,
                message=f"Bulk linking completed: {successful}/{total} products processed successfully",
            ),
        )


# Single-product link / unlink

class LinkProductRequest(BaseModel):
    """Link one product. Without an external id a new external product is created."""

    product_id: UUID = Field(..., validation_alias=AliasChoices("productId", "product_id"))
    stripe_product_id: str | None = Field(
        None,
        validation_alias=AliasChoices("stripeProductId", "externalProductId", "stripe_product_id"),
    )


class UnlinkProductRequest(BaseModel):
    product_id: UUID = Field(..., validation_alias=AliasChoices("productId", "product_id"))


class PriceLinkResult(BaseModel):
    price_id: UUID
    success: bool
    stripe_price_id: str | None = None
    error: str | None = None

    model_config = _CAMEL


class LinkResult(BaseModel):
    """Result of linking one product and mirroring its unlinked prices."""

    product_id: UUID
    stripe_product_id: str
    price_results: list[PriceLinkResult] = Field(default_factory=list)

    model_config = _CAMEL

    @property
    def prices_linked(self) -> int:
        return sum(1 for r in self.price_results if r.success)

    @property
    def total_prices(self) -> int:
        return len(self.price_results)
