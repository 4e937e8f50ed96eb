"""Pipeline configuration."""

from pydantic import BaseModel, Field, model_validator


class PipelineConfig(BaseModel):
    """
    Tunables for catalog matching and lead conversion.

    Percentages are on the 0-100 scale produced by rounding similarity * 100.
    """

    # Catalog matching
    match_floor_percent: int = Field(
        default=30,
        description="Matches at or below this percentage are never suggested",
        ge=0,
        le=100,
    )
    high_confidence_percent: int = Field(
        default=80,
        description="Above this a match is high confidence and the product auto-links",
        ge=0,
        le=100,
    )
    medium_confidence_percent: int = Field(
        default=60,
        description="Above this (and not high) a match is medium confidence",
        ge=0,
        le=100,
    )
    max_suggestions: int = Field(
        default=3,
        description="Candidate matches kept per product",
        ge=1,
        le=20,
    )
    stripe_page_size: int = Field(
        default=100,
        description="Page size when listing external products",
        ge=1,
        le=100,
    )

    # Lead conversion
    deal_initial_stage: str = Field(
        default="discovery",
        description="Pipeline stage newly converted deals start in",
    )
    deal_close_days: int = Field(
        default=30,
        description="Default close date offset for converted deals",
        ge=1,
        le=365,
    )

    @model_validator(mode="after")
    def validate_thresholds(self) -> "PipelineConfig":
        if not self.match_floor_percent <= self.medium_confidence_percent <= self.high_confidence_percent:
            raise ValueError("Thresholds must satisfy floor <= medium <= high")
        return self
