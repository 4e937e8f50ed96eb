"""
Catalog matching.

Ranks external catalog products against each unlinked internal product by
name similarity and classifies each product into a recommendation. Pure:
reads its inputs and returns a report, nothing is persisted.
"""

from collections.abc import Sequence

from clients.stripe_client import StripeProduct
from core.config import PipelineConfig
from core.models import (
    MatchConfidence,
    Product,
    ProductSuggestion,
    ProductSummary,
    Recommendation,
    SuggestedMatch,
    SuggestionReport,
    SuggestionStats,
)
from core.similarity import similarity, to_percent


def confidence_for(percent: int, config: PipelineConfig) -> MatchConfidence:
    if percent > config.high_confidence_percent:
        return MatchConfidence.HIGH
    if percent > config.medium_confidence_percent:
        return MatchConfidence.MEDIUM
    return MatchConfidence.LOW


def rank_matches(
    name: str,
    external_products: Sequence[StripeProduct],
    config: PipelineConfig,
) -> list[SuggestedMatch]:
    """
    Top candidates for one product name, best first.

    Candidates at or below the floor are dropped. Ties keep the external
    catalog's order.
    """
    scored = []
    for external in external_products:
        percent = to_percent(similarity(name, external.name))
        if percent > config.match_floor_percent:
            scored.append((percent, external))

    scored.sort(key=lambda pair: pair[0], reverse=True)

    return [
        SuggestedMatch(
            external_product_id=external.id,
            name=external.name,
            description=external.description,
            similarity=percent,
            confidence=confidence_for(percent, config),
        )
        for percent, external in scored[:config.max_suggestions]
    ]


def recommend(matches: Sequence[SuggestedMatch], config: PipelineConfig) -> Recommendation:
    if not matches:
        return Recommendation.CREATE_NEW
    if matches[0].similarity > config.high_confidence_percent:
        return Recommendation.AUTO_LINK
    return Recommendation.REVIEW_SUGGESTED


def suggest_matches(
    products: Sequence[Product],
    external_products: Sequence[StripeProduct],
    config: PipelineConfig | None = None,
) -> SuggestionReport:
    """
    Build link suggestions for every unlinked product.

    Args:
        products: Internal products not yet linked, with prices loaded
        external_products: Active products in the external catalog
        config: Thresholds; defaults apply when omitted

    Returns:
        SuggestionReport with one suggestion per product plus bucket counts.
    """
    config = config or PipelineConfig()

    suggestions = []
    for product in products:
        matches = rank_matches(product.name, external_products, config)
        suggestions.append(
            ProductSuggestion(
                product=ProductSummary(
                    id=product.id,
                    name=product.name,
                    description=product.description,
                    price_count=len(product.prices),
                ),
                suggested_matches=matches,
                recommendation=recommend(matches, config),
            )
        )

    def count(recommendation: Recommendation) -> int:
        return sum(1 for s in suggestions if s.recommendation == recommendation)

    return SuggestionReport(
        suggestions=suggestions,
        stats=SuggestionStats(
            total_unlinked_products=len(products),
            total_stripe_products=len(external_products),
            high_confidence_matches=count(Recommendation.AUTO_LINK),
            suggested_matches=count(Recommendation.REVIEW_SUGGESTED),
            create_new_recommended=count(Recommendation.CREATE_NEW),
        ),
    )
