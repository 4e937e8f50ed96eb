"""Core domain models."""

from core.models.lead import Lead, LeadCreate, LeadUpdate, LeadStatus, LeadSource, LeadPriority
from core.models.deal import Deal, DealCreate, DealStage, DealPriority
from core.models.company import Company, CompanyCreate
from core.models.contact import Contact, ContactCreate
from core.models.product import (
    Product, Price, PriceCreate, PriceType, RecurringInterval, LinkStatus, MINIMUM_AMOUNTS,
)
from core.models.reconciliation import (
    MatchConfidence, Recommendation, LinkAction,
    ProductSummary, SuggestedMatch, ProductSuggestion, SuggestionStats, SuggestionReport,
    ProductMapping, ApplyRequest, ItemResult, ApplySummary, ApplyReport,
    LinkProductRequest, UnlinkProductRequest, PriceLinkResult, LinkResult,
)

__all__ = [
    # Lead
    "Lead", "LeadCreate", "LeadUpdate", "LeadStatus", "LeadSource", "LeadPriority",
    # Deal
    "Deal", "DealCreate", "DealStage", "DealPriority",
    # Company / Contact
    "Company", "CompanyCreate", "Contact", "ContactCreate",
    # Product
    "Product", "Price", "PriceCreate", "PriceType", "RecurringInterval", "LinkStatus", "MINIMUM_AMOUNTS",
    # Reconciliation
    "MatchConfidence", "Recommendation", "LinkAction",
    "ProductSummary", "SuggestedMatch", "ProductSuggestion", "SuggestionStats", "SuggestionReport",
    "ProductMapping", "ApplyRequest", "ItemResult", "ApplySummary", "ApplyReport",
    "LinkProductRequest", "UnlinkProductRequest", "PriceLinkResult", "LinkResult",
]
