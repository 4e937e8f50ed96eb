"""
Lead-to-deal conversion.

Only the deal insert is authoritative. Company and contact upserts, the lead
status change and activity records are degraded steps: a failure is logged
and reported in the result, and conversion still succeeds.
"""

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from core.activity import ActivityLogger
from core.config import PipelineConfig
from core.exceptions import InvalidStateError, NotFoundError, PersistenceError
from core.models import (
    CompanyCreate, ContactCreate, Deal, DealCreate, DealPriority, DealStage, Lead, LeadPriority,
)
from core.models.contact import NAME_MAX_LENGTH
from core.models.deal import TITLE_MAX_LENGTH
from core.outcomes import StepOutcome, attempt, skipped
from core.services.company_service import CompanyService
from core.services.contact_service import ContactService
from core.services.deal_service import DealService
from core.services.lead_service import LeadService
from utils.user_context import get_current_user_id
from utils.timezone import days_from_today

logger = logging.getLogger(__name__)

LEAD_MAGNET_CHANNEL = "Lead Magnet"
UNKNOWN_CHANNEL = "Unknown"

# Lead magnet form ids look like "ebook-sales-guide-3"
_LEAD_MAGNET_ID = re.compile(r"^\w+-\w+-\w+-\d+$")

_CHANNELS = {
    "lead website": "Website",
    "website": "Website",
    "organic search": "Organic Search",
    "social media": "Social Media",
    "email marketing": "Email Marketing",
    "cold call": "Cold Call",
    "referral": "Referral",
    "linkedin": "LinkedIn",
    "advertising": "Advertising",
    "partner": "Partner",
}

_DEAL_PRIORITIES = {
    LeadPriority.URGENT: DealPriority.HIGH,
    LeadPriority.HIGH: DealPriority.HIGH,
    LeadPriority.MEDIUM: DealPriority.MEDIUM,
    LeadPriority.LOW: DealPriority.LOW,
}


def channel_for_source(source: str | None) -> str:
    """
    Display name of the acquisition channel for a lead source.

    Lead magnet form ids map to "Lead Magnet", known sources to their display
    name (case-insensitive), anything else passes through unchanged.
    """
    if not source:
        return UNKNOWN_CHANNEL
    if "deemmi-lead-form" in source or "-copy-" in source or _LEAD_MAGNET_ID.match(source):
        return LEAD_MAGNET_CHANNEL
    return _CHANNELS.get(source.lower(), source)


def map_deal_priority(priority: str | None) -> DealPriority:
    """urgent and high become high; unknown values become medium."""
    return _DEAL_PRIORITIES[LeadPriority.parse(priority)]


def deal_title(company_name: str | None, contact_name: str | None) -> str:
    """Company and contact name, cut to the deal title column."""
    if contact_name:
        title = f"{company_name or 'Deal'} - {contact_name}"
    else:
        title = company_name or "Deal"
    return title[:TITLE_MAX_LENGTH]


def contact_name_for(lead: Lead) -> str | None:
    """First and last name, falling back to the email."""
    name = lead.full_name or lead.email
    return name[:NAME_MAX_LENGTH] if name else name


@dataclass
class ConversionResult:
    """The created deal and the outcome of every side step."""

    deal: Deal
    lead_id: UUID
    steps: list[StepOutcome] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return any(step.degraded for step in self.steps)

    def step(self, name: str) -> StepOutcome | None:
        return next((s for s in self.steps if s.step == name), None)


class ConversionService:
    """Converts qualified leads into deals."""

    def __init__(
        self,
        leads: LeadService,
        companies: CompanyService,
        contacts: ContactService,
        deals: DealService,
        activity: ActivityLogger,
        config: PipelineConfig | None = None
    ):
        self.leads = leads
        self.companies = companies
        self.contacts = contacts
        self.deals = deals
        self.activity = activity
        self.config = config or PipelineConfig()

    def convert(self, lead_id: UUID) -> ConversionResult:
        """
        Convert a qualified lead into a deal.

        Args:
            lead_id: Lead UUID

        Returns:
            ConversionResult with the created deal

        Raises:
            NotFoundError: If the lead doesn't exist or isn't visible
            InvalidStateError: If the lead's status is not qualified
            PersistenceError: If the deal could not be written
        """
        lead = self.leads.get_by_id(lead_id)
        if lead is None:
            raise NotFoundError("lead", lead_id)
        if not lead.is_convertible:
            raise InvalidStateError(
                f"Only qualified leads can be converted to deals (lead is {lead.status.value})"
            )

        actor_id = get_current_user_id()
        steps = []

        if lead.company_name:
            company_step = attempt(
                "company",
                lambda: self.companies.find_or_create(
                    CompanyCreate(name=lead.company_name, org_id=lead.org_id)
                )
            )
        else:
            company_step = skipped("company")
        steps.append(company_step)
        company_id = company_step.value.id if company_step.value else None

        contact_name = contact_name_for(lead)
        if contact_name:
            contact_step = attempt(
                "contact",
                lambda: self.contacts.find_or_create(
                    ContactCreate(
                        name=contact_name,
                        email=lead.email,
                        phone=lead.phone,
                        company_id=company_id,
                        org_id=lead.org_id,
                    )
                )
            )
        else:
            contact_step = skipped("contact")
        steps.append(contact_step)
        contact_id = contact_step.value.id if contact_step.value else None

        close_date = days_from_today(self.config.deal_close_days)
        data = DealCreate(
            title=deal_title(lead.company_name, lead.full_name),
            description=(
                f"Converted from lead. Original notes: {lead.notes}"
                if lead.notes else "Converted from qualified lead."
            ),
            stage=DealStage(self.config.deal_initial_stage),
            value=lead.value or Decimal("0"),
            priority=map_deal_priority(lead.priority),
            channel=channel_for_source(lead.source),
            close_date=close_date,
            expected_close_date=close_date,
            company_id=company_id,
            contact_id=contact_id,
            lead_id=lead.id,
            assigned_to=lead.assigned_to or actor_id,
            org_id=lead.org_id,
        )

        try:
            deal = self.deals.create(data)
        except Exception as e:
            logger.exception(f"Deal insert failed for lead {lead_id}")
            raise PersistenceError("Failed to create deal from lead") from e

        steps.append(attempt("lead_status", lambda: self.leads.mark_converted(lead.id)))
        steps.append(attempt(
            "activity_lead_converted",
            lambda: self.activity.lead_converted(
                lead.id, lead.display_name, deal.id, deal.title, str(deal.value),
                org_id=lead.org_id
            )
        ))
        steps.append(attempt(
            "activity_deal_created",
            lambda: self.activity.deal_created(
                deal.id, deal.title,
                {
                    "source": "lead_conversion",
                    "lead_id": str(lead.id),
                    "lead_name": lead.display_name,
                    "channel": deal.channel,
                    "value": str(deal.value),
                },
                org_id=lead.org_id
            )
        ))

        logger.info(f"Lead {lead_id} converted to deal {deal.id}")
        return ConversionResult(deal=deal, lead_id=lead.id, steps=steps)
