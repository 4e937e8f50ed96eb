"""
Lead scoring.

Additive point system over source quality, contact completeness, job title
seniority and priority, clamped to 100. Pure and total: unknown or missing
inputs fall back to default points rather than raising.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from core.models.lead import LeadPriority, LeadSource

MAX_SCORE = 100

# Changing any of these on a lead triggers a re-score
SCORING_FIELDS = frozenset({"source", "job_title", "priority", "company_name", "email", "phone"})

_SOURCE_POINTS = {
    LeadSource.REFERRAL: 25,
    LeadSource.LINKEDIN: 20,
    LeadSource.WEBSITE: 15,
    LeadSource.GOOGLE_ADS: 10,
    LeadSource.FACEBOOK_ADS: 8,
    LeadSource.EMAIL_MARKETING: 5,
    LeadSource.COLD_OUTREACH: 3,
    LeadSource.OTHER: 5,
}

_PRIORITY_POINTS = {
    LeadPriority.URGENT: 20,
    LeadPriority.HIGH: 15,
    LeadPriority.MEDIUM: 10,
    LeadPriority.LOW: 5,
}

# Checked in order, first matching tier wins
_TITLE_TIERS = (
    (("ceo", "founder", "owner", "president"), 25),
    (("director", "manager", "head of"), 15),
    (("senior", "lead"), 10),
    (("coordinator", "assistant"), 5),
)
_OTHER_TITLE_POINTS = 8
_CONTACT_FIELD_POINTS = 10


def _present(value: str | None) -> bool:
    return bool(value and value.strip())


@dataclass(frozen=True)
class LeadAttributes:
    """The subset of a lead the scorer reads."""

    source: str | None = None
    job_title: str | None = None
    priority: str | None = None
    company_name: str | None = None
    email: str | None = None
    phone: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LeadAttributes":
        """Build from a row, model dump or merged update dict. Extra keys are ignored."""
        values = {}
        for field in SCORING_FIELDS:
            value = data.get(field)
            # Enums and other non-string values score by their string form
            if value is not None and not isinstance(value, str):
                value = getattr(value, "value", str(value))
            values[field] = value
        return cls(**values)


def source_points(source: str | None) -> int:
    return _SOURCE_POINTS[LeadSource.parse(source)]


def title_points(job_title: str | None) -> int:
    if not _present(job_title):
        return 0
    title = job_title.lower()
    for keywords, points in _TITLE_TIERS:
        if any(keyword in title for keyword in keywords):
            return points
    return _OTHER_TITLE_POINTS


def priority_points(priority: str | None) -> int:
    return _PRIORITY_POINTS[LeadPriority.parse(priority)]


def score_lead(attrs: LeadAttributes) -> int:
    """
    Score a lead in [0, 100].

    Args:
        attrs: Scoring-relevant lead attributes

    Returns:
        Integer score; same attributes always give the same score.
    """
    score = source_points(attrs.source)

    for value in (attrs.company_name, attrs.email, attrs.phone):
        if _present(value):
            score += _CONTACT_FIELD_POINTS

    score += title_points(attrs.job_title)
    score += priority_points(attrs.priority)

    return min(score, MAX_SCORE)


def needs_rescore(changed_fields: Iterable[str]) -> bool:
    """True if any of the changed fields feeds the score."""
    return not SCORING_FIELDS.isdisjoint(changed_fields)
