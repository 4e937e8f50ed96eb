"""Row builders shared by the service tests."""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

TEST_USER_ID = UUID("00000000-0000-0000-0000-000000000001")

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def lead_row(**overrides) -> dict:
    row = {
        "id": uuid4(),
        "user_id": TEST_USER_ID,
        "org_id": None,
        "status": "new",
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@acme.com",
        "phone": None,
        "company_name": "Acme",
        "job_title": "CEO",
        "source": "referral",
        "priority": "high",
        "score": 0,
        "value": Decimal("5000"),
        "notes": None,
        "assigned_to": None,
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


def product_row(**overrides) -> dict:
    row = {
        "id": uuid4(),
        "user_id": TEST_USER_ID,
        "name": "Pro Plan",
        "description": "Monthly subscription",
        "active": True,
        "stripe_product_id": None,
        "stripe_linked": False,
        "stripe_link_status": "unlinked",
        "last_stripe_sync": None,
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


def price_row(product_id, **overrides) -> dict:
    row = {
        "id": uuid4(),
        "product_id": product_id,
        "unit_amount": 2900,
        "currency": "usd",
        "type": "recurring",
        "interval": "month",
        "interval_count": 1,
        "active": True,
        "stripe_price_id": None,
        "stripe_linked": False,
        "stripe_link_status": "unlinked",
        "last_stripe_sync": None,
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


@pytest.fixture
def activity():
    """ActivityLogger double."""
    from unittest.mock import Mock
    from core.activity import ActivityLogger

    return Mock(spec=ActivityLogger)


@pytest.fixture
def make_lead():
    """Builder for leads table rows."""
    return lead_row


@pytest.fixture
def make_product():
    """Builder for products table rows."""
    return product_row


@pytest.fixture
def make_price():
    """Builder for product_prices table rows."""
    return price_row
