"""API test fixtures: app from create_app with mocked services and sessions."""

from datetime import timedelta
from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from app import create_app
from auth.session import SessionManager
from auth.types import Session
from core.activity import ActivityLogger
from core.services.conversion_service import ConversionService
from core.services.lead_service import LeadService
from core.services.product_service import ProductService
from core.services.reconciliation_service import ReconciliationService
from utils.timezone import now_utc
from utils.user_context import ADMIN_ROLE


# =============================================================================
# SERVICES DICT
# =============================================================================


@pytest.fixture
def services():
    return {
        "activity": Mock(spec=ActivityLogger),
        "lead": Mock(spec=LeadService),
        "product": Mock(spec=ProductService),
        "conversion": Mock(spec=ConversionService),
        "reconciliation": Mock(spec=ReconciliationService),
    }


# =============================================================================
# AUTH FIXTURES
# =============================================================================


def _session(user_id, role="sales"):
    now = now_utc()
    return Session(
        token="test-token",
        user_id=user_id,
        role=role,
        created_at=now,
        expires_at=now + timedelta(hours=24),
        last_activity_at=now,
    )


@pytest.fixture
def mock_session_manager(test_user_id):
    mock = Mock(spec=SessionManager)
    mock.validate_session.return_value = _session(test_user_id)
    return mock


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(mock_session_manager, services):
    """The production app wiring with mocked services."""
    return create_app(services, mock_session_manager)


@pytest.fixture
def client(app):
    """Client authenticated as a sales user."""
    c = TestClient(app, raise_server_exceptions=False)
    c.cookies.set("session_token", "test-token")
    return c


@pytest.fixture
def admin_client(app, mock_session_manager, test_admin_id):
    """Client authenticated as an admin."""
    mock_session_manager.validate_session.return_value = _session(test_admin_id, ADMIN_ROLE)
    c = TestClient(app, raise_server_exceptions=False)
    c.cookies.set("session_token", "test-token")
    return c


@pytest.fixture
def unauthed_client(app):
    """Unauthenticated test client (no session cookie)."""
    return TestClient(app, raise_server_exceptions=False)
