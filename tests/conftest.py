"""Shared test fixtures for CRM test suite."""

import pytest
from uuid import UUID
from pathlib import Path
from unittest.mock import Mock

from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from clients.postgres_client import PostgresClient
from utils.user_context import ADMIN_ROLE, user_context, clear_current_user


# =============================================================================
# TEST USER CONSTANTS
# =============================================================================

# Primary test user - acts as a sales rep
TEST_USER_ID = UUID("00000000-0000-0000-0000-000000000001")

# Admin user - catalog reconciliation requires the admin role
TEST_ADMIN_ID = UUID("00000000-0000-0000-0000-000000000002")


# =============================================================================
# USER CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_user_context():
    """Ensure clean user context before and after each test."""
    clear_current_user()
    yield
    clear_current_user()


@pytest.fixture
def test_user_id() -> UUID:
    """The primary test user's ID."""
    return TEST_USER_ID


@pytest.fixture
def test_admin_id() -> UUID:
    """The admin test user's ID."""
    return TEST_ADMIN_ID


@pytest.fixture
def as_test_user(test_user_id):
    """Run the test as the primary (sales) test user."""
    with user_context(test_user_id):
        yield test_user_id


@pytest.fixture
def as_admin(test_admin_id):
    """Run the test as the admin test user."""
    with user_context(test_admin_id, ADMIN_ROLE):
        yield test_admin_id


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def db():
    """PostgresClient double. Configure return values per test."""
    client = Mock(spec=PostgresClient)
    client.execute.return_value = []
    client.execute_single.return_value = None
    client.execute_returning.return_value = []
    return client
