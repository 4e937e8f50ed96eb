"""Tests for SessionManager - session token lifecycle."""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from auth.session import SessionManager
from auth.config import AuthConfig
from auth.exceptions import SessionExpiredError
from clients.valkey_client import ValkeyClient
from utils.timezone import now_utc
from utils.user_context import ADMIN_ROLE, DEFAULT_ROLE


@pytest.fixture
def store():
    """Backing dict for the Valkey double."""
    return {}


@pytest.fixture
def valkey(store):
    """ValkeyClient double backed by a dict."""
    client = Mock(spec=ValkeyClient)
    client.set_json.side_effect = lambda key, value, expire_seconds=None: store.__setitem__(key, value)
    client.get_json.side_effect = lambda key: store.get(key)
    client.delete.side_effect = lambda key: store.pop(key, None) is not None
    return client


@pytest.fixture
def config():
    """Test config with short session for testing."""
    return AuthConfig(session_expiry_hours=1)


@pytest.fixture
def session_manager(valkey, config):
    return SessionManager(valkey, config)


class TestCreateSession:
    """Test session creation."""

    def test_returns_session_with_token(self, session_manager, test_user_id):
        """Created session has non-empty token."""
        session = session_manager.create_session(test_user_id)

        assert session.token
        assert len(session.token) > 20
        assert session.role == DEFAULT_ROLE

    def test_stored_with_ttl(self, session_manager, valkey, test_user_id):
        session = session_manager.create_session(test_user_id, ADMIN_ROLE)

        key, value = valkey.set_json.call_args.args
        assert key == f"session:{session.token}"
        assert value["role"] == ADMIN_ROLE
        assert valkey.set_json.call_args.kwargs["expire_seconds"] == 3600

    def test_tokens_are_unique(self, session_manager, test_user_id):
        assert session_manager.create_session(test_user_id).token != \
            session_manager.create_session(test_user_id).token


class TestValidateSession:
    """Test session validation."""

    def test_valid_session_returns_session(self, session_manager, test_user_id):
        created = session_manager.create_session(test_user_id, ADMIN_ROLE)

        session = session_manager.validate_session(created.token)

        assert session.user_id == test_user_id
        assert session.role == ADMIN_ROLE

    def test_unknown_token_raises(self, session_manager):
        with pytest.raises(SessionExpiredError):
            session_manager.validate_session("nope")

    def test_expired_session_is_deleted(self, session_manager, store, test_user_id):
        created = session_manager.create_session(test_user_id)
        data = store[f"session:{created.token}"]
        data["expires_at"] = (now_utc() - timedelta(minutes=1)).isoformat()

        with pytest.raises(SessionExpiredError, match="Session expired"):
            session_manager.validate_session(created.token)

        assert f"session:{created.token}" not in store

    def test_missing_role_defaults_to_sales(self, session_manager, store, test_user_id):
        created = session_manager.create_session(test_user_id)
        del store[f"session:{created.token}"]["role"]

        assert session_manager.validate_session(created.token).role == DEFAULT_ROLE

    def test_activity_extends_session(self, session_manager, test_user_id):
        created = session_manager.create_session(test_user_id)

        session = session_manager.validate_session(created.token)

        assert session.expires_at >= created.expires_at

    def test_no_extension_when_disabled(self, valkey, test_user_id):
        manager = SessionManager(valkey, AuthConfig(session_expiry_hours=1, session_extend_on_activity=False))
        created = manager.create_session(test_user_id)
        valkey.set_json.reset_mock()

        manager.validate_session(created.token)

        valkey.set_json.assert_not_called()


class TestRevokeSession:
    def test_revoked_session_is_invalid(self, session_manager, test_user_id):
        created = session_manager.create_session(test_user_id)

        session_manager.revoke_session(created.token)

        with pytest.raises(SessionExpiredError):
            session_manager.validate_session(created.token)

    def test_revoke_unknown_token_is_safe(self, session_manager):
        session_manager.revoke_session("nope")
