"""Tests for PostgresClient - connection pool and RLS context stamping."""

import pytest
from enum import Enum
from unittest.mock import MagicMock, patch
from uuid import UUID

from clients.postgres_client import PostgresClient
from utils.user_context import ADMIN_ROLE, user_context

TEST_USER_ID = UUID("00000000-0000-0000-0000-000000000001")


class Color(str, Enum):
    RED = "red"


@pytest.fixture
def pool():
    """Patched ThreadedConnectionPool handing out one mock connection."""
    with patch("clients.postgres_client.psycopg2.pool.ThreadedConnectionPool") as pool_cls, \
            patch("clients.postgres_client.psycopg2.extras.register_default_jsonb"), \
            patch("clients.postgres_client.psycopg2.extras.register_uuid"):
        pool = MagicMock()
        conn = MagicMock()
        pool.getconn.return_value = conn
        pool_cls.return_value = pool
        yield pool
    PostgresClient._connection_pools.clear()


@pytest.fixture
def client(pool):
    return PostgresClient("postgresql://test/crm")


def _cursor(pool):
    """The cursor returned inside `with conn.cursor() as cur`."""
    return pool.getconn.return_value.cursor.return_value.__enter__.return_value


class TestRLSContext:
    def test_stamps_user_and_role(self, client, pool):
        cursor = _cursor(pool)
        cursor.description = None

        with user_context(TEST_USER_ID, ADMIN_ROLE):
            client.execute("UPDATE leads SET score = 1")

        stamp = cursor.execute.call_args_list[0].args
        assert "set_config('app.current_user_id'" in stamp[0]
        assert stamp[1] == (str(TEST_USER_ID), ADMIN_ROLE)

    def test_no_user_stamps_empty_string(self, client, pool):
        cursor = _cursor(pool)
        cursor.description = None

        client.execute("SELECT 1")

        assert cursor.execute.call_args_list[0].args[1] == ("", "")

    def test_connection_returned_on_error(self, client, pool):
        cursor = _cursor(pool)
        cursor.execute.side_effect = [None, RuntimeError("syntax error")]

        with pytest.raises(RuntimeError):
            client.execute("SELEC 1")

        conn = pool.getconn.return_value
        conn.rollback.assert_called_once()
        pool.putconn.assert_called_once_with(conn)


class TestQueries:
    def test_execute_returns_dicts(self, client, pool):
        cursor = _cursor(pool)
        cursor.description = [("id",)]
        cursor.fetchall.return_value = [{"id": 1}, {"id": 2}]

        assert client.execute("SELECT id FROM leads") == [{"id": 1}, {"id": 2}]

    def test_execute_scalar(self, client, pool):
        cursor = _cursor(pool)
        cursor.description = [("count",)]
        cursor.fetchall.return_value = [{"count": 3}]

        assert client.execute_scalar("SELECT COUNT(*) FROM prices") == 3

    def test_params_converted(self, client):
        converted = client._convert_params((TEST_USER_ID, Color.RED, [TEST_USER_ID], 5))
        assert converted == (str(TEST_USER_ID), "red", [str(TEST_USER_ID)], 5)

    def test_pool_shared_per_url(self, pool):
        from clients import postgres_client

        PostgresClient("postgresql://test/crm")
        PostgresClient("postgresql://test/crm")

        assert postgres_client.psycopg2.pool.ThreadedConnectionPool.call_count == 1
