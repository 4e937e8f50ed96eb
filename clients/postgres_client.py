"""
PostgreSQL client with connection pooling and RLS tenant isolation.

Uses psycopg2 with ThreadedConnectionPool. Every checkout stamps the
connection with the acting user's id and role (read from the contextvars in
utils.user_context) so Row Level Security policies can scope leads, deals
and contacts to their owners while letting admins see the shared catalog.

No user context = see nothing. Policies cast app.current_user_id to uuid,
and the empty string fails that cast.
"""

import logging
import threading
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, List, Tuple
from uuid import UUID

import psycopg2
import psycopg2.extras
import psycopg2.pool

from utils.user_context import _current_user_id, _current_user_role

logger = logging.getLogger(__name__)

_jsonb_registered = False


class PostgresClient:
    """
    PostgreSQL client with automatic RLS context.

    Usage:
        db = PostgresClient(database_url)

        with user_context(user_id, role="sales"):
            leads = db.execute("SELECT * FROM leads")  # Own/org leads only
    """

    _connection_pools: Dict[str, psycopg2.pool.ThreadedConnectionPool] = {}
    _pools_lock = threading.RLock()

    def __init__(self, database_url: str, min_connections: int = 2, max_connections: int = 20):
        self._database_url = database_url
        self._min_connections = min_connections
        self._max_connections = max_connections
        self._ensure_connection_pool()

    def _ensure_connection_pool(self) -> None:
        """Create connection pool if it doesn't exist."""
        with self._pools_lock:
            if self._database_url in self._connection_pools:
                return

            pool = psycopg2.pool.ThreadedConnectionPool(
                minconn=self._min_connections,
                maxconn=self._max_connections,
                dsn=self._database_url,
                connect_timeout=30,
            )

            global _jsonb_registered
            if not _jsonb_registered:
                psycopg2.extras.register_default_jsonb(globally=True)
                psycopg2.extras.register_uuid()
                _jsonb_registered = True

            self._connection_pools[self._database_url] = pool
            logger.info("Connection pool created")

    @contextmanager
    def get_connection(self):
        """Check out a connection stamped with the current user id and role."""
        if self._database_url not in self._connection_pools:
            self._ensure_connection_pool()

        pool = self._connection_pools[self._database_url]
        conn = None

        try:
            conn = pool.getconn()
            if conn is None:
                raise RuntimeError("Could not get connection from pool")

            user_id = _current_user_id.get()
            role = _current_user_role.get()

            with conn.cursor() as cur:
                cur.execute(
                    "SELECT set_config('app.current_user_id', %s, false), "
                    "set_config('app.current_user_role', %s, false)",
                    (str(user_id) if user_id is not None else "", role or ""),
                )

            yield conn

        except Exception:
            if conn is not None:
                conn.rollback()
            raise

        finally:
            if conn is not None:
                pool.putconn(conn)

    def _convert_params(self, params: Tuple | Dict | None) -> Tuple | Dict | None:
        """Convert UUIDs and enums to plain values psycopg2 can adapt."""
        if params is None:
            return None

        def convert(value: Any) -> Any:
            if isinstance(value, UUID):
                return str(value)
            if isinstance(value, Enum):
                return value.value
            if isinstance(value, list):
                return [convert(v) for v in value]
            if isinstance(value, tuple):
                return tuple(convert(v) for v in value)
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(params)

    def execute(self, query: str, params: Tuple | Dict | None = None) -> List[Dict[str, Any]]:
        """Execute query, return list of row dicts. Empty list if no results."""
        params = self._convert_params(params)
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query, params)
                rows = [dict(row) for row in cur.fetchall()] if cur.description else []
                conn.commit()
                return rows

    def execute_single(self, query: str, params: Tuple | Dict | None = None) -> Dict[str, Any] | None:
        """Execute query, return first row or None."""
        results = self.execute(query, params)
        return results[0] if results else None

    def execute_scalar(self, query: str, params: Tuple | Dict | None = None) -> Any:
        """Execute query, return first value of first row or None."""
        row = self.execute_single(query, params)
        if row is None:
            return None
        return next(iter(row.values()))

    def execute_returning(self, query: str, params: Tuple | Dict | None = None) -> List[Dict[str, Any]]:
        """Execute INSERT/UPDATE with RETURNING, return results."""
        params = self._convert_params(params)
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query, params)
                rows = [dict(row) for row in cur.fetchall()]
                conn.commit()
                return rows

    def close(self) -> None:
        """Close connection pool."""
        with self._pools_lock:
            if self._database_url in self._connection_pools:
                self._connection_pools[self._database_url].closeall()
                del self._connection_pools[self._database_url]

    @classmethod
    def close_all_pools(cls) -> None:
        """Close all connection pools."""
        with cls._pools_lock:
            for pool in cls._connection_pools.values():
                pool.closeall()
            cls._connection_pools.clear()
