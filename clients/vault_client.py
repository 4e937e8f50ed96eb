"""
HashiCorp Vault client for CRM secret management.

Uses AppRole authentication. Fails fast on missing configuration.
All paths scoped to 'crm/' prefix - no escape to other secrets.
"""

import os
import logging
from typing import Dict, Iterable

import hvac
from hvac.exceptions import InvalidPath, Unauthorized, Forbidden

logger = logging.getLogger(__name__)

_SECRET_PREFIX = "crm"

_vault_client_instance: "VaultClient | None" = None
_secret_cache: Dict[str, str] = {}


def _ensure_vault_client() -> "VaultClient":
    global _vault_client_instance
    if _vault_client_instance is None:
        _vault_client_instance = VaultClient()
    return _vault_client_instance


class VaultError(Exception):
    """Vault operation failed. Fatal - application cannot function without secrets."""


class VaultClient:
    """Vault client with AppRole auth, env-based config, and fail-fast behavior."""

    def __init__(
        self,
        vault_addr: str | None = None,
        vault_namespace: str | None = None,
    ):
        """Initialize from environment variables. Fails fast on missing config."""
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        self.vault_namespace = vault_namespace or os.getenv("VAULT_NAMESPACE")
        self.vault_role_id = os.getenv("VAULT_ROLE_ID")
        self.vault_secret_id = os.getenv("VAULT_SECRET_ID")

        if not self.vault_addr:
            raise ValueError("VAULT_ADDR environment variable is required")

        if not self.vault_role_id or not self.vault_secret_id:
            raise ValueError(
                "VAULT_ROLE_ID and VAULT_SECRET_ID environment variables are required"
            )

        client_kwargs = {"url": self.vault_addr}
        if self.vault_namespace:
            client_kwargs["namespace"] = self.vault_namespace

        self.client = hvac.Client(**client_kwargs)
        self._authenticate_approle()

        if not self.client.is_authenticated():
            raise PermissionError("Vault authentication failed")

        logger.info(f"Vault client initialized: {self.vault_addr}")

    def _authenticate_approle(self) -> None:
        try:
            auth_response = self.client.auth.approle.login(
                role_id=self.vault_role_id,
                secret_id=self.vault_secret_id,
            )
            self.client.token = auth_response["auth"]["client_token"]
        except Exception as e:
            logger.error(f"AppRole authentication failed: {e}")
            raise PermissionError(f"AppRole authentication failed: {e}")

    def read_secret(self, path: str) -> Dict[str, str]:
        """
        Read a whole KV v2 secret below the crm/ prefix.

        Raises:
            PermissionError: Path not accessible or doesn't exist.
        """
        full_path = f"{_SECRET_PREFIX}/{path}"

        try:
            response = self.client.secrets.kv.v2.read_secret_version(
                path=full_path, raise_on_deleted_version=True
            )
        except InvalidPath:
            logger.error(f"Secret path not found: {full_path}")
            raise PermissionError(f"Secret path '{full_path}' not found in Vault")
        except (Unauthorized, Forbidden) as e:
            logger.error(f"Access denied to secret {full_path}: {e}")
            raise PermissionError(f"Access denied to secret '{full_path}': {e}")

        return response["data"]["data"]

    def get_secret(self, path: str, field: str) -> str:
        """
        Retrieve a single field from a secret.

        Raises:
            PermissionError: Path not accessible or doesn't exist.
            KeyError: Field not found in secret.
        """
        secret_data = self.read_secret(path)
        if field not in secret_data:
            raise KeyError(
                f"Field '{field}' not found in secret '{_SECRET_PREFIX}/{path}'. "
                f"Available: {', '.join(secret_data.keys())}"
            )
        return secret_data[field]


def _cached_fields(
    path: str,
    required: Iterable[str],
    optional: Iterable[str] = (),
) -> Dict[str, str | None]:
    """Fetch fields of one secret, caching each value for the process lifetime."""
    result: Dict[str, str | None] = {}
    missing_required = [f for f in required if f"{path}/{f}" not in _secret_cache]
    missing_optional = [f for f in optional if f"{path}/{f}" not in _secret_cache]

    if missing_required or missing_optional:
        secret_data = _ensure_vault_client().read_secret(path)
        for field in missing_required:
            if field not in secret_data:
                raise VaultError(f"Secret '{_SECRET_PREFIX}/{path}' has no field '{field}'")
            _secret_cache[f"{path}/{field}"] = secret_data[field]
        for field in missing_optional:
            if field in secret_data:
                _secret_cache[f"{path}/{field}"] = secret_data[field]

    for field in list(required) + list(optional):
        result[field] = _secret_cache.get(f"{path}/{field}")
    return result


def get_database_url() -> str:
    """PostgreSQL connection URL."""
    return _cached_fields("database", ["url"])["url"]


def get_valkey_url() -> str:
    """Valkey (Redis) connection URL used for sessions."""
    return _cached_fields("valkey", ["url"])["url"]


def get_stripe_config() -> Dict[str, str | None]:
    """
    Stripe configuration.

    Returns:
        Dict with keys: secret_key, account_id (connected account, may be None)
    """
    return _cached_fields("stripe", ["secret_key"], ["account_id"])
