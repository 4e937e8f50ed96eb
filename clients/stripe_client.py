"""
Stripe catalog client.

Talks to the Stripe REST API over plain HTTP (form-encoded requests, JSON
responses). Only the catalog surface is covered: products and prices on the
platform account or on a connected account via the Stripe-Account header.
"""

import json
import logging
from typing import Any, Iterator

import requests
from pydantic import BaseModel

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "https://api.stripe.com/v1"


class StripeError(Exception):
    """Raised when a Stripe request fails."""

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None):
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class StripeNotFoundError(StripeError):
    """The requested Stripe object does not exist (or is not visible to this account)."""


class StripeProduct(BaseModel):
    """Product as returned by Stripe."""

    id: str
    name: str
    description: str | None = None
    active: bool = True


class StripeRecurring(BaseModel):
    interval: str
    interval_count: int = 1


class StripePrice(BaseModel):
    """Price as returned by Stripe. Prices are immutable apart from `active`."""

    id: str
    product: str
    unit_amount: int | None = None
    currency: str
    active: bool = True
    recurring: StripeRecurring | None = None


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _encode_form(params: dict[str, Any], prefix: str | None = None) -> dict[str, str]:
    """Flatten nested dicts into Stripe's bracket notation, dropping None values."""
    encoded: dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        name = f"{prefix}[{key}]" if prefix else key
        if isinstance(value, dict):
            encoded.update(_encode_form(value, name))
        else:
            encoded[name] = _form_value(value)
    return encoded


class StripeCatalogClient:
    """Products and prices on a Stripe account."""

    def __init__(
        self,
        secret_key: str,
        account_id: str | None = None,
        base_url: str = _DEFAULT_BASE_URL,
        timeout: int = 20,
    ):
        """
        Args:
            secret_key: Platform secret key (sk_...)
            account_id: Connected account to act on (acct_...), None for the platform account
            base_url: API root, overridable for tests
            timeout: Per-request timeout in seconds

        Raises:
            ValueError: If secret_key is empty
        """
        if not secret_key:
            raise ValueError("secret_key is required")

        self.secret_key = secret_key
        self.account_id = account_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, params: dict[str, Any] | None = None) -> dict:
        headers = {"Authorization": f"Bearer {self.secret_key}"}
        if self.account_id:
            headers["Stripe-Account"] = self.account_id

        form = _encode_form(params or {})
        url = f"{self.base_url}{path}"

        try:
            if method == "GET":
                response = requests.get(url, params=form, headers=headers, timeout=self.timeout)
            else:
                response = requests.post(url, data=form, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Stripe connection failed: {e}")
            raise StripeError(f"Connection failed: {e}")

        try:
            body = response.json()
        except json.JSONDecodeError:
            logger.error(f"Stripe returned invalid JSON ({response.status_code})")
            raise StripeError("Invalid response from Stripe", status_code=response.status_code)

        if response.status_code >= 400:
            error = body.get("error", {}) if isinstance(body, dict) else {}
            message = error.get("message", "Unknown error")
            code = error.get("code")
            if response.status_code == 404 or code == "resource_missing":
                raise StripeNotFoundError(message, status_code=response.status_code, code=code)
            logger.error(f"Stripe error on {method} {path}: {message}")
            raise StripeError(message, status_code=response.status_code, code=code)

        return body

    # Products

    def iter_products(self, active: bool | None = True, page_size: int = 100) -> Iterator[StripeProduct]:
        """Iterate every product, following Stripe's cursor pagination."""
        starting_after = None
        while True:
            page = self._request(
                "GET",
                "/products",
                {"active": active, "limit": page_size, "starting_after": starting_after},
            )
            items = page.get("data", [])
            for item in items:
                yield StripeProduct.model_validate(item)

            if not page.get("has_more") or not items:
                return
            starting_after = items[-1]["id"]

    def retrieve_product(self, product_id: str) -> StripeProduct:
        """
        Fetch one product.

        Raises:
            StripeNotFoundError: If no such product exists
        """
        if not product_id:
            raise StripeNotFoundError("Product id is empty")
        return StripeProduct.model_validate(self._request("GET", f"/products/{product_id}"))

    def create_product(self, name: str, description: str | None = None, active: bool = True) -> StripeProduct:
        body = self._request(
            "POST",
            "/products",
            {"name": name, "description": description or None, "active": active},
        )
        product = StripeProduct.model_validate(body)
        logger.info(f"Stripe product created: {product.id}")
        return product

    # Prices

    def create_price(
        self,
        product_id: str,
        unit_amount: int,
        currency: str,
        active: bool = True,
        interval: str | None = None,
        interval_count: int | None = None,
    ) -> StripePrice:
        """Create a price. Passing an interval makes it recurring."""
        params: dict[str, Any] = {
            "product": product_id,
            "unit_amount": unit_amount,
            "currency": currency.lower(),
            "active": active,
        }
        if interval:
            params["recurring"] = {"interval": interval, "interval_count": interval_count or 1}

        return StripePrice.model_validate(self._request("POST", "/prices", params))

    def deactivate_price(self, price_id: str) -> StripePrice:
        return StripePrice.model_validate(
            self._request("POST", f"/prices/{price_id}", {"active": False})
        )
