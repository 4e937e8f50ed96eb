"""
Product and price persistence.

Prices mirrored in the external catalog are immutable there: changing one
means creating a new external price and deactivating the old one. External
calls from this service are degraded steps and never fail the local write.
A new price whose external create fails is stored unlinked. A replaced price
whose new external create fails keeps pointing at its old external price,
and the degraded step in the result tells the caller the two now differ.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from clients.stripe_client import StripeCatalogClient, StripePrice
from core.exceptions import NotFoundError, ValidationError
from core.models import LinkStatus, Price, PriceCreate, Product
from core.outcomes import StepOutcome, attempt, skipped
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


@dataclass
class PriceResult:
    """A written price and the outcome of its external mirror steps."""

    price: Price
    steps: list[StepOutcome] = field(default_factory=list)

    @property
    def linked(self) -> bool:
        return self.price.stripe_linked


class ProductService:
    """Service for product and price operations."""

    def __init__(self, postgres: PostgresClient, stripe: StripeCatalogClient | None = None):
        self.postgres = postgres
        self.stripe = stripe

    # Reads

    def _attach_prices(self, rows: list[dict]) -> list[Product]:
        if not rows:
            return []

        price_rows = self.postgres.execute(
            """
            SELECT * FROM prices
            WHERE product_id = ANY(%s::uuid[])
            ORDER BY created_at
            """,
            ([row["id"] for row in rows],)
        )

        prices_by_product: dict = {}
        for price_row in price_rows:
            prices_by_product.setdefault(str(price_row["product_id"]), []).append(price_row)

        return [
            Product.model_validate({**row, "prices": prices_by_product.get(str(row["id"]), [])})
            for row in rows
        ]

    def get_with_prices(self, product_id: UUID) -> Product | None:
        """
        Get a product with all of its prices.

        Returns:
            Product if found, None otherwise.
        """
        row = self.postgres.execute_single(
            "SELECT * FROM products WHERE id = %s",
            (product_id,)
        )
        if row is None:
            return None
        return self._attach_prices([row])[0]

    def list_unlinked_with_prices(self) -> list[Product]:
        """Active products not yet linked to the external catalog."""
        rows = self.postgres.execute(
            """
            SELECT * FROM products
            WHERE stripe_linked = false AND active = true
            ORDER BY created_at
            """
        )
        return self._attach_prices(rows)

    def get_price(self, product_id: UUID, price_id: UUID) -> Price | None:
        row = self.postgres.execute_single(
            "SELECT * FROM prices WHERE id = %s AND product_id = %s",
            (price_id, product_id)
        )
        if row is None:
            return None
        return Price.model_validate(row)

    def count_active_prices(self, product_id: UUID) -> int:
        return self.postgres.execute_scalar(
            "SELECT COUNT(*) FROM prices WHERE product_id = %s AND active = true",
            (product_id,)
        ) or 0

    # Link state

    def mark_linked(self, product_id: UUID, stripe_product_id: str) -> Product:
        """
        Record a confirmed external product id on a product.

        Raises:
            NotFoundError: If the product row no longer exists
        """
        rows = self.postgres.execute_returning(
            """
            UPDATE products
            SET stripe_product_id = %s, stripe_linked = true, stripe_link_status = %s,
                last_stripe_sync = %s, updated_at = %s
            WHERE id = %s
            RETURNING *
            """,
            (stripe_product_id, LinkStatus.LINKED, now_utc(), now_utc(), product_id)
        )
        if not rows:
            raise NotFoundError("product", product_id)
        return Product.model_validate(rows[0])

    def mark_price_linked(self, price_id: UUID, stripe_price_id: str) -> Price:
        rows = self.postgres.execute_returning(
            """
            UPDATE prices
            SET stripe_price_id = %s, stripe_linked = true, stripe_link_status = %s,
                last_stripe_sync = %s, updated_at = %s
            WHERE id = %s
            RETURNING *
            """,
            (stripe_price_id, LinkStatus.LINKED, now_utc(), now_utc(), price_id)
        )
        if not rows:
            raise NotFoundError("price", price_id)
        return Price.model_validate(rows[0])

    def mark_unlinked(self, product_id: UUID) -> Product:
        """
        Clear external linkage from a product and all its prices.

        Local names, amounts and active flags are preserved.
        """
        rows = self.postgres.execute_returning(
            """
            UPDATE products
            SET stripe_product_id = NULL, stripe_linked = false, stripe_link_status = %s,
                updated_at = %s
            WHERE id = %s
            RETURNING *
            """,
            (LinkStatus.UNLINKED, now_utc(), product_id)
        )
        if not rows:
            raise NotFoundError("product", product_id)

        self.postgres.execute(
            """
            UPDATE prices
            SET stripe_price_id = NULL, stripe_linked = false, stripe_link_status = %s,
                updated_at = %s
            WHERE product_id = %s
            """,
            (LinkStatus.UNLINKED, now_utc(), product_id)
        )
        return self._attach_prices(rows)[0]

    # Price management

    def _create_external_price(self, stripe_product_id: str, data: PriceCreate) -> StripePrice:
        return self.stripe.create_price(
            product_id=stripe_product_id,
            unit_amount=data.unit_amount,
            currency=data.currency,
            active=data.active,
            interval=data.recurring_interval,
            interval_count=data.recurring_interval_count,
        )

    def _ensure_other_active_price(self, product_id: UUID, price: Price) -> None:
        """A product always keeps at least one active price."""
        if price.active and self.count_active_prices(product_id) <= 1:
            raise ValidationError(
                "Cannot delete the only active price. Products must have at least one active price."
            )

    def _mirror_step(self, product: Product, data: PriceCreate) -> StepOutcome:
        if self.stripe is None or not product.stripe_product_id:
            return skipped("stripe_price")
        return attempt(
            "stripe_price",
            lambda: self._create_external_price(product.stripe_product_id, data)
        )

    def add_price(self, product_id: UUID, data: PriceCreate) -> PriceResult:
        """
        Add a price to a product, mirroring it externally when the product is linked.

        Args:
            product_id: Product UUID
            data: Validated price data (currency and minimum already checked)

        Returns:
            PriceResult; the price is linked only if the external create succeeded

        Raises:
            NotFoundError: If product not found
        """
        product = self.get_with_prices(product_id)
        if product is None:
            raise NotFoundError("product", product_id)

        mirror = self._mirror_step(product, data)
        stripe_price_id = mirror.value.id if mirror.value else None
        now = now_utc()

        row = self.postgres.execute_returning(
            """
            INSERT INTO prices (
                id, product_id, unit_amount, currency, type,
                interval, interval_count, active,
                stripe_price_id, stripe_linked, stripe_link_status, last_stripe_sync,
                created_at, updated_at
            ) VALUES (
                %s, %s, %s, %s, %s,
                %s, %s, %s,
                %s, %s, %s, %s,
                %s, %s
            )
            RETURNING *
            """,
            (
                uuid4(), product_id, data.unit_amount, data.currency, data.type,
                data.recurring_interval, data.recurring_interval_count, data.active,
                stripe_price_id, stripe_price_id is not None,
                LinkStatus.LINKED if stripe_price_id else LinkStatus.UNLINKED,
                now if stripe_price_id else None,
                now, now
            )
        )[0]

        price = Price.model_validate(row)
        logger.info(f"Price {price.id} added to product {product_id} (linked={price.stripe_linked})")
        return PriceResult(price=price, steps=[mirror])

    def replace_price(self, product_id: UUID, price_id: UUID, data: PriceCreate) -> PriceResult:
        """
        Change a price's amount or terms.

        A new external price is created and the old one deactivated, then the
        local row is rewritten to point at the new external price. If no new
        external price was created, the row keeps its current link.

        Raises:
            NotFoundError: If the price doesn't exist on this product
            ValidationError: If it would deactivate the product's last active price
        """
        existing = self.get_price(product_id, price_id)
        if existing is None:
            raise NotFoundError("price", price_id)
        if not data.active:
            self._ensure_other_active_price(product_id, existing)
        product = self.get_with_prices(product_id)
        if product is None:
            raise NotFoundError("product", product_id)

        mirror = self._mirror_step(product, data)
        steps = [mirror]

        if mirror.value:
            stripe_price_id = mirror.value.id
            link_status = LinkStatus.LINKED
            synced_at = now_utc()
            if existing.stripe_price_id:
                steps.append(attempt(
                    "stripe_deactivate_old",
                    lambda: self.stripe.deactivate_price(existing.stripe_price_id)
                ))
        else:
            stripe_price_id = existing.stripe_price_id
            link_status = existing.stripe_link_status
            synced_at = existing.last_stripe_sync
            if mirror.degraded and stripe_price_id:
                logger.warning(
                    f"Price {price_id} changed locally but still points at {stripe_price_id}"
                )

        row = self.postgres.execute_returning(
            """
            UPDATE prices
            SET unit_amount = %s, currency = %s, type = %s,
                interval = %s, interval_count = %s, active = %s,
                stripe_price_id = %s, stripe_linked = %s, stripe_link_status = %s,
                last_stripe_sync = %s, updated_at = %s
            WHERE id = %s
            RETURNING *
            """,
            (
                data.unit_amount, data.currency, data.type,
                data.recurring_interval, data.recurring_interval_count, data.active,
                stripe_price_id, stripe_price_id is not None, link_status,
                synced_at, now_utc(), price_id
            )
        )[0]

        return PriceResult(price=Price.model_validate(row), steps=steps)

    def deactivate_price(self, product_id: UUID, price_id: UUID) -> PriceResult:
        """
        Soft-deactivate a price. A product always keeps one active price.

        Raises:
            NotFoundError: If the price doesn't exist on this product
            ValidationError: If it is the product's last active price
        """
        existing = self.get_price(product_id, price_id)
        if existing is None:
            raise NotFoundError("price", price_id)

        self._ensure_other_active_price(product_id, existing)

        if self.stripe is not None and existing.stripe_price_id:
            step = attempt(
                "stripe_deactivate",
                lambda: self.stripe.deactivate_price(existing.stripe_price_id)
            )
        else:
            step = skipped("stripe_deactivate")

        row = self.postgres.execute_returning(
            """
            UPDATE prices
            SET active = false, last_stripe_sync = %s, updated_at = %s
            WHERE id = %s
            RETURNING *
            """,
            (now_utc(), now_utc(), price_id)
        )[0]

        logger.info(f"Price {price_id} deactivated")
        return PriceResult(price=Price.model_validate(row), steps=[step])
