"""
Catalog reconciliation against the external payment catalog.

Two phases:
- suggest: read-only; ranks external products against every unlinked
  product. Safe to re-run.
- apply: executes reviewer decisions in input order. Each decision maps to
  exactly one ItemResult; a failed item never stops or rolls back the
  others.

A product is only marked linked after its external id was confirmed, either
by retrieving it or by creating it.
"""

import logging
from collections.abc import Sequence
from uuid import UUID

from clients.stripe_client import StripeCatalogClient, StripeError, StripeProduct
from core.activity import ActivityLogger
from core.config import PipelineConfig
from core.exceptions import NotFoundError, PersistenceError, ValidationError
from core.matching import suggest_matches
from core.models import (
    ApplyReport, ItemResult, LinkAction, LinkResult, Price, PriceLinkResult, Product,
    ProductMapping, SuggestionReport,
)
from core.outcomes import attempt
from core.services.product_service import ProductService

logger = logging.getLogger(__name__)

STRIPE_NOT_CONNECTED = "No Stripe account connected. Please connect Stripe first."

PRODUCT_NOT_FOUND = "Product not found"
INVALID_ACTION = "Invalid action or missing stripeProductId for link action"
EXTERNAL_NOT_FOUND = "Invalid Stripe product ID or product not found in Stripe"
EXTERNAL_CREATE_FAILED = "Failed to create product in Stripe"
PRODUCT_UPDATE_FAILED = "Failed to update product in database"
UNEXPECTED_ERROR = "Unexpected error processing product"


class ReconciliationService:
    """Links internal products and prices to the external catalog."""

    def __init__(
        self,
        products: ProductService,
        stripe: StripeCatalogClient | None,
        activity: ActivityLogger,
        config: PipelineConfig | None = None
    ):
        self.products = products
        self.stripe = stripe
        self.activity = activity
        self.config = config or PipelineConfig()

    def _require_stripe(self) -> StripeCatalogClient:
        if self.stripe is None:
            raise ValidationError(STRIPE_NOT_CONNECTED)
        return self.stripe

    # Suggest

    def suggest(self) -> SuggestionReport:
        """
        Suggest external matches for every unlinked active product.

        Raises:
            ValidationError: If no external catalog is connected
            StripeError: If the external catalog can't be listed
        """
        stripe = self._require_stripe()

        products = self.products.list_unlinked_with_prices()
        if not products:
            return SuggestionReport()

        external = list(stripe.iter_products(active=True, page_size=self.config.stripe_page_size))
        report = suggest_matches(products, external, self.config)

        logger.info(
            f"Reconciliation suggestions: {len(products)} unlinked products, "
            f"{len(external)} external, {report.stats.high_confidence_matches} auto-link"
        )
        return report

    # Apply

    def apply(self, mappings: Sequence[ProductMapping]) -> ApplyReport:
        """
        Execute reviewer decisions, one result per decision.

        Raises:
            ValidationError: If no external catalog is connected. Every other
                failure is reported in the item's result.
        """
        stripe = self._require_stripe()

        results = []
        for mapping in mappings:
            try:
                results.append(self._apply_one(stripe, mapping))
            except Exception:
                logger.exception(f"Unexpected error reconciling product {mapping.product_id}")
                results.append(ItemResult.failure(mapping.product_id, UNEXPECTED_ERROR))

        report = ApplyReport.from_results(results)
        logger.info(report.summary.message)
        return report

    def _load_product(self, product_id: str) -> Product | None:
        try:
            product_uuid = UUID(product_id)
        except ValueError:
            # Not a UUID, so it can't name a product
            return None
        return self.products.get_with_prices(product_uuid)

    def _apply_one(self, stripe: StripeCatalogClient, mapping: ProductMapping) -> ItemResult:
        product = self._load_product(mapping.product_id)
        if product is None:
            return ItemResult.failure(mapping.product_id, PRODUCT_NOT_FOUND)

        action = LinkAction.parse(mapping.action)

        if action == LinkAction.SKIP:
            return ItemResult(
                product_id=mapping.product_id,
                success=True,
                action="skipped",
                message="Product skipped as requested",
            )

        if action == LinkAction.LINK and mapping.stripe_product_id:
            try:
                external = stripe.retrieve_product(mapping.stripe_product_id)
            except StripeError as e:
                logger.warning(f"External product {mapping.stripe_product_id} not resolvable: {e}")
                return ItemResult.failure(mapping.product_id, EXTERNAL_NOT_FOUND)
        elif action == LinkAction.CREATE:
            try:
                external = self._create_external_product(stripe, product)
            except StripeError as e:
                logger.error(f"Creating external product for {product.id} failed: {e}")
                return ItemResult.failure(mapping.product_id, EXTERNAL_CREATE_FAILED)
        else:
            return ItemResult.failure(mapping.product_id, INVALID_ACTION)

        try:
            link = self._link(stripe, product, external)
        except PersistenceError:
            return ItemResult.failure(mapping.product_id, PRODUCT_UPDATE_FAILED)

        verb = "created and linked" if action == LinkAction.CREATE else "linked"
        return ItemResult(
            product_id=mapping.product_id,
            success=True,
            action=action.value,
            stripe_product_id=external.id,
            prices_linked=link.prices_linked,
            total_prices=link.total_prices,
            message=f"Product {verb} successfully",
        )

    # Single product

    def link_product(self, product_id: UUID, stripe_product_id: str | None = None) -> LinkResult:
        """
        Link one product, to an existing external product or a newly created one.

        Args:
            product_id: Product UUID
            stripe_product_id: External product to link to; None creates one

        Raises:
            ValidationError: If no catalog is connected, the product is already
                linked, or the external id doesn't resolve
            NotFoundError: If product not found
            StripeError: If creating the external product failed
            PersistenceError: If the product link could not be written
        """
        stripe = self._require_stripe()

        product = self.products.get_with_prices(product_id)
        if product is None:
            raise NotFoundError("product", product_id)
        if product.stripe_linked and product.stripe_product_id:
            raise ValidationError("Product is already linked to Stripe")

        if stripe_product_id:
            try:
                external = stripe.retrieve_product(stripe_product_id)
            except StripeError as e:
                raise ValidationError(EXTERNAL_NOT_FOUND) from e
        else:
            external = self._create_external_product(stripe, product)

        return self._link(stripe, product, external)

    def unlink_product(self, product_id: UUID) -> Product:
        """
        Clear a product's external linkage, keeping local data.

        Raises:
            NotFoundError: If product not found
            ValidationError: If the product isn't linked
        """
        product = self.products.get_with_prices(product_id)
        if product is None:
            raise NotFoundError("product", product_id)
        if not product.stripe_linked:
            raise ValidationError("Product is not linked to Stripe")

        unlinked = self.products.mark_unlinked(product_id)
        attempt("activity", lambda: self.activity.product_unlinked(product.id, product.name))
        logger.info(f"Product {product_id} unlinked")
        return unlinked

    # Shared

    def _create_external_product(self, stripe: StripeCatalogClient, product: Product) -> StripeProduct:
        return stripe.create_product(
            name=product.name,
            description=product.description,
            active=product.active,
        )

    def _link(self, stripe: StripeCatalogClient, product: Product, external: StripeProduct) -> LinkResult:
        """
        Mark a product linked to a confirmed external product, then mirror
        every price not already linked. Price failures only reduce the
        linked count.

        Raises:
            PersistenceError: If the product row could not be updated
        """
        try:
            self.products.mark_linked(product.id, external.id)
        except Exception as e:
            logger.exception(f"Failed to mark product {product.id} linked")
            raise PersistenceError(PRODUCT_UPDATE_FAILED) from e

        price_results = [
            self._link_price(stripe, external.id, price)
            for price in product.prices
            if not price.stripe_linked
        ]
        result = LinkResult(
            product_id=product.id,
            stripe_product_id=external.id,
            price_results=price_results,
        )

        attempt(
            "activity",
            lambda: self.activity.product_linked(
                product.id, product.name, external.id, result.prices_linked
            )
        )
        return result

    def _link_price(self, stripe: StripeCatalogClient, stripe_product_id: str, price: Price) -> PriceLinkResult:
        try:
            external_price = stripe.create_price(
                product_id=stripe_product_id,
                unit_amount=price.unit_amount,
                currency=price.currency,
                active=price.active,
                interval=(price.interval or "month") if price.is_recurring else None,
                interval_count=(price.interval_count or 1) if price.is_recurring else None,
            )
        except StripeError as e:
            logger.warning(f"Creating external price for {price.id} failed: {e}")
            return PriceLinkResult(price_id=price.id, success=False, error="Failed to create price in Stripe")

        try:
            self.products.mark_price_linked(price.id, external_price.id)
        except Exception:
            logger.exception(f"Failed to mark price {price.id} linked")
            return PriceLinkResult(
                price_id=price.id, success=False, stripe_price_id=external_price.id,
                error="Failed to update price in database"
            )

        return PriceLinkResult(price_id=price.id, success=True, stripe_price_id=external_price.id)
