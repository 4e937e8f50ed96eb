"""Tests for the catalog reconciliation and price endpoints."""

from uuid import uuid4

import pytest

from clients.stripe_client import StripeError
from core.exceptions import ValidationError
from core.models import (
    ApplyReport,
    ItemResult,
    LinkResult,
    MatchConfidence,
    PriceLinkResult,
    ProductSuggestion,
    ProductSummary,
    Recommendation,
    SuggestedMatch,
    SuggestionReport,
    SuggestionStats,
)
from core.services.reconciliation_service import STRIPE_NOT_CONNECTED


class TestAdminOnly:
    @pytest.mark.parametrize("method, path", [
        ("get", "/api/products/bulk-link"),
        ("post", "/api/products/bulk-link"),
        ("post", "/api/products/link"),
        ("post", "/api/products/unlink"),
    ])
    def test_sales_user_forbidden(self, client, services, method, path):
        kwargs = {"json": {"mappings": [], "productId": str(uuid4())}} if method == "post" else {}

        response = getattr(client, method)(path, **kwargs)

        assert response.status_code == 403
        assert response.json()["error"] == {"code": "FORBIDDEN", "message": "Admin access required"}
        services["reconciliation"].suggest.assert_not_called()
        services["reconciliation"].apply.assert_not_called()


class TestSuggest:
    """GET /api/products/bulk-link"""

    def test_wire_format(self, admin_client, services):
        product_id = uuid4()
        services["reconciliation"].suggest.return_value = SuggestionReport(
            suggestions=[ProductSuggestion(
                product=ProductSummary(id=product_id, name="Pro Plan", price_count=2),
                suggested_matches=[SuggestedMatch(
                    external_product_id="prod_a", name="Pro Plan",
                    similarity=100, confidence=MatchConfidence.HIGH,
                )],
                recommendation=Recommendation.AUTO_LINK,
            )],
            stats=SuggestionStats(total_unlinked_products=1, total_stripe_products=4, high_confidence_matches=1),
        )

        response = admin_client.get("/api/products/bulk-link")

        assert response.status_code == 200
        body = response.json()
        suggestion = body["suggestions"][0]
        assert suggestion["product"] == {
            "id": str(product_id), "name": "Pro Plan", "description": None, "priceCount": 2,
        }
        assert suggestion["suggestedMatches"][0] == {
            "externalProductId": "prod_a", "name": "Pro Plan", "description": None,
            "similarity": 100, "confidence": "high",
        }
        assert suggestion["recommendation"] == "auto-link"
        assert body["stats"] == {
            "totalUnlinkedProducts": 1,
            "totalStripeProducts": 4,
            "highConfidenceMatches": 1,
            "suggestedMatches": 0,
            "createNewRecommended": 0,
        }

    def test_not_connected(self, admin_client, services):
        services["reconciliation"].suggest.side_effect = ValidationError(STRIPE_NOT_CONNECTED)

        response = admin_client.get("/api/products/bulk-link")

        assert response.status_code == 400
        assert response.json()["error"]["message"] == STRIPE_NOT_CONNECTED

    def test_stripe_outage(self, admin_client, services):
        services["reconciliation"].suggest.side_effect = StripeError("Connection failed: timeout")

        response = admin_client.get("/api/products/bulk-link")

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "STRIPE_ERROR"


class TestApply:
    """POST /api/products/bulk-link"""

    def test_wire_format(self, admin_client, services):
        services["reconciliation"].apply.return_value = ApplyReport.from_results([
            ItemResult(
                product_id="p1", success=True, action="create", stripe_product_id="prod_new",
                prices_linked=2, total_prices=2, message="Product created and linked successfully",
            ),
            ItemResult.failure("p2", "Product not found"),
        ])

        response = admin_client.post("/api/products/bulk-link", json={"mappings": [
            {"productId": "p1", "action": "create"},
            {"productId": "p2", "action": "link", "externalProductId": "prod_x"},
        ]})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["results"] == [
            {
                "productId": "p1", "success": True, "action": "create",
                "stripeProductId": "prod_new", "pricesLinked": 2, "totalPrices": 2,
                "message": "Product created and linked successfully",
            },
            {"productId": "p2", "success": False, "error": "Product not found"},
        ]
        assert body["summary"] == {
            "total": 2, "successful": 1, "failed": 1,
            "message": "Bulk linking completed: 1/2 products processed successfully",
        }
        mappings = services["reconciliation"].apply.call_args.args[0]
        assert mappings[1].stripe_product_id == "prod_x"

    def test_missing_mappings(self, admin_client, services):
        response = admin_client.post("/api/products/bulk-link", json={})

        assert response.status_code == 422


class TestLinkProduct:
    def test_link(self, admin_client, services):
        product_id = uuid4()
        services["reconciliation"].link_product.return_value = LinkResult(
            product_id=product_id,
            stripe_product_id="prod_a",
            price_results=[
                PriceLinkResult(price_id=uuid4(), success=True, stripe_price_id="price_1"),
                PriceLinkResult(price_id=uuid4(), success=False, error="Failed to create price in Stripe"),
            ],
        )

        response = admin_client.post("/api/products/link", json={
            "productId": str(product_id), "stripeProductId": "prod_a",
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["pricesLinked"] == 1
        assert data["totalPrices"] == 2
        assert data["stripeProductId"] == "prod_a"
        services["reconciliation"].link_product.assert_called_once_with(product_id, "prod_a")

    def test_already_linked(self, admin_client, services):
        services["reconciliation"].link_product.side_effect = ValidationError("Product is already linked to Stripe")

        response = admin_client.post("/api/products/link", json={"productId": str(uuid4())})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestPrices:
    def test_invalid_currency(self, admin_client, services):
        response = admin_client.post(
            f"/api/products/{uuid4()}/prices", json={"unit_amount": 1000, "currency": "jpy"}
        )

        assert response.status_code == 422
        services["product"].add_price.assert_not_called()

    def test_last_active_price(self, admin_client, services):
        services["product"].deactivate_price.side_effect = ValidationError(
            "Cannot delete the only active price. Products must have at least one active price."
        )

        response = admin_client.delete(f"/api/products/{uuid4()}/prices/{uuid4()}")

        assert response.status_code == 400
        assert "only active price" in response.json()["error"]["message"]
