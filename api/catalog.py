"""Product catalog endpoints: reconciliation with Stripe and price management.

Admin only.
"""

from uuid import UUID

from fastapi import APIRouter, Request

from api.base import success_response
from core.exceptions import ForbiddenError
from core.models import ApplyRequest, LinkProductRequest, PriceCreate, UnlinkProductRequest
from utils.user_context import is_admin


def require_admin() -> None:
    """Raise ForbiddenError unless the acting user is an admin."""
    if not is_admin():
        raise ForbiddenError("Admin access required")


def _price_payload(result) -> dict:
    data = result.price.model_dump(mode="json")
    data["degraded_steps"] = [s.step for s in result.steps if s.degraded]
    return data


def create_catalog_router(services: dict) -> APIRouter:
    router = APIRouter()

    reconciliation_svc = services["reconciliation"]
    product_svc = services["product"]

    @router.get("/products/bulk-link")
    async def suggest_links(request: Request):
        require_admin()
        report = reconciliation_svc.suggest()
        return report.model_dump(mode="json", by_alias=True)

    @router.post("/products/bulk-link")
    async def apply_links(request: Request, body: ApplyRequest):
        require_admin()
        report = reconciliation_svc.apply(body.mappings)
        return report.model_dump(mode="json", by_alias=True, exclude_none=True)

    @router.post("/products/link")
    async def link_product(request: Request, body: LinkProductRequest):
        require_admin()
        result = reconciliation_svc.link_product(body.product_id, body.stripe_product_id)
        return success_response({
            **result.model_dump(mode="json", by_alias=True),
            "pricesLinked": result.prices_linked,
            "totalPrices": result.total_prices,
        }).model_dump(mode="json")

    @router.post("/products/unlink")
    async def unlink_product(request: Request, body: UnlinkProductRequest):
        require_admin()
        product = reconciliation_svc.unlink_product(body.product_id)
        return success_response(product.model_dump(mode="json")).model_dump(mode="json")

    @router.post("/products/{product_id}/prices")
    async def add_price(request: Request, product_id: UUID, body: PriceCreate):
        require_admin()
        result = product_svc.add_price(product_id, body)
        return success_response(_price_payload(result)).model_dump(mode="json")

    @router.put("/products/{product_id}/prices/{price_id}")
    async def replace_price(request: Request, product_id: UUID, price_id: UUID, body: PriceCreate):
        require_admin()
        result = product_svc.replace_price(product_id, price_id, body)
        return success_response(_price_payload(result)).model_dump(mode="json")

    @router.delete("/products/{product_id}/prices/{price_id}")
    async def deactivate_price(request: Request, product_id: UUID, price_id: UUID):
        require_admin()
        result = product_svc.deactivate_price(product_id, price_id)
        return success_response(_price_payload(result)).model_dump(mode="json")

    return router
