"""
Application entry point.

Builds infrastructure clients from Vault, wires services, and mounts the
API routers behind the auth middleware.

    uvicorn app:main --factory
"""

import logging

from dotenv import load_dotenv
from fastapi import FastAPI

from api.activities import create_activities_router
from api.catalog import create_catalog_router
from api.errors import register_error_handlers
from api.leads import create_leads_router
from api.middleware import RequestIDMiddleware
from auth.config import AuthConfig
from auth.security_middleware import AuthMiddleware
from auth.session import SessionManager
from clients.postgres_client import PostgresClient
from clients.stripe_client import StripeCatalogClient
from clients.valkey_client import ValkeyClient
from clients.vault_client import VaultError, get_database_url, get_stripe_config, get_valkey_url
from core.activity import ActivityLogger
from core.config import PipelineConfig
from core.services.company_service import CompanyService
from core.services.contact_service import ContactService
from core.services.conversion_service import ConversionService
from core.services.deal_service import DealService
from core.services.lead_service import LeadService
from core.services.product_service import ProductService
from core.services.reconciliation_service import ReconciliationService

logger = logging.getLogger(__name__)


def build_stripe_client() -> StripeCatalogClient | None:
    """Stripe client for the connected account, or None if none is configured."""
    try:
        config = get_stripe_config()
    except (VaultError, PermissionError) as e:
        logger.warning(f"Stripe not configured, catalog reconciliation disabled: {e}")
        return None
    return StripeCatalogClient(config["secret_key"], account_id=config.get("account_id"))


def build_services(
    postgres: PostgresClient,
    stripe: StripeCatalogClient | None,
    config: PipelineConfig | None = None
) -> dict:
    """Construct every service with explicit collaborators."""
    config = config or PipelineConfig()
    activity = ActivityLogger(postgres)

    leads = LeadService(postgres, activity)
    products = ProductService(postgres, stripe)

    return {
        "activity": activity,
        "lead": leads,
        "product": products,
        "conversion": ConversionService(
            leads,
            CompanyService(postgres),
            ContactService(postgres),
            DealService(postgres),
            activity,
            config,
        ),
        "reconciliation": ReconciliationService(products, stripe, activity, config),
    }


def create_app(services: dict, session_manager: SessionManager) -> FastAPI:
    """FastAPI app with auth middleware, error handlers, and API routes."""
    app = FastAPI(title="CRM")
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(AuthMiddleware, session_manager=session_manager)
    register_error_handlers(app)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(create_leads_router(services), prefix="/api")
    app.include_router(create_catalog_router(services), prefix="/api")
    app.include_router(create_activities_router(services), prefix="/api")

    return app


def main() -> FastAPI:
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    postgres = PostgresClient(get_database_url())
    valkey = ValkeyClient(get_valkey_url())
    session_manager = SessionManager(valkey, AuthConfig())

    return create_app(build_services(postgres, build_stripe_client()), session_manager)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(main(), host="0.0.0.0", port=8000)
