"""
Company service.

Companies are deduplicated by (name, owning user): conversion reuses an
existing company rather than creating a second one with the same name.
"""

import logging
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from core.models import Company, CompanyCreate
from utils.user_context import get_current_user_id
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class CompanyService:
    """Service for company operations."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def find_by_name(self, name: str, user_id: UUID) -> Company | None:
        row = self.postgres.execute_single(
            "SELECT * FROM companies WHERE name = %s AND user_id = %s LIMIT 1",
            (name, user_id)
        )
        if row is None:
            return None
        return Company.model_validate(row)

    def find_or_create(self, data: CompanyCreate) -> Company:
        """
        Return the current user's company with this name, creating it if absent.

        Args:
            data: Company name and owning org

        Returns:
            Existing or newly created company
        """
        user_id = get_current_user_id()

        existing = self.find_by_name(data.name, user_id)
        if existing is not None:
            logger.info(f"Reusing company {existing.id} for '{data.name}'")
            return existing

        now = now_utc()
        row = self.postgres.execute_returning(
            """
            INSERT INTO companies (id, user_id, org_id, name, created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING *
            """,
            (uuid4(), user_id, data.org_id, data.name, now, now)
        )[0]

        company = Company.model_validate(row)
        logger.info(f"Company {company.id} created for '{data.name}'")
        return company
