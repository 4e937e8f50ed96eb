"""Deal service."""

import logging
from uuid import uuid4

from clients.postgres_client import PostgresClient
from core.models import Deal, DealCreate
from utils.user_context import get_current_user_id
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class DealService:
    """Service for deal operations."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def create(self, data: DealCreate) -> Deal:
        """
        Insert a deal owned by the current user.

        Args:
            data: Deal creation data

        Returns:
            Created deal
        """
        user_id = get_current_user_id()
        now = now_utc()

        row = self.postgres.execute_returning(
            """
            INSERT INTO deals (
                id, user_id, org_id, title, description,
                stage, value, priority, channel,
                close_date, expected_close_date,
                company_id, contact_id, lead_id, assigned_to,
                created_at, updated_at
            ) VALUES (
                %s, %s, %s, %s, %s,
                %s, %s, %s, %s,
                %s, %s,
                %s, %s, %s, %s,
                %s, %s
            )
            RETURNING *
            """,
            (
                uuid4(), user_id, data.org_id, data.title, data.description,
                data.stage, data.value, data.priority, data.channel,
                data.close_date, data.expected_close_date,
                data.company_id, data.contact_id, data.lead_id, data.assigned_to,
                now, now
            )
        )[0]

        deal = Deal.model_validate(row)
        logger.info(f"Deal {deal.id} created: {deal.title}")
        return deal
