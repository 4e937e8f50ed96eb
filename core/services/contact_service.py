"""
Contact service.

Contacts with an email are deduplicated by (email, owning user). Contacts
without one are always created.
"""

import logging
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from core.models import Contact, ContactCreate
from utils.user_context import get_current_user_id
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class ContactService:
    """Service for contact operations."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def find_by_email(self, email: str, user_id: UUID) -> Contact | None:
        row = self.postgres.execute_single(
            "SELECT * FROM contacts WHERE email = %s AND user_id = %s LIMIT 1",
            (email, user_id)
        )
        if row is None:
            return None
        return Contact.model_validate(row)

    def find_or_create(self, data: ContactCreate) -> Contact:
        """
        Return the current user's contact with this email, creating one if absent.

        Args:
            data: Contact details; name, email, phone and company link

        Returns:
            Existing or newly created contact
        """
        user_id = get_current_user_id()

        if data.email:
            existing = self.find_by_email(data.email, user_id)
            if existing is not None:
                logger.info(f"Reusing contact {existing.id} for {data.email}")
                return existing

        now = now_utc()
        row = self.postgres.execute_returning(
            """
            INSERT INTO contacts (
                id, user_id, org_id, name, email, phone, company_id,
                created_at, updated_at
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING *
            """,
            (
                uuid4(), user_id, data.org_id, data.name, data.email, data.phone,
                data.company_id, now, now
            )
        )[0]

        contact = Contact.model_validate(row)
        logger.info(f"Contact {contact.id} created for '{data.name}'")
        return contact
