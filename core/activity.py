"""
Activity feed for user-visible CRM events.

Every record carries a generated human-readable description, so feeds can be
rendered without knowing each event's metadata layout. The feed is:
- Append-only (entries never modified or deleted)
- User-attributed (who performed the action)
- Deduplicated (the same description on the same entity within five minutes
  is recorded once)

Callers treat activity writes as degraded steps: they run through
`core.outcomes.attempt` so a failed insert never fails the parent operation.
"""

from datetime import timedelta
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from utils.user_context import get_current_user_id
from utils.timezone import now_utc

DUPLICATE_WINDOW = timedelta(minutes=5)


class ActivityType(str, Enum):
    """Kind of event recorded in the feed."""

    LEAD_CREATED = "lead_created"
    LEAD_UPDATED = "lead_updated"
    LEAD_STATUS_CHANGED = "lead_status_changed"
    LEAD_CONVERTED = "lead_converted"
    DEAL_CREATED = "deal_created"
    PRODUCT_LINKED = "product_linked"
    PRODUCT_UNLINKED = "product_unlinked"


def describe(
    action: ActivityType | str,
    entity_title: str,
    metadata: dict[str, Any] | None = None,
) -> str:
    """Human-readable description of an activity."""
    metadata = metadata or {}
    action = action.value if isinstance(action, ActivityType) else action

    if action == ActivityType.LEAD_CREATED.value:
        return f"Created new lead: {entity_title}"
    if action == ActivityType.LEAD_UPDATED.value:
        return f"Updated lead: {entity_title}"
    if action == ActivityType.LEAD_STATUS_CHANGED.value:
        from_status = metadata.get("from_status") or "Unknown"
        to_status = metadata.get("to_status") or "Unknown"
        return f'Changed lead "{entity_title}" status from {from_status} to {to_status}'
    if action == ActivityType.LEAD_CONVERTED.value:
        return f'Converted lead "{entity_title}" to deal: {metadata.get("deal_title") or "New Deal"}'
    if action == ActivityType.DEAL_CREATED.value:
        return f"Created new deal: {entity_title}"
    if action == ActivityType.PRODUCT_LINKED.value:
        return f'Linked product "{entity_title}" to payment catalog'
    if action == ActivityType.PRODUCT_UNLINKED.value:
        return f'Unlinked product "{entity_title}" from payment catalog'

    # "quote_sent" -> "Quote Sent: <title>"
    return f"{action.replace('_', ' ').title()}: {entity_title}"


def compute_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    exclude_fields: set[str] | None = None
) -> dict[str, dict[str, Any]]:
    """
    Compute changes between two entity states.

    Args:
        old: Previous state of entity
        new: New state of entity
        exclude_fields: Fields to ignore (defaults to {"updated_at"})

    Returns:
        Dict of {field: {"old": old_val, "new": new_val}} for changed fields.
        Empty dict if no changes.
    """
    exclude = exclude_fields or {"updated_at"}
    changes = {}

    for key in set(old.keys()) | set(new.keys()):
        if key in exclude:
            continue

        old_val = old.get(key)
        new_val = new.get(key)

        if old_val != new_val:
            changes[key] = {"old": old_val, "new": new_val}

    return changes


class ActivityLogger:
    """
    Writes activity records to the `activity_logs` table.

    IMPORTANT: metadata must be JSON-compatible. Use model_dump(mode="json")
    when passing Pydantic models so UUIDs, dates and Decimals serialize.

    Usage:
        activity = ActivityLogger(postgres)

        activity.lead_converted(
            lead_id=lead.id,
            lead_name=lead.display_name,
            deal=deal,
        )

        history = activity.get_entity_history("lead", lead.id)
    """

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def record(
        self,
        action: ActivityType,
        entity_type: str,
        entity_id: UUID,
        entity_title: str,
        metadata: dict[str, Any] | None = None,
        org_id: UUID | None = None,
        user_id: UUID | None = None
    ) -> UUID | None:
        """
        Append an activity record.

        Args:
            action: Kind of event
            entity_type: "lead", "deal", "product", ...
            entity_id: ID of the entity acted on
            entity_title: Display name of the entity at the time of the event
            metadata: Extra JSON-compatible details used in the description
            org_id: Owning organization, when known
            user_id: Acting user (defaults to current context)

        Returns:
            ID of the new record, or None if an identical record was
            written within the duplicate window.
        """
        if user_id is None:
            user_id = get_current_user_id()

        description = describe(action, entity_title, metadata)
        now = now_utc()

        existing = self.postgres.execute_single(
            """
            SELECT id FROM activity_logs
            WHERE user_id = %s AND entity_type = %s AND entity_id = %s
              AND description = %s AND created_at >= %s
            LIMIT 1
            """,
            (user_id, entity_type, entity_id, description, now - DUPLICATE_WINDOW)
        )
        if existing is not None:
            return None

        activity_id = uuid4()
        self.postgres.execute(
            """
            INSERT INTO activity_logs (
                id, user_id, org_id, action_type, entity_type, entity_id,
                entity_title, description, metadata, created_at
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                activity_id, user_id, org_id, action.value, entity_type, entity_id,
                entity_title, description, Json(metadata or {}), now
            )
        )
        return activity_id

    def lead_created(self, lead_id: UUID, lead_name: str, metadata: dict[str, Any] | None = None,
                     org_id: UUID | None = None) -> UUID | None:
        return self.record(ActivityType.LEAD_CREATED, "lead", lead_id, lead_name, metadata, org_id)

    def lead_updated(self, lead_id: UUID, lead_name: str, changes: dict[str, Any],
                     org_id: UUID | None = None) -> UUID | None:
        return self.record(
            ActivityType.LEAD_UPDATED, "lead", lead_id, lead_name, {"changes": changes}, org_id
        )

    def lead_status_changed(self, lead_id: UUID, lead_name: str, from_status: str, to_status: str,
                            org_id: UUID | None = None) -> UUID | None:
        return self.record(
            ActivityType.LEAD_STATUS_CHANGED, "lead", lead_id, lead_name,
            {"from_status": from_status, "to_status": to_status}, org_id
        )

    def lead_converted(self, lead_id: UUID, lead_name: str, deal_id: UUID, deal_title: str,
                       deal_value: str, org_id: UUID | None = None) -> UUID | None:
        return self.record(
            ActivityType.LEAD_CONVERTED, "lead", lead_id, lead_name,
            {"deal_id": str(deal_id), "deal_title": deal_title, "deal_value": deal_value},
            org_id
        )

    def deal_created(self, deal_id: UUID, deal_title: str, metadata: dict[str, Any] | None = None,
                     org_id: UUID | None = None) -> UUID | None:
        return self.record(ActivityType.DEAL_CREATED, "deal", deal_id, deal_title, metadata, org_id)

    def product_linked(self, product_id: UUID, product_name: str, stripe_product_id: str,
                       prices_linked: int) -> UUID | None:
        return self.record(
            ActivityType.PRODUCT_LINKED, "product", product_id, product_name,
            {"stripe_product_id": stripe_product_id, "prices_linked": prices_linked}
        )

    def product_unlinked(self, product_id: UUID, product_name: str) -> UUID | None:
        return self.record(ActivityType.PRODUCT_UNLINKED, "product", product_id, product_name)

    def get_entity_history(
        self,
        entity_type: str,
        entity_id: UUID,
        limit: int = 100
    ) -> list[dict[str, Any]]:
        """
        Activity history for one entity, newest first.
        """
        return self.postgres.execute(
            """
            SELECT id, user_id, org_id, action_type, entity_type, entity_id,
                   entity_title, description, metadata, created_at
            FROM activity_logs
            WHERE entity_type = %s AND entity_id = %s
            ORDER BY created_at DESC
            LIMIT %s
            """,
            (entity_type, entity_id, limit)
        )

    def get_user_activity(
        self,
        user_id: UUID | None = None,
        limit: int = 100
    ) -> list[dict[str, Any]]:
        """
        Recent activity by a user (defaults to current context), newest first.
        """
        if user_id is None:
            user_id = get_current_user_id()

        return self.postgres.execute(
            """
            SELECT id, user_id, org_id, action_type, entity_type, entity_id,
                   entity_title, description, metadata, created_at
            FROM activity_logs
            WHERE user_id = %s
            ORDER BY created_at DESC
            LIMIT %s
            """,
            (user_id, limit)
        )
