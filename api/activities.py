"""Activity feed endpoint."""

from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import success_response
from core.exceptions import ValidationError


def create_activities_router(services: dict) -> APIRouter:
    router = APIRouter()

    activity = services["activity"]

    @router.get("/activities")
    async def list_activities(
        request: Request,
        entity_type: str | None = Query(None),
        entity_id: UUID | None = Query(None),
        limit: int = Query(100, ge=1, le=500),
    ):
        """
        Newest-first activity feed.

        With entity_type and entity_id, the history of that entity; otherwise
        the acting user's own activity.
        """
        if (entity_type is None) != (entity_id is None):
            raise ValidationError("entity_type and entity_id must be given together")

        if entity_type is not None:
            rows = activity.get_entity_history(entity_type, entity_id, limit=limit)
        else:
            rows = activity.get_user_activity(limit=limit)

        return success_response(rows).model_dump(mode="json")

    return router
