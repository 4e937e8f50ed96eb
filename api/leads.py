"""Lead endpoints: CRUD with scoring, and conversion to deals."""

from uuid import UUID

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel

from api.base import success_response
from core.exceptions import NotFoundError
from core.models import LeadCreate, LeadStatus, LeadUpdate


class ConvertRequest(BaseModel):
    lead_id: UUID


def _lead_payload(result) -> dict:
    data = result.lead.model_dump(mode="json")
    data["degraded_steps"] = [s.step for s in result.steps if s.degraded]
    return data


def create_leads_router(services: dict) -> APIRouter:
    router = APIRouter()

    lead_svc = services["lead"]
    conversion_svc = services["conversion"]

    @router.get("/leads")
    async def list_leads(
        request: Request,
        status: LeadStatus | None = Query(None),
        source: str | None = Query(None),
        limit: int = Query(50, ge=1, le=500),
        offset: int = Query(0, ge=0),
    ):
        leads = lead_svc.list_all(status=status, source=source, limit=limit, offset=offset)
        return success_response(
            [lead.model_dump(mode="json") for lead in leads]
        ).model_dump(mode="json")

    # Registered before /leads/{lead_id} so "convert" isn't parsed as an id
    @router.post("/leads/convert")
    async def convert_lead(request: Request, body: ConvertRequest):
        result = conversion_svc.convert(body.lead_id)
        return {
            "success": True,
            "deal": result.deal.model_dump(mode="json"),
            "lead_id": str(result.lead_id),
            "message": "Lead successfully converted to deal",
        }

    @router.get("/leads/{lead_id}")
    async def get_lead(request: Request, lead_id: UUID):
        lead = lead_svc.get_by_id(lead_id)
        if lead is None:
            raise NotFoundError("lead", lead_id)
        return success_response(lead.model_dump(mode="json")).model_dump(mode="json")

    @router.post("/leads")
    async def create_lead(request: Request, body: LeadCreate):
        result = lead_svc.create(body)
        return success_response(_lead_payload(result)).model_dump(mode="json")

    @router.put("/leads/{lead_id}")
    async def update_lead(request: Request, lead_id: UUID, body: LeadUpdate):
        result = lead_svc.update(lead_id, body)
        return success_response(_lead_payload(result)).model_dump(mode="json")

    return router
