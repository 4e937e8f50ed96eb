"""
Lead service for create, read and update.

Scoring runs after every authoritative write that touches a scoring field.
Score persistence and activity logging are degraded steps: their outcomes
are returned alongside the lead and never fail the write.
All operations are automatically scoped to the current user via RLS.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from core.activity import ActivityLogger, compute_changes
from core.exceptions import NotFoundError
from core.models import Lead, LeadCreate, LeadUpdate, LeadStatus
from core.outcomes import StepOutcome, attempt, skipped
from core.scoring import LeadAttributes, needs_rescore, score_lead
from utils.user_context import get_current_user_id
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

# Valid columns that can be updated. score is derived and never listed.
_UPDATABLE_COLUMNS = {
    "first_name", "last_name", "email", "phone",
    "company_name", "job_title", "source", "priority",
    "status", "value", "notes", "assigned_to"
}


@dataclass
class LeadResult:
    """A written lead and the outcomes of its side steps."""

    lead: Lead
    steps: list[StepOutcome] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return any(step.degraded for step in self.steps)


class LeadService:
    """Service for lead operations."""

    def __init__(self, postgres: PostgresClient, activity: ActivityLogger):
        self.postgres = postgres
        self.activity = activity

    def create(self, data: LeadCreate) -> LeadResult:
        """
        Create a new lead and score it from the written values.

        Args:
            data: Lead creation data

        Returns:
            LeadResult; lead.score reflects the persisted score when the
            score step succeeded, otherwise the column default.
        """
        user_id = get_current_user_id()
        lead_id = uuid4()
        now = now_utc()

        row = self.postgres.execute_returning(
            """
            INSERT INTO leads (
                id, user_id, org_id, status,
                first_name, last_name, email, phone,
                company_name, job_title, source, priority,
                value, notes, assigned_to, created_at, updated_at
            ) VALUES (
                %s, %s, %s, %s,
                %s, %s, %s, %s,
                %s, %s, %s, %s,
                %s, %s, %s, %s, %s
            )
            RETURNING *
            """,
            (
                lead_id, user_id, data.org_id, LeadStatus.NEW.value,
                data.first_name, data.last_name, data.email, data.phone,
                data.company_name, data.job_title, data.source, data.priority,
                data.value, data.notes, data.assigned_to, now, now
            )
        )[0]

        lead = Lead.model_validate(row)
        steps = []

        score_step = attempt("score", lambda: self._persist_score(lead))
        steps.append(score_step)
        if score_step.ok:
            lead = lead.model_copy(update={"score": score_step.value})

        steps.append(attempt(
            "activity",
            lambda: self.activity.lead_created(
                lead.id, lead.display_name,
                {"source": lead.source, "score": lead.score},
                org_id=lead.org_id
            )
        ))

        logger.info(f"Lead {lead.id} created with score {lead.score}")
        return LeadResult(lead=lead, steps=steps)

    def get_by_id(self, lead_id: UUID) -> Lead | None:
        """
        Get lead by ID.

        Returns:
            Lead if found, None otherwise.
            RLS automatically filters to current user.
        """
        row = self.postgres.execute_single(
            "SELECT * FROM leads WHERE id = %s",
            (lead_id,)
        )

        if row is None:
            return None

        return Lead.model_validate(row)

    def list_all(
        self,
        status: LeadStatus | None = None,
        source: str | None = None,
        limit: int = 50,
        offset: int = 0
    ) -> list[Lead]:
        """
        List leads with optional filters, newest first.
        """
        conditions = []
        params: list = []
        if status is not None:
            conditions.append("status = %s")
            params.append(status.value)
        if source:
            conditions.append("LOWER(source) = LOWER(%s)")
            params.append(source)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.extend([limit, offset])

        rows = self.postgres.execute(
            f"""
            SELECT * FROM leads
            {where}
            ORDER BY created_at DESC
            LIMIT %s OFFSET %s
            """,
            tuple(params)
        )

        return [Lead.model_validate(row) for row in rows]

    def update(self, lead_id: UUID, data: LeadUpdate) -> LeadResult:
        """
        Update lead fields and re-score when a scoring field changed.

        Args:
            lead_id: Lead UUID
            data: Fields to update; only fields present in the request are
                applied, so an explicit null clears a field

        Returns:
            LeadResult with the updated lead and side-step outcomes

        Raises:
            NotFoundError: If lead not found
        """
        current = self.get_by_id(lead_id)
        if current is None:
            raise NotFoundError("lead", lead_id)

        updates = data.model_dump(exclude_unset=True)
        # Status, source and priority can be changed but not cleared
        for name in ("status", "source", "priority"):
            if name in updates and updates[name] is None:
                del updates[name]

        valid_updates = {k: v for k, v in updates.items() if k in _UPDATABLE_COLUMNS}
        if not valid_updates:
            return LeadResult(lead=current)

        set_parts = []
        params = []
        for name, value in valid_updates.items():
            set_parts.append(f"{name} = %s")
            params.append(value)

        set_parts.append("updated_at = %s")
        params.append(now_utc())
        params.append(lead_id)

        row = self.postgres.execute_returning(
            f"""
            UPDATE leads
            SET {', '.join(set_parts)}
            WHERE id = %s
            RETURNING *
            """,
            tuple(params)
        )[0]

        updated = Lead.model_validate(row)
        steps = []

        if needs_rescore(valid_updates):
            # Merged pre-update state plus the delta, as written
            score_step = attempt("score", lambda: self._persist_score(updated))
            steps.append(score_step)
            if score_step.ok:
                updated = updated.model_copy(update={"score": score_step.value})
        else:
            steps.append(skipped("score"))

        changes = compute_changes(
            current.model_dump(mode="json"),
            updated.model_dump(mode="json")
        )
        if updated.status != current.status:
            steps.append(attempt(
                "activity",
                lambda: self.activity.lead_status_changed(
                    updated.id, updated.display_name,
                    current.status.value, updated.status.value,
                    org_id=updated.org_id
                )
            ))
        elif changes:
            steps.append(attempt(
                "activity",
                lambda: self.activity.lead_updated(
                    updated.id, updated.display_name, changes, org_id=updated.org_id
                )
            ))

        return LeadResult(lead=updated, steps=steps)

    def mark_converted(self, lead_id: UUID) -> None:
        """
        Set a lead's status to converted.

        Raises:
            NotFoundError: If no row was updated
        """
        rows = self.postgres.execute_returning(
            """
            UPDATE leads
            SET status = %s, updated_at = %s
            WHERE id = %s
            RETURNING id
            """,
            (LeadStatus.CONVERTED.value, now_utc(), lead_id)
        )
        if not rows:
            raise NotFoundError("lead", lead_id)

    def _persist_score(self, lead: Lead) -> int:
        """Compute the lead's score and write it. Returns the score."""
        score = score_lead(LeadAttributes.from_mapping(lead.model_dump()))
        self.postgres.execute(
            "UPDATE leads SET score = %s WHERE id = %s",
            (score, lead.id)
        )
        return score
