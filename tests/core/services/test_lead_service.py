"""Tests for LeadService."""

import pytest
from uuid import uuid4

from core.exceptions import NotFoundError
from core.models import LeadCreate, LeadStatus, LeadUpdate


@pytest.fixture
def lead_service(db, activity):
    """LeadService with mocked DB and activity feed."""
    from core.services.lead_service import LeadService

    return LeadService(db, activity)


class TestLeadCreate:
    """Tests for LeadService.create."""

    def test_scores_from_written_values(self, db, as_test_user, lead_service, make_lead):
        """Referral CEO with company, email and high priority scores 85."""
        row = make_lead()
        db.execute_returning.return_value = [row]

        result = lead_service.create(LeadCreate(
            first_name="Jane", last_name="Doe", email="jane@acme.com",
            company_name="Acme", job_title="CEO", source="referral", priority="high",
        ))

        assert result.lead.score == 85
        assert not result.degraded
        db.execute.assert_called_once_with(
            "UPDATE leads SET score = %s WHERE id = %s", (85, row["id"])
        )

    def test_inserts_as_new_for_current_user(self, db, as_test_user, test_user_id, lead_service, make_lead):
        """Status is always new and user_id comes from context."""
        db.execute_returning.return_value = [make_lead()]

        lead_service.create(LeadCreate(email="jane@acme.com"))

        params = db.execute_returning.call_args.args[1]
        assert params[1] == test_user_id
        assert params[3] == "new"

    def test_score_failure_is_degraded(self, db, as_test_user, lead_service, make_lead, activity):
        """A failed score write still returns the lead."""
        db.execute_returning.return_value = [make_lead(score=0)]
        db.execute.side_effect = RuntimeError("connection reset")

        result = lead_service.create(LeadCreate(email="jane@acme.com"))

        assert result.degraded
        assert result.lead.score == 0
        assert [s.step for s in result.steps if s.degraded] == ["score"]
        activity.lead_created.assert_called_once()

    def test_activity_failure_is_degraded(self, db, as_test_user, lead_service, make_lead, activity):
        db.execute_returning.return_value = [make_lead()]
        activity.lead_created.side_effect = RuntimeError("feed down")

        result = lead_service.create(LeadCreate(email="jane@acme.com"))

        assert result.lead.score == 85
        assert [s.step for s in result.steps if s.degraded] == ["activity"]

    def test_requires_contact_point(self):
        """Lead with nothing to contact is rejected before any write."""
        from pydantic import ValidationError

        with pytest.raises(ValidationError, match="At least name, email, phone, or company"):
            LeadCreate(job_title="CEO", first_name="  ")


class TestLeadUpdate:
    """Tests for LeadService.update."""

    def test_missing_lead_raises(self, db, as_test_user, lead_service):
        with pytest.raises(NotFoundError):
            lead_service.update(uuid4(), LeadUpdate(phone="555"))

    def test_rescores_when_scoring_field_changes(self, db, as_test_user, lead_service, make_lead):
        """Priority high -> low drops the score by 10."""
        current = make_lead(score=85)
        db.execute_single.return_value = current
        db.execute_returning.return_value = [{**current, "priority": "low"}]

        result = lead_service.update(current["id"], LeadUpdate(priority="low"))

        assert result.lead.score == 75
        query = db.execute_returning.call_args.args[0]
        assert "priority = %s" in query
        assert "score" not in query

    def test_skips_rescore_for_other_fields(self, db, as_test_user, lead_service, make_lead):
        current = make_lead(score=85)
        db.execute_single.return_value = current
        db.execute_returning.return_value = [{**current, "notes": "Call back"}]

        result = lead_service.update(current["id"], LeadUpdate(notes="Call back"))

        assert result.lead.score == 85
        db.execute.assert_not_called()
        assert result.steps[0].step == "score"
        assert result.steps[0].value is None

    def test_status_change_is_recorded(self, db, as_test_user, lead_service, make_lead, activity):
        current = make_lead()
        db.execute_single.return_value = current
        db.execute_returning.return_value = [{**current, "status": "qualified"}]

        result = lead_service.update(current["id"], LeadUpdate(status=LeadStatus.QUALIFIED))

        assert result.lead.status == LeadStatus.QUALIFIED
        activity.lead_status_changed.assert_called_once_with(
            current["id"], "Jane Doe", "new", "qualified", org_id=None
        )
        activity.lead_updated.assert_not_called()

    def test_null_status_is_ignored(self, db, as_test_user, lead_service, make_lead):
        """Status can be changed but not cleared."""
        current = make_lead()
        db.execute_single.return_value = current

        result = lead_service.update(current["id"], LeadUpdate(status=None))

        db.execute_returning.assert_not_called()
        assert result.lead.id == current["id"]

    def test_score_is_not_updatable(self):
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            LeadUpdate(score=100)


class TestLeadReads:
    """Tests for get_by_id and list_all."""

    def test_get_returns_none_for_missing(self, db, as_test_user, lead_service):
        assert lead_service.get_by_id(uuid4()) is None

    def test_list_filters_by_status_and_source(self, db, as_test_user, lead_service, make_lead):
        db.execute.return_value = [make_lead(), make_lead()]

        leads = lead_service.list_all(status=LeadStatus.NEW, source="Referral", limit=10)

        assert len(leads) == 2
        query, params = db.execute.call_args.args
        assert "status = %s" in query
        assert "LOWER(source) = LOWER(%s)" in query
        assert params == ("new", "Referral", 10, 0)


class TestMarkConverted:
    def test_missing_lead_raises(self, db, as_test_user, lead_service):
        with pytest.raises(NotFoundError):
            lead_service.mark_converted(uuid4())

    def test_sets_converted(self, db, as_test_user, lead_service):
        lead_id = uuid4()
        db.execute_returning.return_value = [{"id": lead_id}]

        lead_service.mark_converted(lead_id)

        assert db.execute_returning.call_args.args[1][0] == "converted"
