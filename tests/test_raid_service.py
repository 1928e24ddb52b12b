"""Tests for ppm/services/raid_service.py — risk scoring lifecycle and issues."""

import pytest

from ppm.core.exceptions import NotFoundError, ValidationError
from ppm.services import audit_service, raid_service


class TestCreateRisk:
    def test_score_computed_from_ratings(self, org_a, make_project):
        project = make_project(org_a.id)
        risk = raid_service.create_risk(
            project.id, {"title": "Vendor delay", "probability": "high", "impact": "HIGH"},
            organization_id=org_a.id,
        )
        assert risk.probability == "HIGH"
        assert risk.risk_score == 16
        assert risk.band == "HIGH"

    def test_client_supplied_score_ignored(self, org_a, make_project):
        project = make_project(org_a.id)
        risk = raid_service.create_risk(
            project.id, {"title": "x", "risk_score": 25}, organization_id=org_a.id,
        )
        assert risk.risk_score == 9

    def test_unmapped_category_is_accepted(self, org_a, make_project):
        project = make_project(org_a.id)
        risk = raid_service.create_risk(
            project.id, {"title": "x", "category": "ASTROLOGICAL"}, organization_id=org_a.id,
        )
        assert risk.category == "ASTROLOGICAL"

    def test_invalid_status_rejected(self, org_a, make_project):
        project = make_project(org_a.id)
        with pytest.raises(ValidationError):
            raid_service.create_risk(project.id, {"title": "x", "status": "WHATEVER"}, organization_id=org_a.id)

    def test_project_of_other_tenant_rejected(self, org_a, org_b, make_project):
        project = make_project(org_b.id)
        with pytest.raises(NotFoundError):
            raid_service.create_risk(project.id, {"title": "x"}, organization_id=org_a.id)


class TestUpdateRisk:
    def test_recompute_on_single_field_change(self, org_a, make_project):
        project = make_project(org_a.id)
        risk = raid_service.create_risk(
            project.id, {"title": "x", "probability": "MEDIUM", "impact": "MEDIUM"},
            organization_id=org_a.id,
        )
        assert risk.risk_score == 9

        updated = raid_service.update_risk(risk.id, {"probability": "VERY_HIGH"}, organization_id=org_a.id)

        assert updated.probability == "VERY_HIGH"
        assert updated.impact == "MEDIUM"
        assert updated.risk_score == 15
        assert updated.band == "HIGH"

    def test_blank_rating_inherits_stored_value(self, org_a, make_project):
        project = make_project(org_a.id)
        risk = raid_service.create_risk(
            project.id, {"title": "x", "probability": "HIGH", "impact": "MEDIUM"},
            organization_id=org_a.id,
        )
        assert risk.risk_score == 12

        updated = raid_service.update_risk(risk.id, {"probability": None, "impact": "CRITICAL"},
                                           organization_id=org_a.id)
        assert updated.probability == "HIGH"
        assert updated.risk_score == 20

        updated = raid_service.update_risk(risk.id, {"impact": ""}, organization_id=org_a.id)
        assert updated.impact == "CRITICAL"
        assert updated.risk_score == 20

    def test_score_change_is_audited(self, org_a, make_project):
        project = make_project(org_a.id)
        risk = raid_service.create_risk(project.id, {"title": "x"}, organization_id=org_a.id)
        raid_service.update_risk(risk.id, {"impact": "CRITICAL"}, organization_id=org_a.id)
        logs = audit_service.list_audit_logs(organization_id=org_a.id, entity_type="risk")
        assert logs[0].action == "score_change"
        assert logs[0].old_values == {"risk_score": 9}
        assert logs[0].new_values == {"risk_score": 15}

    def test_risk_score_in_patch_ignored(self, org_a, make_project):
        project = make_project(org_a.id)
        risk = raid_service.create_risk(project.id, {"title": "x"}, organization_id=org_a.id)
        updated = raid_service.update_risk(risk.id, {"risk_score": 1, "title": "y"}, organization_id=org_a.id)
        assert updated.risk_score == 9
        assert updated.title == "y"

    def test_update_foreign_risk_not_found(self, org_a, org_b, make_project):
        project = make_project(org_b.id)
        risk = raid_service.create_risk(project.id, {"title": "x"}, organization_id=org_b.id)
        with pytest.raises(NotFoundError):
            raid_service.update_risk(risk.id, {"impact": "LOW"}, organization_id=org_a.id)


class TestListAndRemove:
    def test_list_ordered_by_score_desc(self, org_a, make_project):
        project = make_project(org_a.id)
        raid_service.create_risk(project.id, {"title": "low", "probability": "LOW", "impact": "LOW"},
                                 organization_id=org_a.id)
        raid_service.create_risk(project.id, {"title": "top", "probability": "VERY_HIGH", "impact": "CRITICAL"},
                                 organization_id=org_a.id)
        titles = [r.title for r in raid_service.list_risks(project.id, organization_id=org_a.id)]
        assert titles == ["top", "low"]

    def test_removed_risk_not_listed(self, org_a, make_project):
        project = make_project(org_a.id)
        risk = raid_service.create_risk(project.id, {"title": "x"}, organization_id=org_a.id)
        raid_service.remove_risk(risk.id, organization_id=org_a.id)
        assert raid_service.list_risks(project.id, organization_id=org_a.id) == []
        with pytest.raises(NotFoundError):
            raid_service.get_risk(risk.id, organization_id=org_a.id)


class TestIssues:
    def test_resolving_sets_timestamp(self, org_a, make_project):
        project = make_project(org_a.id)
        issue = raid_service.create_issue(project.id, {"title": "Outage", "severity": "HIGH"},
                                          organization_id=org_a.id)
        assert issue.resolved_at is None
        resolved = raid_service.update_issue(issue.id, {"status": "RESOLVED"}, organization_id=org_a.id)
        assert resolved.resolved_at is not None

    def test_invalid_severity(self, org_a, make_project):
        project = make_project(org_a.id)
        with pytest.raises(ValidationError):
            raid_service.create_issue(project.id, {"title": "x", "severity": "MEH"}, organization_id=org_a.id)
