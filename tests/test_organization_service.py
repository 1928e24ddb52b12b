"""Tests for ppm/services/organization_service.py and audit_service."""

import pytest

from ppm.core.exceptions import ConflictError, NotFoundError, ValidationError
from ppm.models import db
from ppm.services import audit_service, organization_service as org_svc


class TestOrganization:
    def test_duplicate_slug_conflicts(self, org_a):
        with pytest.raises(ConflictError):
            org_svc.create_organization({"name": "Other", "slug": "ACME"})

    def test_update_cannot_touch_another_tenant(self, org_a, org_b):
        org_svc.update_organization(org_a.id, {"name": "Acme Inc"})
        assert org_svc.get_organization(org_a.id).name == "Acme Inc"
        assert org_svc.get_organization(org_b.id).name == "Globex"

    def test_inactive_organization_fails_identity_check(self, org_a):
        org_svc.update_organization(org_a.id, {"is_active": False})
        with pytest.raises(NotFoundError):
            org_svc.ensure_active_organization(org_a.id)

    def test_stats_count_active_rows(self, org_a, make_project):
        make_project(org_a.id)
        gone = make_project(org_a.id)
        from ppm.services.project_service import remove_project

        remove_project(gone.id, organization_id=org_a.id)
        org_svc.create_user({"email": "a@acme.test"}, organization_id=org_a.id)

        stats = org_svc.get_organization_stats(org_a.id)

        assert stats == {"portfolios": 2, "programs": 2, "projects": 1, "users": 1}


class TestUsers:
    def test_email_unique_within_organization(self, org_a, org_b):
        org_svc.create_user({"email": "dev@example.test"}, organization_id=org_a.id)
        with pytest.raises(ConflictError):
            org_svc.create_user({"email": "DEV@example.test"}, organization_id=org_a.id)
        # Same email in another tenant is fine
        org_svc.create_user({"email": "dev@example.test"}, organization_id=org_b.id)

    def test_invalid_role(self, org_a):
        with pytest.raises(ValidationError):
            org_svc.create_user({"email": "x@y.test", "role": "OVERLORD"}, organization_id=org_a.id)

    def test_remove_deactivates_and_hides(self, org_a):
        user = org_svc.create_user({"email": "bye@acme.test"}, organization_id=org_a.id)
        org_svc.remove_user(user.id, organization_id=org_a.id)
        assert user.is_active is False
        assert user.deleted_at is not None
        assert org_svc.list_users(organization_id=org_a.id) == []


class TestAuditLog:
    def test_newest_first_and_scoped(self, org_a, org_b):
        audit_service.write_audit(organization_id=org_a.id, entity_type="project", action="create", entity_id=1)
        audit_service.write_audit(organization_id=org_a.id, entity_type="project", action="update", entity_id=1)
        audit_service.write_audit(organization_id=org_b.id, entity_type="project", action="create", entity_id=2)
        db.session.commit()

        logs = audit_service.list_audit_logs(organization_id=org_a.id)

        assert [entry.action for entry in logs] == ["update", "create"]

    def test_capped(self, org_a, monkeypatch):
        monkeypatch.setattr(audit_service, "MAX_ENTRIES", 3)
        for i in range(5):
            audit_service.write_audit(organization_id=org_a.id, entity_type="risk", action="create", entity_id=i)
        assert len(audit_service.list_audit_logs(organization_id=org_a.id)) == 3
