"""
HTTP glue tests — identity resolution, error mapping and the main endpoints.

Data is committed before each request: the test client runs every request
in its own application context and database session.
"""

import jwt

from ppm.models import db
from ppm.services import raid_service


class TestIdentity:
    def test_health_needs_no_token(self, client):
        res = client.get("/api/v1/health")
        assert res.status_code == 200
        assert res.get_json()["status"] == "ok"

    def test_missing_token_is_401(self, client):
        res = client.get("/api/v1/portfolios/dashboard")
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_UNAUTHORIZED"

    def test_bad_signature_is_401(self, client, org_a):
        token = jwt.encode({"organization_id": org_a.id}, "wrong-key", algorithm="HS256")
        res = client.get("/api/v1/portfolios/dashboard", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401

    def test_token_without_organization_is_401(self, client, app):
        token = jwt.encode({"sub": "1"}, app.config["SECRET_KEY"], algorithm="HS256")
        res = client.get("/api/v1/portfolios/dashboard", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401

    def test_unknown_organization_is_404(self, client, auth_headers):
        res = client.get("/api/v1/portfolios/dashboard", headers=auth_headers(424242))
        assert res.status_code == 404


class TestDashboards:
    def test_portfolio_dashboard(self, client, org_a, auth_headers, make_project):
        make_project(org_a.id, rag_status="RED")
        res = client.get("/api/v1/portfolios/dashboard", headers=auth_headers(org_a.id))
        assert res.status_code == 200
        cards = res.get_json()
        assert cards[0]["total_projects"] == 1
        assert cards[0]["red_projects"] == 1

    def test_program_summary_cross_tenant_is_404(self, client, org_a, org_b, auth_headers, make_project):
        project = make_project(org_b.id)
        res = client.get(f"/api/v1/programs/{project.program_id}/summary", headers=auth_headers(org_a.id))
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"

    def test_executive_dashboard(self, client, org_a, auth_headers, make_project):
        make_project(org_a.id, total_budget=200, actual_cost=50)
        res = client.get("/api/v1/reports/executive-dashboard", headers=auth_headers(org_a.id))
        assert res.status_code == 200
        body = res.get_json()
        assert body["summary"]["budget_utilization"] == 25
        assert body["top_risks"] == []

    def test_project_evm(self, client, org_a, auth_headers, make_project):
        project = make_project(org_a.id, total_budget=1000, planned_value=400, earned_value=300, actual_cost=300)
        res = client.get(f"/api/v1/projects/{project.id}/evm", headers=auth_headers(org_a.id))
        assert res.status_code == 200
        body = res.get_json()
        assert body["project_id"] == project.id
        assert body["cpi"] == 1.0
        assert body["spi"] == 0.75
        assert body["schedule_performance"] == "BEHIND"


class TestRiskEndpoints:
    def test_create_update_delete_cycle(self, client, org_a, auth_headers, make_project):
        project = make_project(org_a.id)
        headers = auth_headers(org_a.id)

        res = client.post(f"/api/v1/projects/{project.id}/risks",
                          json={"title": "Key person leaves", "probability": "MEDIUM", "impact": "MEDIUM"},
                          headers=headers)
        assert res.status_code == 201
        risk = res.get_json()
        assert risk["risk_score"] == 9

        res = client.put(f"/api/v1/risks/{risk['id']}", json={"probability": "VERY_HIGH"}, headers=headers)
        assert res.status_code == 200
        assert res.get_json()["risk_score"] == 15

        res = client.get(f"/api/v1/projects/{project.id}/risk-matrix", headers=headers)
        assert res.get_json()["heatmap"][4][2] == 1

        res = client.delete(f"/api/v1/risks/{risk['id']}", headers=headers)
        assert res.status_code == 200
        res = client.get(f"/api/v1/projects/{project.id}/risks", headers=headers)
        assert res.get_json()["total"] == 0

    def test_invalid_status_is_422(self, client, org_a, auth_headers, make_project):
        project = make_project(org_a.id)
        res = client.post(f"/api/v1/projects/{project.id}/risks",
                          json={"title": "x", "status": "NOPE"}, headers=auth_headers(org_a.id))
        assert res.status_code == 422
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_non_string_title_is_422(self, client, org_a, auth_headers, make_project):
        project = make_project(org_a.id)
        res = client.post(f"/api/v1/projects/{project.id}/risks",
                          json={"title": 123}, headers=auth_headers(org_a.id))
        assert res.status_code == 422
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_foreign_risk_update_is_404(self, client, org_a, org_b, auth_headers, make_project):
        project = make_project(org_b.id)
        risk = raid_service.create_risk(project.id, {"title": "x"}, organization_id=org_b.id)
        db.session.commit()
        res = client.put(f"/api/v1/risks/{risk.id}", json={"impact": "LOW"}, headers=auth_headers(org_a.id))
        assert res.status_code == 404


class TestBudgetsAndValidation:
    def test_budget_summary(self, client, org_a, auth_headers, make_project):
        project = make_project(org_a.id)
        headers = auth_headers(org_a.id)
        res = client.post(f"/api/v1/projects/{project.id}/budgets",
                          json={"budget_type": "OPEX", "planned_amount": 120}, headers=headers)
        assert res.status_code == 201
        res = client.get(f"/api/v1/projects/{project.id}/budgets", headers=headers)
        assert res.get_json()["summary"]["opex"] == 120

    def test_negative_amount_is_400(self, client, org_a, auth_headers):
        res = client.post("/api/v1/projects", json={"name": "x", "actual_cost": -5},
                          headers=auth_headers(org_a.id))
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_NUMERIC"
