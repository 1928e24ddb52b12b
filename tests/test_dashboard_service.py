"""
Tests for ppm/services/dashboard_service.py — store-backed roll-ups.

Every roll-up must exclude soft-deleted rows and other organizations' rows,
and must survive empty hierarchies.
"""

import pytest

from ppm.core.exceptions import NotFoundError
from ppm.models import db
from ppm.models.project import Project
from ppm.services import dashboard_service, portfolio_service, raid_service
from ppm.services.helpers import tenant_store as store


def _program(org_id, portfolio_id=None, name="Program"):
    if portfolio_id is None:
        portfolio_id = portfolio_service.create_portfolio({"name": "P"}, organization_id=org_id).id
    return portfolio_service.create_program(
        {"name": name, "portfolio_id": portfolio_id}, organization_id=org_id,
    )


class TestProgramSummary:
    def test_program_without_projects_has_zero_average(self, org_a):
        program = _program(org_a.id)
        result = dashboard_service.get_program_summary(program.id, org_a.id)
        assert result["projects"] == []
        assert result["summary"] == {"total_budget": 0, "actual_cost": 0, "avg_complete": 0}

    def test_sums_active_children_only(self, org_a, make_project):
        program = _program(org_a.id)
        make_project(org_a.id, program_id=program.id, total_budget=1000, actual_cost=400, percent_complete=40)
        make_project(org_a.id, program_id=program.id, total_budget=500, actual_cost=100, percent_complete=80)
        gone = make_project(org_a.id, program_id=program.id, total_budget=9999, percent_complete=100)
        store.delete(Project, org_a.id, gone.id)

        result = dashboard_service.get_program_summary(program.id, org_a.id)

        assert len(result["projects"]) == 2
        assert result["summary"]["total_budget"] == 1500
        assert result["summary"]["actual_cost"] == 500
        assert result["summary"]["avg_complete"] == 60

    def test_foreign_program_is_not_found(self, org_a, org_b):
        program = _program(org_b.id)
        with pytest.raises(NotFoundError):
            dashboard_service.get_program_summary(program.id, org_a.id)


class TestPortfolioDashboard:
    def test_counts_per_portfolio(self, org_a, make_project):
        portfolio = portfolio_service.create_portfolio({"name": "Core"}, organization_id=org_a.id)
        p1 = _program(org_a.id, portfolio.id, "One")
        p2 = _program(org_a.id, portfolio.id, "Two")
        make_project(org_a.id, program_id=p1.id, rag_status="RED")
        make_project(org_a.id, program_id=p1.id, rag_status="GREEN")
        make_project(org_a.id, program_id=p2.id, rag_status="AMBER")

        cards = dashboard_service.get_portfolio_dashboard(org_a.id)

        card = next(c for c in cards if c["id"] == portfolio.id)
        assert card["name"] == "Core"
        assert card["program_count"] == 2
        assert card["total_projects"] == 3
        assert (card["red_projects"], card["amber_projects"], card["green_projects"]) == (1, 1, 1)

    def test_deleted_program_drops_out(self, org_a, make_project):
        portfolio = portfolio_service.create_portfolio({"name": "Core"}, organization_id=org_a.id)
        keep = _program(org_a.id, portfolio.id, "Keep")
        gone = _program(org_a.id, portfolio.id, "Gone")
        make_project(org_a.id, program_id=gone.id, rag_status="RED")
        portfolio_service.remove_program(gone.id, organization_id=org_a.id)

        card = dashboard_service.get_portfolio_dashboard(org_a.id)[0]

        assert [p["id"] for p in card["programs"]] == [keep.id]
        assert card["total_projects"] == 0
        assert card["red_projects"] == 0

    def test_empty_organization(self, org_a):
        assert dashboard_service.get_portfolio_dashboard(org_a.id) == []

    def test_other_tenant_invisible(self, org_a, org_b, make_project):
        make_project(org_b.id)
        assert dashboard_service.get_portfolio_dashboard(org_a.id) == []


class TestExecutiveDashboard:
    def test_summary_and_top_risks(self, org_a, make_project):
        p1 = make_project(org_a.id, total_budget=1000, actual_cost=500, percent_complete=40)
        p2 = make_project(org_a.id, total_budget=1000, actual_cost=255, percent_complete=61, rag_status="RED")
        raid_service.create_risk(p1.id, {"title": "r1", "probability": "HIGH", "impact": "HIGH"},
                                 organization_id=org_a.id)
        raid_service.create_risk(p2.id, {"title": "r2", "probability": "VERY_HIGH", "impact": "CRITICAL"},
                                 organization_id=org_a.id)
        raid_service.create_risk(p2.id, {"title": "closed", "probability": "VERY_HIGH",
                                         "impact": "CRITICAL", "status": "CLOSED"},
                                 organization_id=org_a.id)

        result = dashboard_service.get_executive_dashboard(org_a.id)

        s = result["summary"]
        assert s["projects"] == 2
        assert s["portfolios"] == 2
        assert s["programs"] == 2
        assert s["total_budget"] == 2000
        assert s["budget_utilization"] == 38
        assert s["avg_completion"] == 51
        assert result["rag_distribution"] == {"green": 1, "amber": 0, "red": 1}
        assert [r["title"] for r in result["top_risks"]] == ["r2", "r1"]

    def test_top_n_limits_risks(self, org_a, make_project):
        project = make_project(org_a.id)
        for i in range(4):
            raid_service.create_risk(project.id, {"title": f"r{i}"}, organization_id=org_a.id)
        result = dashboard_service.get_executive_dashboard(org_a.id, top_n=2)
        assert len(result["top_risks"]) == 2

    def test_risks_of_deleted_projects_excluded(self, org_a, make_project):
        project = make_project(org_a.id)
        raid_service.create_risk(project.id, {"title": "orphan"}, organization_id=org_a.id)
        store.delete(Project, org_a.id, project.id)
        result = dashboard_service.get_executive_dashboard(org_a.id)
        assert result["top_risks"] == []
        assert result["summary"]["projects"] == 0

    def test_empty_organization(self, org_a):
        result = dashboard_service.get_executive_dashboard(org_a.id)
        assert result["summary"]["budget_utilization"] == 0
        assert result["summary"]["avg_completion"] == 0
        assert result["top_risks"] == []


class TestRiskMatrix:
    def test_matrix_for_project(self, org_a, make_project):
        project = make_project(org_a.id)
        raid_service.create_risk(project.id, {"title": "a", "probability": "HIGH", "impact": "HIGH"},
                                 organization_id=org_a.id)
        raid_service.create_risk(project.id, {"title": "b", "probability": "LOW", "impact": "LOW",
                                              "status": "MITIGATED"},
                                 organization_id=org_a.id)
        db.session.commit()

        result = dashboard_service.get_risk_matrix(project.id, org_a.id)

        assert [r["title"] for r in result["risks"]] == ["a", "b"]
        assert result["summary"]["high"] == 1
        assert result["summary"]["mitigated"] == 1
        assert result["heatmap"][3][3] == 1
        assert sum(map(sum, result["heatmap"])) == 1

    def test_foreign_project_is_not_found(self, org_a, org_b, make_project):
        project = make_project(org_b.id)
        with pytest.raises(NotFoundError):
            dashboard_service.get_risk_matrix(project.id, org_a.id)
