"""Dashboards — store-backed roll-ups over the portfolio → program → project tree.

Children are always fetched through the tenant store, never through ORM
relationships, so soft-deleted rows drop out of every aggregate.

All functions are read-only. Multi-step reads are not wrapped in a
transaction; a concurrent write may show up in one step and not another.
"""
import logging

from ppm.models.portfolio import Portfolio, Program
from ppm.models.project import Project
from ppm.models.raid import Risk
from ppm.services.helpers import tenant_store as store
from ppm.services.rollup import executive_rollup, portfolio_rollup, program_rollup, risk_matrix

logger = logging.getLogger(__name__)

DEFAULT_TOP_RISKS = 10


def _projects_by_program(organization_id: int, program_ids: list[int]) -> dict[int, list[Project]]:
    grouped = {pid: [] for pid in program_ids}
    if not program_ids:
        return grouped
    for p in store.find_many(Project, organization_id, program_id=program_ids, order_by=("id",)):
        grouped[p.program_id].append(p)
    return grouped


def get_portfolio_dashboard(organization_id: int) -> list[dict]:
    """One health card per portfolio: program/project counts and RAG split."""
    portfolios = store.find_many(Portfolio, organization_id, order_by=("-created_at", "-id"))
    programs = store.find_many(
        Program, organization_id, portfolio_id=[p.id for p in portfolios], order_by=("id",),
    ) if portfolios else []
    projects = _projects_by_program(organization_id, [pg.id for pg in programs])

    cards = []
    for portfolio in portfolios:
        mine = [pg for pg in programs if pg.portfolio_id == portfolio.id]
        card = portfolio.to_dict()
        card["programs"] = [pg.to_dict() for pg in mine]
        card.update(portfolio_rollup({pg.id: projects[pg.id] for pg in mine}))
        cards.append(card)
    return cards


def get_program_summary(program_id: int, organization_id: int) -> dict:
    """Program with its active projects and a budget / progress summary.

    Raises:
        NotFoundError: program missing, deleted or owned by another organization.
    """
    program = store.find_one(Program, organization_id, id=program_id)
    projects = store.find_many(Project, organization_id, program_id=program.id, order_by=("id",))
    result = program.to_dict()
    result["projects"] = [p.to_dict() for p in projects]
    result["summary"] = program_rollup(projects)
    return result


def get_executive_dashboard(organization_id: int, top_n: int = DEFAULT_TOP_RISKS) -> dict:
    """Organization-wide KPIs, RAG distribution and the highest-scored open risks."""
    projects = store.find_many(Project, organization_id, order_by=("id",))
    dashboard = executive_rollup(
        projects,
        portfolio_count=store.count(Portfolio, organization_id),
        program_count=store.count(Program, organization_id),
    )
    top_risks = []
    if projects and top_n > 0:
        top_risks = store.find_many(
            Risk, organization_id,
            status="OPEN",
            project_id=[p.id for p in projects],
            order_by=("-risk_score", "id"),
            limit=top_n,
        )
    dashboard["top_risks"] = [r.to_dict() for r in top_risks]
    logger.debug(
        "Executive dashboard organization=%s projects=%d top_risks=%d",
        organization_id, len(projects), len(top_risks),
    )
    return dashboard


def get_risk_matrix(project_id: int, organization_id: int) -> dict:
    """Risks of one project (score desc) with band counts and a 5×5 heatmap."""
    store.find_one(Project, organization_id, id=project_id)
    risks = store.find_many(Risk, organization_id, project_id=project_id, order_by=("-risk_score", "id"))
    matrix = risk_matrix(risks)
    return {"risks": [r.to_dict() for r in risks], **matrix}
