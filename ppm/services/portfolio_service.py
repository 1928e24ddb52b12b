"""Portfolio / program service layer.

Transaction policy: functions use flush(), never commit().
Caller (route handler) is responsible for db.session.commit().

Provides:
- Portfolio CRUD
- Program CRUD with parent-portfolio tenant check
- Audit trail for deletes
"""
import logging
from typing import Any

from ppm.models.portfolio import PROGRAM_STATUSES, RAG_STATUSES, Portfolio, Program
from ppm.services.audit_service import write_audit
from ppm.services.evm import validate_amounts
from ppm.services.helpers import tenant_store as store
from ppm.utils.helpers import pick_fields, require_text, validate_enum

logger = logging.getLogger(__name__)

PORTFOLIO_FIELDS = (
    "name", "description", "strategic_objectives", "owner_id",
    "total_budget", "allocated_budget", "rag_status",
)
PROGRAM_FIELDS = (
    "portfolio_id", "name", "description", "program_manager_id", "status",
    "total_budget", "allocated_budget", "rag_status", "start_date", "end_date",
)
MONEY_FIELDS = ("total_budget", "allocated_budget")


def _validate_common(patch: dict):
    if "rag_status" in patch:
        validate_enum(patch["rag_status"], RAG_STATUSES, "rag_status")
    validate_amounts(patch, MONEY_FIELDS)


# ── Portfolio ────────────────────────────────────────────────────────────


def list_portfolios(*, organization_id: int) -> list[Portfolio]:
    return store.find_many(Portfolio, organization_id, order_by=("-created_at", "-id"))


def get_portfolio(portfolio_id: int, *, organization_id: int) -> Portfolio:
    return store.find_one(Portfolio, organization_id, id=portfolio_id)


def create_portfolio(data: dict[str, Any], *, organization_id: int, created_by: int | None = None) -> Portfolio:
    patch = pick_fields(data, PORTFOLIO_FIELDS)
    patch["name"] = require_text(data, "name")
    _validate_common(patch)
    portfolio = store.create(Portfolio, organization_id, created_by=created_by, **patch)
    logger.info("Portfolio created id=%s organization=%s", portfolio.id, organization_id)
    return portfolio


def update_portfolio(portfolio_id: int, data: dict[str, Any], *, organization_id: int) -> Portfolio:
    get_portfolio(portfolio_id, organization_id=organization_id)
    patch = pick_fields(data, PORTFOLIO_FIELDS)
    _validate_common(patch)
    return store.update(Portfolio, organization_id, portfolio_id, patch)


def remove_portfolio(portfolio_id: int, *, organization_id: int, actor_id: int | None = None) -> Portfolio:
    get_portfolio(portfolio_id, organization_id=organization_id)
    portfolio = store.delete(Portfolio, organization_id, portfolio_id)
    write_audit(
        organization_id=organization_id, entity_type="portfolio", entity_id=portfolio_id,
        action="delete", user_id=actor_id,
    )
    return portfolio


# ── Program ──────────────────────────────────────────────────────────────


def list_programs(*, organization_id: int, portfolio_id: int | None = None) -> list[Program]:
    filters = {"portfolio_id": portfolio_id} if portfolio_id is not None else {}
    return store.find_many(Program, organization_id, order_by=("-created_at", "-id"), **filters)


def get_program(program_id: int, *, organization_id: int) -> Program:
    return store.find_one(Program, organization_id, id=program_id)


def _validate_program(patch: dict, organization_id: int):
    _validate_common(patch)
    if "status" in patch:
        validate_enum(patch["status"], PROGRAM_STATUSES, "status")
    if patch.get("portfolio_id") is not None:
        # Parent must live in the same organization
        store.find_one(Portfolio, organization_id, id=patch["portfolio_id"])


def create_program(data: dict[str, Any], *, organization_id: int, created_by: int | None = None) -> Program:
    patch = pick_fields(data, PROGRAM_FIELDS, date_fields=("start_date", "end_date"))
    patch["name"] = require_text(data, "name")
    _validate_program(patch, organization_id)
    program = store.create(Program, organization_id, created_by=created_by, **patch)
    logger.info("Program created id=%s organization=%s", program.id, organization_id)
    return program


def update_program(program_id: int, data: dict[str, Any], *, organization_id: int) -> Program:
    get_program(program_id, organization_id=organization_id)
    patch = pick_fields(data, PROGRAM_FIELDS, date_fields=("start_date", "end_date"))
    _validate_program(patch, organization_id)
    return store.update(Program, organization_id, program_id, patch)


def remove_program(program_id: int, *, organization_id: int, actor_id: int | None = None) -> Program:
    get_program(program_id, organization_id=organization_id)
    program = store.delete(Program, organization_id, program_id)
    write_audit(
        organization_id=organization_id, entity_type="program", entity_id=program_id,
        action="delete", user_id=actor_id,
    )
    return program

