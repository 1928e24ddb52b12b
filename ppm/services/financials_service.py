"""Financials service — budget lines and change requests.

Transaction policy: functions use flush(), never commit().
Caller (route handler) is responsible for db.session.commit().
"""
import logging
from datetime import datetime, timezone
from typing import Any

from ppm.core.exceptions import ValidationError
from ppm.models.financials import BUDGET_TYPES, Budget, ChangeRequest
from ppm.models.project import Project
from ppm.services.audit_service import write_audit
from ppm.services.evm import validate_amounts
from ppm.services.helpers import tenant_store as store
from ppm.services.rollup import budget_rollup
from ppm.utils.helpers import pick_fields, require_text, validate_enum

logger = logging.getLogger(__name__)

BUDGET_FIELDS = (
    "budget_type", "category", "description", "fiscal_year",
    "planned_amount", "actual_amount", "forecast_amount",
)
BUDGET_MONEY_FIELDS = ("planned_amount", "actual_amount", "forecast_amount")
CHANGE_REQUEST_FIELDS = ("title", "description", "cost_impact", "schedule_impact_days")

# Only these states can still be decided.
_OPEN_CR_STATUSES = ("DRAFT", "SUBMITTED", "UNDER_REVIEW")


# ── Budget ───────────────────────────────────────────────────────────────


def list_budgets(project_id: int, *, organization_id: int) -> list[Budget]:
    store.find_one(Project, organization_id, id=project_id)
    return store.find_many(
        Budget, organization_id, project_id=project_id, order_by=("fiscal_year", "budget_type", "id"),
    )


def get_budget_summary(project_id: int, *, organization_id: int) -> dict:
    """Budget lines of a project plus planned / actual / forecast / CAPEX / OPEX totals."""
    budgets = list_budgets(project_id, organization_id=organization_id)
    return {
        "budgets": [b.to_dict() for b in budgets],
        "summary": budget_rollup(budgets),
    }


def _validate_budget(patch: dict):
    if "budget_type" in patch:
        validate_enum(patch["budget_type"], BUDGET_TYPES, "budget_type")
    validate_amounts(patch, BUDGET_MONEY_FIELDS)


def create_budget(project_id: int, data: dict[str, Any], *, organization_id: int) -> Budget:
    store.find_one(Project, organization_id, id=project_id)
    patch = pick_fields(data, BUDGET_FIELDS)
    patch.setdefault("budget_type", "CAPEX")
    _validate_budget(patch)
    return store.create(Budget, organization_id, project_id=project_id, **patch)


def update_budget(budget_id: int, data: dict[str, Any], *, organization_id: int) -> Budget:
    store.find_one(Budget, organization_id, id=budget_id)
    patch = pick_fields(data, BUDGET_FIELDS)
    _validate_budget(patch)
    return store.update(Budget, organization_id, budget_id, patch)


def remove_budget(budget_id: int, *, organization_id: int) -> Budget:
    store.find_one(Budget, organization_id, id=budget_id)
    return store.delete(Budget, organization_id, budget_id)


# ── Change request ───────────────────────────────────────────────────────


def list_change_requests(project_id: int, *, organization_id: int,
                         status: str | None = None) -> list[ChangeRequest]:
    store.find_one(Project, organization_id, id=project_id)
    filters = {"status": status} if status else {}
    return store.find_many(
        ChangeRequest, organization_id, project_id=project_id, order_by=("-created_at", "-id"), **filters,
    )


def next_cr_number(project_id: int, *, organization_id: int, year: int | None = None) -> str:
    """CR-<year>-<NNN>, sequential per project. Deleted requests keep their numbers."""
    year = year or datetime.now(timezone.utc).year
    existing = store.count(
        ChangeRequest, organization_id, options=store.WITH_DELETED, project_id=project_id,
    )
    return f"CR-{year}-{existing + 1:03d}"


def create_change_request(project_id: int, data: dict[str, Any], *, organization_id: int,
                          requested_by_id: int | None = None) -> ChangeRequest:
    store.find_one(Project, organization_id, id=project_id)
    patch = pick_fields(data, CHANGE_REQUEST_FIELDS)
    patch["title"] = require_text(data, "title", max_len=300)
    if patch.get("cost_impact") is not None and not isinstance(patch["cost_impact"], (int, float)):
        raise ValidationError("cost_impact must be a number", details={"cost_impact": "not a number"})
    cr = store.create(
        ChangeRequest,
        organization_id,
        project_id=project_id,
        cr_number=next_cr_number(project_id, organization_id=organization_id),
        status="SUBMITTED",
        requested_by_id=requested_by_id,
        **patch,
    )
    logger.info("Change request %s created project=%s organization=%s", cr.cr_number, project_id, organization_id)
    return cr


def _decide(cr_id: int, organization_id: int, status: str, patch: dict, actor_id) -> ChangeRequest:
    cr = store.find_one(ChangeRequest, organization_id, id=cr_id)
    if cr.status not in _OPEN_CR_STATUSES:
        raise ValidationError(
            f"Change request {cr.cr_number} is already {cr.status}",
            details={"status": "already decided"},
        )
    old_status = cr.status
    cr = store.update(ChangeRequest, organization_id, cr_id, {"status": status, **patch})
    write_audit(
        organization_id=organization_id, entity_type="change_request", entity_id=cr_id,
        action=status.lower(), user_id=actor_id,
        old_values={"status": old_status}, new_values={"status": status},
    )
    return cr


def approve_change_request(cr_id: int, *, organization_id: int, approved_by_id: int | None = None) -> ChangeRequest:
    return _decide(
        cr_id, organization_id, "APPROVED",
        {"approved_by_id": approved_by_id, "approved_at": datetime.now(timezone.utc)},
        approved_by_id,
    )


def reject_change_request(cr_id: int, *, organization_id: int, reason: str = "",
                          rejected_by_id: int | None = None) -> ChangeRequest:
    return _decide(cr_id, organization_id, "REJECTED", {"rejection_reason": reason}, rejected_by_id)


def remove_change_request(cr_id: int, *, organization_id: int) -> ChangeRequest:
    store.find_one(ChangeRequest, organization_id, id=cr_id)
    return store.delete(ChangeRequest, organization_id, cr_id)
