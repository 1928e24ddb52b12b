"""RAID service — risks and issues of a project.

Transaction policy: functions use flush(), never commit().
Caller (route handler) is responsible for db.session.commit().
"""
import logging
from datetime import datetime, timezone
from typing import Any

from ppm.models import db
from ppm.models.project import Project
from ppm.models.raid import (
    ISSUE_SEVERITIES,
    ISSUE_STATUSES,
    RISK_CATEGORIES,
    RISK_STATUSES,
    Issue,
    Risk,
)
from ppm.services.audit_service import write_audit
from ppm.services.helpers import tenant_store as store
from ppm.services.risk_scoring import score_risk
from ppm.utils.helpers import pick_fields, require_text, validate_enum

logger = logging.getLogger(__name__)

RISK_FIELDS = (
    "owner_id", "title", "description", "category", "status",
    "mitigation_plan", "contingency_plan", "due_date",
)
ISSUE_FIELDS = ("owner_id", "title", "description", "severity", "status", "resolution")


def _normalize_level(value):
    return str(value).strip().upper() if value is not None else value


# ── Risk ─────────────────────────────────────────────────────────────────


def list_risks(project_id: int, *, organization_id: int, status: str | None = None) -> list[Risk]:
    """Active risks of a project, highest score first."""
    store.find_one(Project, organization_id, id=project_id)
    filters = {"status": status} if status else {}
    return store.find_many(
        Risk, organization_id, project_id=project_id, order_by=("-risk_score", "id"), **filters,
    )


def get_risk(risk_id: int, *, organization_id: int) -> Risk:
    return store.find_one(Risk, organization_id, id=risk_id)


def _validate_risk(patch: dict):
    if "status" in patch:
        validate_enum(patch["status"], RISK_STATUSES, "status")
    # Unknown categories are stored as given.
    if patch.get("category") and patch["category"] not in RISK_CATEGORIES:
        logger.debug("Risk category %r is not a standard category", patch["category"])


def create_risk(project_id: int, data: dict[str, Any], *, organization_id: int) -> Risk:
    """Create a risk and score it. A client-supplied risk_score is ignored."""
    store.find_one(Project, organization_id, id=project_id)
    patch = pick_fields(data, RISK_FIELDS, date_fields=("due_date",))
    patch["title"] = require_text(data, "title", max_len=300)
    _validate_risk(patch)

    patch["probability"] = _normalize_level(data.get("probability") or "MEDIUM")
    patch["impact"] = _normalize_level(data.get("impact") or "MEDIUM")
    patch["risk_score"] = score_risk(patch["probability"], patch["impact"]).score
    risk = store.create(Risk, organization_id, project_id=project_id, **patch)
    logger.info(
        "Risk created id=%s project=%s score=%s organization=%s",
        risk.id, project_id, risk.risk_score, organization_id,
    )
    return risk


def update_risk(risk_id: int, data: dict[str, Any], *, organization_id: int,
                actor_id: int | None = None) -> Risk:
    """Update a risk, recalculating the score if probability/impact changed.

    A patch carrying only one of the pair inherits the other from the stored row.
    """
    risk = get_risk(risk_id, organization_id=organization_id)
    old_score = risk.risk_score

    patch = pick_fields(data, RISK_FIELDS, date_fields=("due_date",))
    _validate_risk(patch)
    if "probability" in data or "impact" in data:
        patch["probability"] = _normalize_level(data.get("probability") or risk.probability)
        patch["impact"] = _normalize_level(data.get("impact") or risk.impact)
    risk = store.update(Risk, organization_id, risk_id, patch)
    if "probability" in patch:
        risk.recalculate_score()
        db.session.flush()

    if risk.risk_score != old_score:
        logger.info("Risk %s score changed %s -> %s", risk_id, old_score, risk.risk_score)
        write_audit(
            organization_id=organization_id, entity_type="risk", entity_id=risk_id,
            action="score_change", user_id=actor_id,
            old_values={"risk_score": old_score}, new_values={"risk_score": risk.risk_score},
        )
    return risk


def remove_risk(risk_id: int, *, organization_id: int, actor_id: int | None = None) -> Risk:
    get_risk(risk_id, organization_id=organization_id)
    risk = store.delete(Risk, organization_id, risk_id)
    write_audit(
        organization_id=organization_id, entity_type="risk", entity_id=risk_id,
        action="delete", user_id=actor_id,
    )
    return risk


# ── Issue ────────────────────────────────────────────────────────────────


def list_issues(project_id: int, *, organization_id: int) -> list[Issue]:
    store.find_one(Project, organization_id, id=project_id)
    return store.find_many(Issue, organization_id, project_id=project_id, order_by=("-created_at", "-id"))


def _validate_issue(patch: dict):
    if "status" in patch:
        validate_enum(patch["status"], ISSUE_STATUSES, "status")
    if "severity" in patch:
        validate_enum(patch["severity"], ISSUE_SEVERITIES, "severity")


def create_issue(project_id: int, data: dict[str, Any], *, organization_id: int) -> Issue:
    store.find_one(Project, organization_id, id=project_id)
    patch = pick_fields(data, ISSUE_FIELDS)
    patch["title"] = require_text(data, "title", max_len=300)
    _validate_issue(patch)
    return store.create(Issue, organization_id, project_id=project_id, **patch)


def update_issue(issue_id: int, data: dict[str, Any], *, organization_id: int) -> Issue:
    issue = store.find_one(Issue, organization_id, id=issue_id)
    patch = pick_fields(data, ISSUE_FIELDS)
    _validate_issue(patch)
    if patch.get("status") == "RESOLVED" and issue.status != "RESOLVED":
        patch["resolved_at"] = datetime.now(timezone.utc)
    return store.update(Issue, organization_id, issue_id, patch)


def remove_issue(issue_id: int, *, organization_id: int) -> Issue:
    store.find_one(Issue, organization_id, id=issue_id)
    return store.delete(Issue, organization_id, issue_id)
