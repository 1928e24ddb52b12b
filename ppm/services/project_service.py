"""Project service layer — projects, EVM snapshot, tasks and milestones.

Transaction policy: functions use flush(), never commit().
Caller (route handler) is responsible for db.session.commit().
"""
import logging
from typing import Any

from ppm.core.exceptions import ValidationError
from ppm.models.portfolio import RAG_STATUSES, Program
from ppm.models.project import (
    MILESTONE_STATUSES,
    PROJECT_STATUSES,
    TASK_PRIORITIES,
    TASK_STATUSES,
    Milestone,
    Project,
    Task,
)
from ppm.services.audit_service import write_audit
from ppm.services.evm import EVMMetrics, compute_evm, validate_amounts
from ppm.services.helpers import tenant_store as store
from ppm.utils.helpers import pick_fields, require_text, validate_enum

logger = logging.getLogger(__name__)

PROJECT_MONEY_FIELDS = ("total_budget", "actual_cost", "forecast_cost", "planned_value", "earned_value")
PROJECT_FIELDS = (
    "program_id", "code", "name", "description", "project_manager_id", "status",
    "rag_status", "start_date", "end_date", "percent_complete",
) + PROJECT_MONEY_FIELDS
TASK_FIELDS = (
    "parent_task_id", "milestone_id", "assignee_id", "title", "description", "status",
    "priority", "wbs_code", "position", "due_date", "estimated_hours", "actual_hours",
)
MILESTONE_FIELDS = ("owner_id", "name", "description", "planned_date", "actual_date", "status")


# ── Project ──────────────────────────────────────────────────────────────


def _validate_project(patch: dict, organization_id: int):
    if "status" in patch:
        validate_enum(patch["status"], PROJECT_STATUSES, "status")
    if "rag_status" in patch:
        validate_enum(patch["rag_status"], RAG_STATUSES, "rag_status")
    validate_amounts(patch, PROJECT_MONEY_FIELDS)
    pct = patch.get("percent_complete")
    if pct is not None and (isinstance(pct, bool) or not isinstance(pct, int) or not 0 <= pct <= 100):
        raise ValidationError(
            "percent_complete must be an integer between 0 and 100",
            details={"percent_complete": "out of range"},
        )
    if patch.get("program_id") is not None:
        store.find_one(Program, organization_id, id=patch["program_id"])


def list_projects(*, organization_id: int, program_id: int | None = None,
                  status: str | None = None, manager_id: int | None = None) -> list[Project]:
    filters = {}
    if program_id is not None:
        filters["program_id"] = program_id
    if status:
        filters["status"] = status
    if manager_id is not None:
        filters["project_manager_id"] = manager_id
    return store.find_many(Project, organization_id, order_by=("-updated_at", "-id"), **filters)


def get_project(project_id: int, *, organization_id: int) -> Project:
    return store.find_one(Project, organization_id, id=project_id)


def create_project(data: dict[str, Any], *, organization_id: int, created_by: int | None = None) -> Project:
    patch = pick_fields(data, PROJECT_FIELDS, date_fields=("start_date", "end_date"))
    patch["name"] = require_text(data, "name")
    _validate_project(patch, organization_id)
    project = store.create(Project, organization_id, created_by=created_by, **patch)
    logger.info("Project created id=%s organization=%s", project.id, organization_id)
    return project


def update_project(project_id: int, data: dict[str, Any], *, organization_id: int) -> Project:
    get_project(project_id, organization_id=organization_id)
    patch = pick_fields(data, PROJECT_FIELDS, date_fields=("start_date", "end_date"))
    _validate_project(patch, organization_id)
    return store.update(Project, organization_id, project_id, patch)


def remove_project(project_id: int, *, organization_id: int, actor_id: int | None = None) -> Project:
    get_project(project_id, organization_id=organization_id)
    project = store.delete(Project, organization_id, project_id)
    write_audit(
        organization_id=organization_id, entity_type="project", entity_id=project_id,
        action="delete", user_id=actor_id,
    )
    return project


def get_project_evm(project_id: int, *, organization_id: int) -> EVMMetrics:
    """EVM metrics from the project's current financial snapshot."""
    project = get_project(project_id, organization_id=organization_id)
    return compute_evm(
        project.planned_value,
        project.earned_value,
        project.actual_cost,
        project.total_budget,
    )


# ── Task ─────────────────────────────────────────────────────────────────


def _validate_task(patch: dict, project_id: int, organization_id: int):
    if "status" in patch:
        validate_enum(patch["status"], set(TASK_STATUSES), "status")
    if "priority" in patch:
        validate_enum(patch["priority"], TASK_PRIORITIES, "priority")
    if patch.get("parent_task_id") is not None:
        store.find_one(Task, organization_id, id=patch["parent_task_id"], project_id=project_id)
    if patch.get("milestone_id") is not None:
        store.find_one(Milestone, organization_id, id=patch["milestone_id"], project_id=project_id)


def list_tasks(project_id: int, *, organization_id: int, top_level_only: bool = True,
               **filters) -> list[Task]:
    if top_level_only:
        filters["parent_task_id"] = None
    return store.find_many(
        Task, organization_id, project_id=project_id,
        order_by=("position", "created_at", "id"), **filters,
    )


def get_task(task_id: int, *, organization_id: int) -> Task:
    return store.find_one(Task, organization_id, id=task_id)


def create_task(project_id: int, data: dict[str, Any], *, organization_id: int,
                reporter_id: int | None = None) -> Task:
    get_project(project_id, organization_id=organization_id)
    patch = pick_fields(data, TASK_FIELDS, date_fields=("due_date",))
    patch["title"] = require_text(data, "title", max_len=300)
    _validate_task(patch, project_id, organization_id)
    return store.create(Task, organization_id, project_id=project_id, reporter_id=reporter_id, **patch)


def update_task(task_id: int, data: dict[str, Any], *, organization_id: int) -> Task:
    task = get_task(task_id, organization_id=organization_id)
    patch = pick_fields(data, TASK_FIELDS, date_fields=("due_date",))
    _validate_task(patch, task.project_id, organization_id)
    if patch.get("parent_task_id") == task.id:
        raise ValidationError("A task cannot be its own parent", details={"parent_task_id": "cycle"})
    return store.update(Task, organization_id, task_id, patch)


def remove_task(task_id: int, *, organization_id: int) -> Task:
    get_task(task_id, organization_id=organization_id)
    return store.delete(Task, organization_id, task_id)


def get_kanban_board(project_id: int, *, organization_id: int) -> dict[str, list[dict]]:
    """Top-level tasks grouped into one column per status."""
    get_project(project_id, organization_id=organization_id)
    tasks = list_tasks(project_id, organization_id=organization_id)
    board = {status: [] for status in TASK_STATUSES}
    for t in tasks:
        board.setdefault(t.status, []).append(t.to_dict())
    return board


def get_wbs(project_id: int, *, organization_id: int) -> list[dict]:
    """Task tree ordered by WBS code. Deleted tasks drop out with their subtree."""
    get_project(project_id, organization_id=organization_id)
    tasks = store.find_many(Task, organization_id, project_id=project_id, order_by=("wbs_code", "id"))
    children: dict[int | None, list[Task]] = {}
    for t in tasks:
        children.setdefault(t.parent_task_id, []).append(t)

    def _node(task):
        node = task.to_dict()
        node["subtasks"] = [_node(c) for c in children.get(task.id, [])]
        return node

    return [_node(t) for t in children.get(None, [])]


# ── Milestone ────────────────────────────────────────────────────────────


def list_milestones(project_id: int, *, organization_id: int) -> list[Milestone]:
    return store.find_many(
        Milestone, organization_id, project_id=project_id, order_by=("planned_date", "id"),
    )


def create_milestone(project_id: int, data: dict[str, Any], *, organization_id: int) -> Milestone:
    get_project(project_id, organization_id=organization_id)
    patch = pick_fields(data, MILESTONE_FIELDS, date_fields=("planned_date", "actual_date"))
    patch["name"] = require_text(data, "name")
    if "status" in patch:
        validate_enum(patch["status"], MILESTONE_STATUSES, "status")
    return store.create(Milestone, organization_id, project_id=project_id, **patch)


def update_milestone(milestone_id: int, data: dict[str, Any], *, organization_id: int) -> Milestone:
    store.find_one(Milestone, organization_id, id=milestone_id)
    patch = pick_fields(data, MILESTONE_FIELDS, date_fields=("planned_date", "actual_date"))
    if "status" in patch:
        validate_enum(patch["status"], MILESTONE_STATUSES, "status")
    return store.update(Milestone, organization_id, milestone_id, patch)


def remove_milestone(milestone_id: int, *, organization_id: int) -> Milestone:
    store.find_one(Milestone, organization_id, id=milestone_id)
    return store.delete(Milestone, organization_id, milestone_id)
