"""Resource planning — resources, assignments and capacity.

Transaction policy: functions use flush(), never commit().
"""
import logging
from datetime import date
from typing import Any

from ppm.core.exceptions import ValidationError
from ppm.models.organization import Resource, ResourceAssignment
from ppm.models.project import Project
from ppm.services.evm import validate_amounts
from ppm.services.helpers import tenant_store as store
from ppm.services.rollup import resource_capacity
from ppm.utils.helpers import parse_date, pick_fields, require_text

logger = logging.getLogger(__name__)

RESOURCE_FIELDS = ("name", "role", "user_id", "availability_percent", "cost_rate", "is_active")


def _check_percent(value, field_name):
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 100:
        raise ValidationError(
            f"{field_name} must be an integer between 0 and 100",
            details={field_name: "out of range"},
        )


# ── Resource ─────────────────────────────────────────────────────────────


def list_resources(*, organization_id: int, active_only: bool = False) -> list[Resource]:
    filters = {"is_active": True} if active_only else {}
    return store.find_many(Resource, organization_id, order_by=("name", "id"), **filters)


def get_resource(resource_id: int, *, organization_id: int) -> Resource:
    return store.find_one(Resource, organization_id, id=resource_id)


def create_resource(data: dict[str, Any], *, organization_id: int) -> Resource:
    patch = pick_fields(data, RESOURCE_FIELDS)
    patch["name"] = require_text(data, "name")
    _check_percent(patch.get("availability_percent"), "availability_percent")
    validate_amounts(patch, ("cost_rate",))
    return store.create(Resource, organization_id, **patch)


def update_resource(resource_id: int, data: dict[str, Any], *, organization_id: int) -> Resource:
    get_resource(resource_id, organization_id=organization_id)
    patch = pick_fields(data, RESOURCE_FIELDS)
    _check_percent(patch.get("availability_percent"), "availability_percent")
    validate_amounts(patch, ("cost_rate",))
    return store.update(Resource, organization_id, resource_id, patch)


def remove_resource(resource_id: int, *, organization_id: int) -> Resource:
    get_resource(resource_id, organization_id=organization_id)
    return store.delete(Resource, organization_id, resource_id)


# ── Assignment ───────────────────────────────────────────────────────────


def assign_resource(resource_id: int, project_id: int, data: dict[str, Any], *,
                    organization_id: int) -> ResourceAssignment:
    """Allocate a resource to a project; both must belong to the organization."""
    get_resource(resource_id, organization_id=organization_id)
    store.find_one(Project, organization_id, id=project_id)
    start = parse_date(data.get("start_date"))
    end = parse_date(data.get("end_date"))
    if start is None or end is None:
        raise ValidationError("start_date and end_date are required", details={"dates": "required"})
    if end < start:
        raise ValidationError("end_date must not precede start_date", details={"end_date": "before start"})
    allocation = data.get("allocation_percent", 100)
    _check_percent(allocation, "allocation_percent")
    return store.create(
        ResourceAssignment,
        organization_id,
        resource_id=resource_id,
        project_id=project_id,
        allocation_percent=allocation,
        start_date=start,
        end_date=end,
    )


def remove_assignment(assignment_id: int, *, organization_id: int) -> ResourceAssignment:
    return store.delete(ResourceAssignment, organization_id, assignment_id)


def get_resource_capacity(*, organization_id: int, start: date, end: date) -> list[dict]:
    """Allocation of every active resource over the [start, end] window."""
    if end < start:
        raise ValidationError("end must not precede start", details={"end": "before start"})
    resources = list_resources(organization_id=organization_id, active_only=True)
    # Allocations on soft-deleted projects do not count.
    project_ids = [p.id for p in store.find_many(Project, organization_id)]
    assignments = store.find_many(
        ResourceAssignment, organization_id,
        resource_id=[r.id for r in resources], project_id=project_ids,
    )
    by_resource: dict[int, list[ResourceAssignment]] = {}
    for a in assignments:
        if a.overlaps(start, end):
            by_resource.setdefault(a.resource_id, []).append(a)

    result = []
    for r in resources:
        mine = by_resource.get(r.id, [])
        result.append({
            "resource": r.to_dict(),
            "assignments": [a.to_dict() for a in mine],
            **resource_capacity(r, mine),
        })
    return result
