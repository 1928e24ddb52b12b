"""
Tenant-scoped, soft-delete-aware data access.

Every read and write of an organization-owned entity MUST go through this
module instead of Model.query / db.session.get. Two guarantees are applied
here, once, for all entity kinds:

  1. Tenant isolation: every statement is filtered by the caller's
     organization_id. The argument is mandatory; calling without it raises
     ValueError so an unscoped lookup fails loudly during development.
  2. Soft delete: for kinds in SOFT_DELETE_MODELS, reads exclude rows whose
     deleted_at is set and deletes are rewritten into an update stamping
     deleted_at. Kinds outside the registry (e.g. AuditLog) pass through
     unmodified: no deleted_at filter, physical delete.

Usage:
    project = find_one(Project, org_id, id=project_id)
    risks = find_many(Risk, org_id, project_id=pid, order_by=("-risk_score", "id"))

    # Administrative "show deleted" views
    trashed = find_many(Project, org_id, deleted_at=DELETED)
    everything = find_many(Project, org_id, options=WITH_DELETED)

    delete(Project, org_id, project_id)       # sets deleted_at, row is kept
    restore(Project, org_id, project_id)

Transaction policy: functions flush(), never commit(). The route handler
owns the commit.

Cross-tenant access is indistinguishable from a missing record: both raise
NotFoundError → HTTP 404.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, select
from sqlalchemy import update as sa_update

from ppm.core.exceptions import NotFoundError, ValidationError
from ppm.models import db
from ppm.models.financials import Budget, ChangeRequest, Document
from ppm.models.organization import Organization, Resource, User
from ppm.models.portfolio import Portfolio, Program
from ppm.models.project import Milestone, Project, Task
from ppm.models.raid import Issue, Risk
from ppm.models.soft_delete import utcnow

logger = logging.getLogger(__name__)

# Allow-list of soft-deletable kinds. Fixed at import time, read-only afterwards.
SOFT_DELETE_MODELS = frozenset({
    Organization, User, Portfolio, Program, Project,
    Task, Milestone, Resource, Budget, Risk, Issue,
    ChangeRequest, Document,
})

# The tenant root scopes itself by primary key; everything else by organization_id.
_TENANT_COLUMNS = {Organization: "id"}

_IMMUTABLE_FIELDS = ("id", "organization_id", "created_at")


class _DeletedMarker:
    """Filter value matching any non-null deleted_at."""

    def __repr__(self):
        return "DELETED"


DELETED = _DeletedMarker()
_UNSET = object()


@dataclass(frozen=True)
class QueryOptions:
    include_deleted: bool = False


ACTIVE = QueryOptions()
WITH_DELETED = QueryOptions(include_deleted=True)


# ── Helpers ──────────────────────────────────────────────────────────────────


def is_soft_deletable(model) -> bool:
    return model in SOFT_DELETE_MODELS


def tenant_column(model):
    return getattr(model, _TENANT_COLUMNS.get(model, "organization_id"))


def _require_tenant(model, organization_id):
    if organization_id is None:
        raise ValueError(
            f"{model.__name__}: organization_id is required. "
            "Unscoped access is forbidden — it bypasses tenant isolation."
        )


def _column(model, name):
    if name not in model.__table__.columns:
        raise ValueError(f"{model.__name__} has no column {name!r}")
    return getattr(model, name)


def _apply_soft_delete(model, stmt, explicit, options):
    deleted_at = model.deleted_at
    if explicit is _UNSET:
        if options.include_deleted:
            return stmt
        return stmt.where(deleted_at.is_(None))
    if explicit is DELETED:
        return stmt.where(deleted_at.isnot(None))
    if explicit is None:
        return stmt.where(deleted_at.is_(None))
    return stmt.where(deleted_at == explicit)


def _where(model, organization_id, filters, options):
    """Build the WHERE clause list shared by select / update / delete statements."""
    _require_tenant(model, organization_id)
    filters = dict(filters)
    explicit_deleted = filters.pop("deleted_at", _UNSET)

    stmt = select(model).where(tenant_column(model) == organization_id)
    for name, value in filters.items():
        col = _column(model, name)
        if isinstance(value, (list, tuple, set, frozenset)):
            stmt = stmt.where(col.in_(list(value)))
        elif value is None:
            stmt = stmt.where(col.is_(None))
        else:
            stmt = stmt.where(col == value)

    if is_soft_deletable(model):
        stmt = _apply_soft_delete(model, stmt, explicit_deleted, options)
    elif explicit_deleted is not _UNSET:
        raise ValueError(f"{model.__name__} is not soft-deletable; cannot filter on deleted_at")
    return stmt


def _order(model, order_by):
    clauses = []
    for spec in order_by or ():
        if spec.startswith("-"):
            clauses.append(_column(model, spec[1:]).desc())
        else:
            clauses.append(_column(model, spec).asc())
    return clauses


# ── Reads ────────────────────────────────────────────────────────────────────


def find_one_or_none(model, organization_id, *, options=ACTIVE, **filters):
    """First row matching the filters within the organization, or None."""
    stmt = _where(model, organization_id, filters, options)
    return db.session.execute(stmt.limit(1)).scalars().first()


def find_one(model, organization_id, *, options=ACTIVE, **filters):
    """Same as find_one_or_none but raises NotFoundError when nothing matches."""
    row = find_one_or_none(model, organization_id, options=options, **filters)
    if row is None:
        logger.debug(
            "find_one: %s %s not found for organization %s",
            model.__name__, filters, organization_id,
        )
        raise NotFoundError(
            resource=model.__name__,
            resource_id=filters.get("id"),
            organization_id=organization_id,
        )
    return row


def find_many(model, organization_id, *, options=ACTIVE, order_by=None, limit=None, **filters):
    """All rows matching the filters within the organization.

    An explicit ``deleted_at`` filter wins over the default: ``None`` means
    active only, ``DELETED`` means deleted only, a timestamp matches exactly.
    """
    stmt = _where(model, organization_id, filters, options)
    ordering = _order(model, order_by)
    if ordering:
        stmt = stmt.order_by(*ordering)
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(db.session.execute(stmt).scalars().all())


def count(model, organization_id, *, options=ACTIVE, **filters) -> int:
    stmt = _where(model, organization_id, filters, options)
    return db.session.scalar(select(func.count()).select_from(stmt.subquery())) or 0


# ── Writes ───────────────────────────────────────────────────────────────────


def create(model, organization_id, /, **data):
    """Insert a row stamped with the caller's organization.

    The tenant root itself is not created here (see organization_service).
    """
    _require_tenant(model, organization_id)
    if model in _TENANT_COLUMNS:
        raise ValueError(f"{model.__name__} rows are not created through the tenant store")
    supplied = data.pop("organization_id", organization_id)
    if supplied != organization_id:
        raise ValidationError(
            "organization_id does not match the caller's organization",
            details={"organization_id": "cross-tenant write rejected"},
        )
    data.pop("id", None)
    row = model(organization_id=organization_id, **data)
    db.session.add(row)
    db.session.flush()
    return row


def update(model, organization_id, pk, patch: dict):
    """Apply a patch to one row. Soft-deleted rows are reachable here too."""
    row = find_one(model, organization_id, options=WITH_DELETED, id=pk)
    for field, value in patch.items():
        if field in _IMMUTABLE_FIELDS:
            if getattr(row, field) != value:
                raise ValidationError(
                    f"{field} is immutable",
                    details={field: "cannot be changed"},
                )
            continue
        if field not in model.__table__.columns:
            raise ValidationError(
                f"Unknown field for {model.__name__}: {field}",
                details={field: "unknown field"},
            )
        setattr(row, field, value)
    db.session.flush()
    return row


def delete(model, organization_id, pk):
    """Delete one row: a soft delete for registered kinds, physical otherwise.

    Deleting an already-deleted row is a no-op that keeps the first timestamp.
    """
    row = find_one(model, organization_id, options=WITH_DELETED, id=pk)
    if is_soft_deletable(model):
        row.soft_delete()
        logger.info("Soft-deleted %s id=%s (organization=%s)", model.__name__, pk, organization_id)
    else:
        db.session.delete(row)
        logger.info("Deleted %s id=%s (organization=%s)", model.__name__, pk, organization_id)
    db.session.flush()
    return row


def delete_many(model, organization_id, **filters) -> int:
    """Bulk delete within the organization. Returns the number of rows affected."""
    ids = select(_where(model, organization_id, filters, ACTIVE).subquery().c.id)
    if is_soft_deletable(model):
        stmt = sa_update(model).where(model.id.in_(ids)).values(deleted_at=utcnow())
    else:
        stmt = sa_delete(model).where(model.id.in_(ids))
    result = db.session.execute(stmt.execution_options(synchronize_session="fetch"))
    db.session.flush()
    logger.info(
        "delete_many %s %s affected %d row(s) (organization=%s)",
        model.__name__, filters, result.rowcount, organization_id,
    )
    return result.rowcount


def restore(model, organization_id, pk):
    """Clear deleted_at on a soft-deleted row."""
    if not is_soft_deletable(model):
        raise ValueError(f"{model.__name__} is not soft-deletable")
    row = find_one(model, organization_id, options=WITH_DELETED, id=pk)
    row.restore()
    db.session.flush()
    return row
