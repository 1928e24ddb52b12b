"""Audit trail — append-only, organization-scoped.

AuditLog is outside the soft-delete registry: entries are
never soft-deleted and reads return every row of the organization.
Uses flush() so callers keep transaction control.
"""
import logging

from ppm.models.organization import AuditLog
from ppm.services.helpers import tenant_store as store

logger = logging.getLogger(__name__)

MAX_ENTRIES = 500


def write_audit(
    *,
    organization_id: int,
    entity_type: str,
    action: str,
    entity_id: int | None = None,
    user_id: int | None = None,
    old_values: dict | None = None,
    new_values: dict | None = None,
    ip_address: str | None = None,
) -> AuditLog:
    """Append a single audit row and return it (flushed)."""
    return store.create(
        AuditLog,
        organization_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        user_id=user_id,
        old_values=old_values,
        new_values=new_values,
        ip_address=ip_address,
    )


def list_audit_logs(*, organization_id: int, entity_type: str | None = None,
                    user_id: int | None = None) -> list[AuditLog]:
    """Newest first, capped at MAX_ENTRIES."""
    filters = {}
    if entity_type:
        filters["entity_type"] = entity_type
    if user_id is not None:
        filters["user_id"] = user_id
    return store.find_many(
        AuditLog, organization_id,
        order_by=("-created_at", "-id"), limit=MAX_ENTRIES, **filters,
    )
