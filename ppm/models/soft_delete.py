"""
Soft Delete Mixin.

Adds a `deleted_at` timestamp column and row-level helpers for soft delete.
Models that include this mixin are marked as deleted rather than physically
removed. Query-level filtering is NOT done here: every read goes through
``ppm.services.helpers.tenant_store`` which applies the filter once for all
registered kinds.

Usage:
    class MyModel(SoftDeleteMixin, TenantModel):
        ...

    obj.soft_delete()        # idempotent, keeps the first deletion time
    obj.restore()
"""

from datetime import datetime, timezone

from ppm.models import db


def utcnow():
    return datetime.now(timezone.utc)


class SoftDeleteMixin:
    """Mixin that adds soft delete support to any SQLAlchemy model."""

    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, default=None, index=True)

    def soft_delete(self, when=None):
        """Mark this record as deleted. A second call keeps the original timestamp."""
        if self.deleted_at is None:
            self.deleted_at = when or utcnow()

    def restore(self):
        """Restore a soft-deleted record."""
        self.deleted_at = None

    @property
    def is_deleted(self):
        return self.deleted_at is not None
