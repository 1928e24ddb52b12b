"""
TenantModel — Abstract base class for organization-scoped models.

All models that need tenant isolation inherit from TenantModel instead of
db.Model directly. This adds:
  - integer `id` primary key
  - organization_id FK column with index
  - created_at / updated_at timestamps
  - date/decimal serialisation helpers
"""

from datetime import datetime, timezone

from ppm.models import db


def _now():
    return datetime.now(timezone.utc)


def iso(value):
    """ISO-8601 string for a date/datetime, or None."""
    return value.isoformat() if value else None


def money(value):
    """Numeric column → float for JSON payloads. Missing values stay None."""
    return float(value) if value is not None else None


class TenantModel(db.Model):
    """Abstract base for organization-scoped tables."""
    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(
        db.Integer,
        db.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), default=_now)
    updated_at = db.Column(db.DateTime(timezone=True), default=_now, onupdate=_now)

