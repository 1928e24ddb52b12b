"""
PPM Platform
Organization domain models — tenant root, users, resources and audit log.

Models:
    - Organization: the tenant; every other row carries its id
    - User: a person belonging to exactly one organization
    - Resource / ResourceAssignment: capacity planning
    - AuditLog: append-only trail (hard-delete only, never soft-deleted)
"""

from datetime import datetime, timezone

from ppm.models import db
from ppm.models.base import TenantModel, iso, money
from ppm.models.soft_delete import SoftDeleteMixin


USER_ROLES = {
    "SUPER_ADMIN", "ORG_ADMIN", "PORTFOLIO_MANAGER", "PROGRAM_MANAGER",
    "PROJECT_MANAGER", "TEAM_MEMBER", "FINANCE", "CLIENT_VIEWER",
}


# ═══════════════════════════════════════════════════════════════
# 1. ORGANIZATIONS
# ═══════════════════════════════════════════════════════════════
class Organization(SoftDeleteMixin, db.Model):
    __tablename__ = "organizations"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False)
    domain = db.Column(db.String(200))
    is_active = db.Column(db.Boolean, default=True)
    settings = db.Column(db.JSON, default=dict)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "domain": self.domain,
            "is_active": self.is_active,
            "settings": self.settings or {},
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Organization {self.slug}>"


# ═══════════════════════════════════════════════════════════════
# 2. USERS
# ═══════════════════════════════════════════════════════════════
class User(SoftDeleteMixin, TenantModel):
    __tablename__ = "users"

    email = db.Column(db.String(200), nullable=False)
    first_name = db.Column(db.String(100), default="")
    last_name = db.Column(db.String(100), default="")
    role = db.Column(db.String(30), default="TEAM_MEMBER")
    phone = db.Column(db.String(50))
    is_active = db.Column(db.Boolean, default=True)
    last_login_at = db.Column(db.DateTime(timezone=True))

    __table_args__ = (
        db.UniqueConstraint("organization_id", "email", name="uq_users_org_email"),
    )

    @property
    def full_name(self):
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def to_dict(self):
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "phone": self.phone,
            "is_active": self.is_active,
            "last_login_at": iso(self.last_login_at),
            "created_at": iso(self.created_at),
        }


# ═══════════════════════════════════════════════════════════════
# 3. RESOURCES
# ═══════════════════════════════════════════════════════════════
class Resource(SoftDeleteMixin, TenantModel):
    """A person or team whose availability is planned across projects."""

    __tablename__ = "resources"

    name = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(100), default="")
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    availability_percent = db.Column(db.Integer, default=100, comment="0-100 of an FTE")
    cost_rate = db.Column(db.Numeric(15, 2), nullable=True)
    is_active = db.Column(db.Boolean, default=True)

    assignments = db.relationship(
        "ResourceAssignment", back_populates="resource", lazy="select",
        cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "name": self.name,
            "role": self.role,
            "user_id": self.user_id,
            "availability_percent": self.availability_percent,
            "cost_rate": money(self.cost_rate),
            "is_active": self.is_active,
        }


class ResourceAssignment(TenantModel):
    """Allocation of a resource to a project over a date window."""

    __tablename__ = "resource_assignments"

    resource_id = db.Column(
        db.Integer, db.ForeignKey("resources.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    allocation_percent = db.Column(db.Integer, default=100)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)

    resource = db.relationship("Resource", back_populates="assignments")

    def overlaps(self, start, end):
        return self.start_date <= end and self.end_date >= start

    def to_dict(self):
        return {
            "id": self.id,
            "resource_id": self.resource_id,
            "project_id": self.project_id,
            "allocation_percent": self.allocation_percent,
            "start_date": iso(self.start_date),
            "end_date": iso(self.end_date),
        }


# ═══════════════════════════════════════════════════════════════
# 4. AUDIT LOG
# ═══════════════════════════════════════════════════════════════
class AuditLog(TenantModel):
    """Append-only audit trail. Not soft-deletable."""

    __tablename__ = "audit_logs"

    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = db.Column(db.String(50), nullable=False)
    entity_type = db.Column(db.String(50), nullable=False)
    entity_id = db.Column(db.Integer, nullable=True)
    old_values = db.Column(db.JSON, nullable=True)
    new_values = db.Column(db.JSON, nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "user_id": self.user_id,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "ip_address": self.ip_address,
            "created_at": iso(self.created_at),
        }
