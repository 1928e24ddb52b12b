"""
PPM Platform
Financial and change-control models.

Models:
    - Budget: CAPEX / OPEX line item of a project
    - ChangeRequest: scope / cost / schedule change with approval trail
    - Document: stored file metadata (object storage lives elsewhere)
"""

from ppm.models import db
from ppm.models.base import TenantModel, iso, money
from ppm.models.soft_delete import SoftDeleteMixin


BUDGET_TYPES = {"CAPEX", "OPEX"}

CHANGE_REQUEST_STATUSES = {"DRAFT", "SUBMITTED", "UNDER_REVIEW", "APPROVED", "REJECTED", "IMPLEMENTED"}


class Budget(SoftDeleteMixin, TenantModel):
    __tablename__ = "budgets"

    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    budget_type = db.Column(db.String(10), nullable=False, default="CAPEX")
    category = db.Column(db.String(100), default="")
    description = db.Column(db.Text, default="")
    fiscal_year = db.Column(db.Integer, nullable=True)
    planned_amount = db.Column(db.Numeric(15, 2), default=0)
    actual_amount = db.Column(db.Numeric(15, 2), default=0)
    forecast_amount = db.Column(db.Numeric(15, 2), default=0)

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "budget_type": self.budget_type,
            "category": self.category,
            "description": self.description,
            "fiscal_year": self.fiscal_year,
            "planned_amount": money(self.planned_amount),
            "actual_amount": money(self.actual_amount),
            "forecast_amount": money(self.forecast_amount),
        }


class ChangeRequest(SoftDeleteMixin, TenantModel):
    __tablename__ = "change_requests"

    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    cr_number = db.Column(db.String(30), nullable=False, comment="CR-<year>-<NNN>")
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, default="")
    status = db.Column(db.String(20), default="SUBMITTED", index=True)
    cost_impact = db.Column(db.Numeric(15, 2), nullable=True)
    schedule_impact_days = db.Column(db.Integer, nullable=True)
    requested_by_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_by_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "cr_number": self.cr_number,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "cost_impact": money(self.cost_impact),
            "schedule_impact_days": self.schedule_impact_days,
            "requested_by_id": self.requested_by_id,
            "approved_by_id": self.approved_by_id,
            "approved_at": iso(self.approved_at),
            "rejection_reason": self.rejection_reason,
            "created_at": iso(self.created_at),
        }


class Document(SoftDeleteMixin, TenantModel):
    __tablename__ = "documents"

    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    program_id = db.Column(
        db.Integer, db.ForeignKey("programs.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    uploaded_by_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    name = db.Column(db.String(300), nullable=False)
    file_key = db.Column(db.String(500), nullable=False)
    mime_type = db.Column(db.String(100), default="application/octet-stream")
    size_bytes = db.Column(db.Integer, nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "program_id": self.program_id,
            "uploaded_by_id": self.uploaded_by_id,
            "name": self.name,
            "file_key": self.file_key,
            "mime_type": self.mime_type,
            "size_bytes": self.size_bytes,
            "created_at": iso(self.created_at),
        }
