"""
PPM Platform
Portfolio domain models.

Models:
    - Portfolio: strategic grouping of programs, owns a top-level budget
    - Program: coordinated group of projects, optionally inside a portfolio

Architecture chain: Organization → Portfolio → Program → Project
"""

from ppm.models import db
from ppm.models.base import TenantModel, iso, money
from ppm.models.soft_delete import SoftDeleteMixin


# ── Constants ────────────────────────────────────────────────────────────────

RAG_STATUSES = {"GREEN", "AMBER", "RED"}

PROGRAM_STATUSES = {"INITIATION", "PLANNING", "EXECUTION", "MONITORING", "CLOSURE", "ON_HOLD", "CANCELLED"}


# ── Portfolio ────────────────────────────────────────────────────────────────


class Portfolio(SoftDeleteMixin, TenantModel):
    __tablename__ = "portfolios"

    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    strategic_objectives = db.Column(db.Text, default="")
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by = db.Column(db.Integer, nullable=True)
    total_budget = db.Column(db.Numeric(15, 2), default=0)
    allocated_budget = db.Column(db.Numeric(15, 2), default=0)
    rag_status = db.Column(db.String(10), default="GREEN", comment="GREEN | AMBER | RED")

    def to_dict(self):
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "name": self.name,
            "description": self.description,
            "strategic_objectives": self.strategic_objectives,
            "owner_id": self.owner_id,
            "total_budget": money(self.total_budget),
            "allocated_budget": money(self.allocated_budget),
            "rag_status": self.rag_status,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Portfolio {self.id}: {self.name}>"


# ── Program ──────────────────────────────────────────────────────────────────


class Program(SoftDeleteMixin, TenantModel):
    __tablename__ = "programs"

    portfolio_id = db.Column(
        db.Integer, db.ForeignKey("portfolios.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    program_manager_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )
    created_by = db.Column(db.Integer, nullable=True)
    status = db.Column(db.String(30), default="INITIATION")
    total_budget = db.Column(db.Numeric(15, 2), default=0)
    allocated_budget = db.Column(db.Numeric(15, 2), default=0)
    rag_status = db.Column(db.String(10), default="GREEN")
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "portfolio_id": self.portfolio_id,
            "name": self.name,
            "description": self.description,
            "program_manager_id": self.program_manager_id,
            "status": self.status,
            "total_budget": money(self.total_budget),
            "allocated_budget": money(self.allocated_budget),
            "rag_status": self.rag_status,
            "start_date": iso(self.start_date),
            "end_date": iso(self.end_date),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Program {self.id}: {self.name}>"
