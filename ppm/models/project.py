"""
PPM Platform
Project domain models.

Models:
    - Project: unit of delivery carrying the EVM snapshot (PV / EV / AC / BAC)
    - Task: work item, optionally nested under a parent task (WBS)
    - Milestone: dated checkpoint inside a project
"""

from ppm.models import db
from ppm.models.base import TenantModel, iso, money
from ppm.models.soft_delete import SoftDeleteMixin


PROJECT_STATUSES = {"INITIATION", "PLANNING", "EXECUTION", "MONITORING", "CLOSURE", "ON_HOLD", "CANCELLED"}

TASK_STATUSES = ("BACKLOG", "TODO", "IN_PROGRESS", "IN_REVIEW", "DONE", "BLOCKED")
TASK_PRIORITIES = {"LOW", "MEDIUM", "HIGH", "CRITICAL"}

MILESTONE_STATUSES = {"PENDING", "ACHIEVED", "MISSED", "AT_RISK"}


class Project(SoftDeleteMixin, TenantModel):
    """
    A project and its financial snapshot.

    total_budget is the Budget At Completion; planned_value / earned_value /
    actual_cost feed the EVM calculator.
    """

    __tablename__ = "projects"

    program_id = db.Column(
        db.Integer, db.ForeignKey("programs.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    code = db.Column(db.String(30), nullable=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    project_manager_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )
    created_by = db.Column(db.Integer, nullable=True)
    status = db.Column(db.String(30), default="INITIATION", index=True)
    rag_status = db.Column(db.String(10), default="GREEN", index=True)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)

    # Financials
    total_budget = db.Column(db.Numeric(15, 2), default=0)
    actual_cost = db.Column(db.Numeric(15, 2), default=0)
    forecast_cost = db.Column(db.Numeric(15, 2), default=0)
    planned_value = db.Column(db.Numeric(15, 2), default=0)
    earned_value = db.Column(db.Numeric(15, 2), default=0)
    percent_complete = db.Column(db.Integer, default=0, comment="0-100")

    def to_dict(self):
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "program_id": self.program_id,
            "code": self.code,
            "name": self.name,
            "description": self.description,
            "project_manager_id": self.project_manager_id,
            "status": self.status,
            "rag_status": self.rag_status,
            "start_date": iso(self.start_date),
            "end_date": iso(self.end_date),
            "total_budget": money(self.total_budget),
            "actual_cost": money(self.actual_cost),
            "forecast_cost": money(self.forecast_cost),
            "planned_value": money(self.planned_value),
            "earned_value": money(self.earned_value),
            "percent_complete": self.percent_complete,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Project {self.id}: {self.name}>"


class Task(SoftDeleteMixin, TenantModel):
    __tablename__ = "tasks"

    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    parent_task_id = db.Column(
        db.Integer, db.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True, index=True,
    )
    milestone_id = db.Column(
        db.Integer, db.ForeignKey("milestones.id", ondelete="SET NULL"), nullable=True,
    )
    assignee_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reporter_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, default="")
    status = db.Column(db.String(20), default="BACKLOG", index=True)
    priority = db.Column(db.String(20), default="MEDIUM")
    wbs_code = db.Column(db.String(30), nullable=True)
    position = db.Column(db.Integer, default=0)
    due_date = db.Column(db.Date, nullable=True)
    estimated_hours = db.Column(db.Float, nullable=True)
    actual_hours = db.Column(db.Float, nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "parent_task_id": self.parent_task_id,
            "milestone_id": self.milestone_id,
            "assignee_id": self.assignee_id,
            "reporter_id": self.reporter_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "wbs_code": self.wbs_code,
            "position": self.position,
            "due_date": iso(self.due_date),
            "estimated_hours": self.estimated_hours,
            "actual_hours": self.actual_hours,
        }


class Milestone(SoftDeleteMixin, TenantModel):
    __tablename__ = "milestones"

    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    planned_date = db.Column(db.Date, nullable=True)
    actual_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(20), default="PENDING")

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "owner_id": self.owner_id,
            "name": self.name,
            "description": self.description,
            "planned_date": iso(self.planned_date),
            "actual_date": iso(self.actual_date),
            "status": self.status,
        }
