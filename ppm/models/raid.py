"""
PPM Platform
RAID domain models — risks and issues.

Models:
    - Risk: probability × impact scoring (1-25) with a derived band
    - Issue: current problem requiring resolution

Architecture chain: Project → Risk / Issue
"""

from ppm.models import db
from ppm.models.base import TenantModel, iso
from ppm.models.soft_delete import SoftDeleteMixin
from ppm.services.risk_scoring import score_risk


# ── Constants ────────────────────────────────────────────────────────────────

RISK_STATUSES = {"OPEN", "IN_PROGRESS", "MITIGATED", "CLOSED", "ACCEPTED"}
INACTIVE_RISK_STATUSES = frozenset({"CLOSED", "MITIGATED"})

RISK_CATEGORIES = {"TECHNICAL", "FINANCIAL", "SCHEDULE", "RESOURCE", "SCOPE", "EXTERNAL", "REGULATORY"}

ISSUE_STATUSES = {"OPEN", "IN_PROGRESS", "RESOLVED", "CLOSED"}
ISSUE_SEVERITIES = {"CRITICAL", "HIGH", "MEDIUM", "LOW"}


# ═══════════════════════════════════════════════════════════════════════════
#  RISK
# ═══════════════════════════════════════════════════════════════════════════

class Risk(SoftDeleteMixin, TenantModel):
    """
    A risk tracked for a project.

    risk_score is derived from probability × impact and must only be
    written through recalculate_score().
    """

    __tablename__ = "risks"

    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, default="")
    category = db.Column(db.String(30), default="TECHNICAL")
    status = db.Column(db.String(20), default="OPEN", index=True)

    probability = db.Column(db.String(20), default="MEDIUM", comment="VERY_LOW..VERY_HIGH")
    impact = db.Column(db.String(20), default="MEDIUM", comment="VERY_LOW..CRITICAL")
    risk_score = db.Column(db.Integer, default=9, index=True, comment="probability × impact")

    mitigation_plan = db.Column(db.Text, default="")
    contingency_plan = db.Column(db.Text, default="")
    due_date = db.Column(db.Date, nullable=True)

    def recalculate_score(self):
        """Recalculate risk_score from the probability / impact pair currently set."""
        self.risk_score = score_risk(self.probability, self.impact).score
        return self.risk_score

    @property
    def band(self):
        return score_risk(self.probability, self.impact).band

    def to_dict(self):
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "project_id": self.project_id,
            "owner_id": self.owner_id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "status": self.status,
            "probability": self.probability,
            "impact": self.impact,
            "risk_score": self.risk_score,
            "band": self.band,
            "mitigation_plan": self.mitigation_plan,
            "contingency_plan": self.contingency_plan,
            "due_date": iso(self.due_date),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Risk {self.id}: {self.title[:40]}>"


# ═══════════════════════════════════════════════════════════════════════════
#  ISSUE
# ═══════════════════════════════════════════════════════════════════════════

class Issue(SoftDeleteMixin, TenantModel):
    __tablename__ = "issues"

    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, default="")
    severity = db.Column(db.String(20), default="MEDIUM")
    status = db.Column(db.String(20), default="OPEN", index=True)
    resolution = db.Column(db.Text, default="")
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "owner_id": self.owner_id,
            "title": self.title,
            "description": self.description,
            "severity": self.severity,
            "status": self.status,
            "resolution": self.resolution,
            "resolved_at": iso(self.resolved_at),
        }
