"""
Roll-up aggregation over plain collections.

These functions never touch the database: callers fetch rows through the
tenant store and pass them in, so every roll-up is unit-testable with
simple objects. Rows only need the attributes named in each docstring.

Empty-collection policy: an empty hierarchy is a valid state. Means and
ratios over nothing are 0, never NaN or ZeroDivisionError. Missing amounts
count as 0 in sums and are never used as denominators.
"""

from decimal import ROUND_HALF_UP, Decimal

from ppm.models.raid import INACTIVE_RISK_STATUSES
from ppm.services.risk_scoring import (
    IMPACT_WEIGHTS,
    PROBABILITY_WEIGHTS,
    impact_weight,
    probability_weight,
    risk_band,
)

RAG_KEYS = ("green", "amber", "red")

HEATMAP_LABELS = {
    "probability": list(PROBABILITY_WEIGHTS),
    "impact": list(IMPACT_WEIGHTS),
}


def amount(value) -> float:
    """Monetary value for summation: missing counts as zero."""
    return float(value) if value is not None else 0.0


def round_half_up(value) -> int:
    return int(Decimal(repr(float(value))).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def mean(values) -> float:
    values = [v or 0 for v in values]
    return sum(values) / len(values) if values else 0


def rag_distribution(projects) -> dict:
    """Count projects per RAG status. Rows need `rag_status`."""
    dist = dict.fromkeys(RAG_KEYS, 0)
    for p in projects:
        key = (p.rag_status or "").lower()
        if key in dist:
            dist[key] += 1
    return dist


def portfolio_rollup(projects_by_program: dict) -> dict:
    """Health counts for one portfolio.

    Args:
        projects_by_program: {program_id: [project, ...]} for the portfolio's
            active programs (a program without projects maps to []).
    """
    projects = [p for group in projects_by_program.values() for p in group]
    dist = rag_distribution(projects)
    return {
        "program_count": len(projects_by_program),
        "total_projects": sum(len(group) for group in projects_by_program.values()),
        "red_projects": dist["red"],
        "amber_projects": dist["amber"],
        "green_projects": dist["green"],
    }


def program_rollup(projects) -> dict:
    """Budget / progress summary of a program's projects.

    Rows need `total_budget`, `actual_cost`, `percent_complete`.
    """
    projects = list(projects)
    return {
        "total_budget": sum(amount(p.total_budget) for p in projects),
        "actual_cost": sum(amount(p.actual_cost) for p in projects),
        "avg_complete": mean(p.percent_complete for p in projects),
    }


def executive_rollup(projects, *, portfolio_count: int, program_count: int) -> dict:
    """Organization-wide summary block and RAG distribution."""
    projects = list(projects)
    total_budget = sum(amount(p.total_budget) for p in projects)
    total_actual = sum(amount(p.actual_cost) for p in projects)
    return {
        "summary": {
            "portfolios": portfolio_count,
            "programs": program_count,
            "projects": len(projects),
            "total_budget": total_budget,
            "total_actual_cost": total_actual,
            "budget_utilization": round_half_up(total_actual / total_budget * 100) if total_budget > 0 else 0,
            "avg_completion": round_half_up(mean(p.percent_complete for p in projects)),
        },
        "rag_distribution": rag_distribution(projects),
    }


def risk_matrix(risks) -> dict:
    """Band / status counts plus a 5×5 probability × impact heatmap.

    Rows need `risk_score`, `status`, `probability`, `impact`. Heatmap cells
    count only risks still in play (not CLOSED / MITIGATED); row index is
    probability weight − 1, column index is impact weight − 1.
    """
    summary = {"critical": 0, "high": 0, "medium": 0, "low": 0, "open": 0, "mitigated": 0}
    heatmap = [[0] * 5 for _ in range(5)]

    for r in risks:
        summary[risk_band(r.risk_score or 0).lower()] += 1
        status = (r.status or "").upper()
        if status == "OPEN":
            summary["open"] += 1
        elif status == "MITIGATED":
            summary["mitigated"] += 1
        if status not in INACTIVE_RISK_STATUSES:
            heatmap[probability_weight(r.probability) - 1][impact_weight(r.impact) - 1] += 1

    return {"summary": summary, "heatmap": heatmap, "labels": HEATMAP_LABELS}


def budget_rollup(budgets) -> dict:
    """Totals across budget lines. Rows need budget_type and the three amounts."""
    budgets = list(budgets)
    return {
        "total_planned": sum(amount(b.planned_amount) for b in budgets),
        "total_actual": sum(amount(b.actual_amount) for b in budgets),
        "total_forecast": sum(amount(b.forecast_amount) for b in budgets),
        "capex": sum(amount(b.planned_amount) for b in budgets if b.budget_type == "CAPEX"),
        "opex": sum(amount(b.planned_amount) for b in budgets if b.budget_type == "OPEX"),
    }


def resource_capacity(resource, assignments) -> dict:
    """Allocation of one resource over the assignments overlapping a window."""
    total = sum(a.allocation_percent or 0 for a in assignments)
    availability = resource.availability_percent or 0
    return {
        "total_allocation": total,
        "is_over_allocated": total > 100,
        "available_capacity": max(0, availability - total),
    }
