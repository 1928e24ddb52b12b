"""
PPM Platform
Financials blueprint — budgets and change requests.

Endpoints summary:
    BUDGET  /api/v1/projects/<pid>/budgets              GET (lines + totals), POST
            /api/v1/budgets/<id>                        PUT, DELETE

    CR      /api/v1/projects/<pid>/change-requests      GET, POST
            /api/v1/change-requests/<id>/approve        POST
            /api/v1/change-requests/<id>/reject         POST
            /api/v1/change-requests/<id>                DELETE
"""

import logging

from flask import Blueprint, jsonify, request

from ppm.blueprints import committed, current_identity, json_body
from ppm.services import financials_service

logger = logging.getLogger(__name__)

financials_bp = Blueprint("financials", __name__, url_prefix="/api/v1")


# ── Budget ───────────────────────────────────────────────────────────────────

@financials_bp.route("/projects/<int:pid>/budgets", methods=["GET"])
def budget_summary(pid):
    org_id, _ = current_identity()
    return jsonify(financials_service.get_budget_summary(pid, organization_id=org_id))


@financials_bp.route("/projects/<int:pid>/budgets", methods=["POST"])
def create_budget(pid):
    org_id, _ = current_identity()
    return committed(financials_service.create_budget(pid, json_body(), organization_id=org_id), 201)


@financials_bp.route("/budgets/<int:bid>", methods=["PUT"])
def update_budget(bid):
    org_id, _ = current_identity()
    return committed(financials_service.update_budget(bid, json_body(), organization_id=org_id))


@financials_bp.route("/budgets/<int:bid>", methods=["DELETE"])
def delete_budget(bid):
    org_id, _ = current_identity()
    financials_service.remove_budget(bid, organization_id=org_id)
    return committed({"message": "Budget line deleted"})


# ── Change request ───────────────────────────────────────────────────────────

@financials_bp.route("/projects/<int:pid>/change-requests", methods=["GET"])
def list_change_requests(pid):
    org_id, _ = current_identity()
    items = financials_service.list_change_requests(
        pid, organization_id=org_id, status=request.args.get("status"),
    )
    return jsonify({"items": [c.to_dict() for c in items], "total": len(items)})


@financials_bp.route("/projects/<int:pid>/change-requests", methods=["POST"])
def create_change_request(pid):
    org_id, user_id = current_identity()
    cr = financials_service.create_change_request(
        pid, json_body(), organization_id=org_id, requested_by_id=user_id,
    )
    return committed(cr, 201)


@financials_bp.route("/change-requests/<int:cid>/approve", methods=["POST"])
def approve_change_request(cid):
    org_id, user_id = current_identity()
    return committed(
        financials_service.approve_change_request(cid, organization_id=org_id, approved_by_id=user_id)
    )


@financials_bp.route("/change-requests/<int:cid>/reject", methods=["POST"])
def reject_change_request(cid):
    org_id, user_id = current_identity()
    reason = json_body().get("reason", "")
    return committed(
        financials_service.reject_change_request(
            cid, organization_id=org_id, reason=reason, rejected_by_id=user_id,
        )
    )


@financials_bp.route("/change-requests/<int:cid>", methods=["DELETE"])
def delete_change_request(cid):
    org_id, _ = current_identity()
    financials_service.remove_change_request(cid, organization_id=org_id)
    return committed({"message": "Change request deleted"})
