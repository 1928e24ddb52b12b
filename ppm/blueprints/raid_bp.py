"""
PPM Platform
RAID blueprint — risks, issues and the project risk matrix.

Endpoints summary:
    RISK    /api/v1/projects/<pid>/risks          GET, POST
            /api/v1/risks/<id>                    GET, PUT, DELETE
            /api/v1/projects/<pid>/risk-matrix    GET

    ISSUE   /api/v1/projects/<pid>/issues         GET, POST
            /api/v1/issues/<id>                   PUT, DELETE
"""

import logging

from flask import Blueprint, jsonify, request

from ppm.blueprints import committed, current_identity, json_body
from ppm.services import dashboard_service, raid_service

logger = logging.getLogger(__name__)

raid_bp = Blueprint("raid", __name__, url_prefix="/api/v1")


# ═══════════════════════════════════════════════════════════════════════════
#  RISK
# ═══════════════════════════════════════════════════════════════════════════

@raid_bp.route("/projects/<int:pid>/risks", methods=["GET"])
def list_risks(pid):
    org_id, _ = current_identity()
    risks = raid_service.list_risks(pid, organization_id=org_id, status=request.args.get("status"))
    return jsonify({"items": [r.to_dict() for r in risks], "total": len(risks)})


@raid_bp.route("/projects/<int:pid>/risks", methods=["POST"])
def create_risk(pid):
    org_id, _ = current_identity()
    risk = raid_service.create_risk(pid, json_body(), organization_id=org_id)
    return committed(risk, 201)


@raid_bp.route("/risks/<int:rid>", methods=["GET"])
def get_risk(rid):
    org_id, _ = current_identity()
    return raid_service.get_risk(rid, organization_id=org_id).to_dict()


@raid_bp.route("/risks/<int:rid>", methods=["PUT"])
def update_risk(rid):
    org_id, user_id = current_identity()
    risk = raid_service.update_risk(rid, json_body(), organization_id=org_id, actor_id=user_id)
    return committed(risk)


@raid_bp.route("/risks/<int:rid>", methods=["DELETE"])
def delete_risk(rid):
    org_id, user_id = current_identity()
    raid_service.remove_risk(rid, organization_id=org_id, actor_id=user_id)
    return committed({"message": "Risk deleted"})


@raid_bp.route("/projects/<int:pid>/risk-matrix", methods=["GET"])
def risk_matrix(pid):
    org_id, _ = current_identity()
    return jsonify(dashboard_service.get_risk_matrix(pid, org_id))


# ═══════════════════════════════════════════════════════════════════════════
#  ISSUE
# ═══════════════════════════════════════════════════════════════════════════

@raid_bp.route("/projects/<int:pid>/issues", methods=["GET"])
def list_issues(pid):
    org_id, _ = current_identity()
    issues = raid_service.list_issues(pid, organization_id=org_id)
    return jsonify({"items": [i.to_dict() for i in issues], "total": len(issues)})


@raid_bp.route("/projects/<int:pid>/issues", methods=["POST"])
def create_issue(pid):
    org_id, _ = current_identity()
    return committed(raid_service.create_issue(pid, json_body(), organization_id=org_id), 201)


@raid_bp.route("/issues/<int:iid>", methods=["PUT"])
def update_issue(iid):
    org_id, _ = current_identity()
    return committed(raid_service.update_issue(iid, json_body(), organization_id=org_id))


@raid_bp.route("/issues/<int:iid>", methods=["DELETE"])
def delete_issue(iid):
    org_id, _ = current_identity()
    raid_service.remove_issue(iid, organization_id=org_id)
    return committed({"message": "Issue deleted"})
