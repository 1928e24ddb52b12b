"""
PPM Platform
Reporting blueprint — executive dashboard, organization stats, audit trail.

Endpoints:
    GET /api/v1/reports/executive-dashboard   (?top=N overrides EXECUTIVE_TOP_RISKS)
    GET /api/v1/reports/organization-stats
    GET /api/v1/audit-logs                    (?entity_type=&user_id=)
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from ppm.blueprints import current_identity, query_int
from ppm.services import audit_service, dashboard_service, organization_service

logger = logging.getLogger(__name__)

reporting_bp = Blueprint("reporting", __name__, url_prefix="/api/v1")


@reporting_bp.route("/reports/executive-dashboard", methods=["GET"])
def executive_dashboard():
    org_id, _ = current_identity()
    top_n = query_int("top")
    if top_n is None or top_n < 0:
        top_n = current_app.config.get("EXECUTIVE_TOP_RISKS", dashboard_service.DEFAULT_TOP_RISKS)
    return jsonify(dashboard_service.get_executive_dashboard(org_id, top_n=top_n))


@reporting_bp.route("/reports/organization-stats", methods=["GET"])
def organization_stats():
    org_id, _ = current_identity()
    return jsonify(organization_service.get_organization_stats(org_id))


@reporting_bp.route("/audit-logs", methods=["GET"])
def audit_logs():
    org_id, _ = current_identity()
    items = audit_service.list_audit_logs(
        organization_id=org_id,
        entity_type=request.args.get("entity_type"),
        user_id=query_int("user_id"),
    )
    return jsonify({"items": [a.to_dict() for a in items], "total": len(items)})
