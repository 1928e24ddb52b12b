"""
PPM Platform
Resource blueprint — resources, assignments, capacity and document metadata.

Endpoints summary:
    /api/v1/resources                                       GET, POST
    /api/v1/resources/<id>                                  PUT, DELETE
    /api/v1/resources/<id>/assignments                      POST
    /api/v1/assignments/<id>                                DELETE
    /api/v1/resources/capacity?start=YYYY-MM-DD&end=...     GET
    /api/v1/documents                                       GET, POST  (?project_id=&program_id=)
    /api/v1/documents/<id>                                  DELETE
"""

import logging

from flask import Blueprint, jsonify, request

from ppm.blueprints import committed, current_identity, json_body, query_int
from ppm.services import document_service, resource_service
from ppm.utils.errors import E, api_error
from ppm.utils.helpers import parse_date

logger = logging.getLogger(__name__)

resource_bp = Blueprint("resource", __name__, url_prefix="/api/v1")


@resource_bp.route("/resources", methods=["GET"])
def list_resources():
    org_id, _ = current_identity()
    active_only = request.args.get("active", "").lower() in ("1", "true")
    items = resource_service.list_resources(organization_id=org_id, active_only=active_only)
    return jsonify({"items": [r.to_dict() for r in items], "total": len(items)})


@resource_bp.route("/resources", methods=["POST"])
def create_resource():
    org_id, _ = current_identity()
    return committed(resource_service.create_resource(json_body(), organization_id=org_id), 201)


@resource_bp.route("/resources/<int:rid>", methods=["PUT"])
def update_resource(rid):
    org_id, _ = current_identity()
    return committed(resource_service.update_resource(rid, json_body(), organization_id=org_id))


@resource_bp.route("/resources/<int:rid>", methods=["DELETE"])
def delete_resource(rid):
    org_id, _ = current_identity()
    resource_service.remove_resource(rid, organization_id=org_id)
    return committed({"message": "Resource deleted"})


@resource_bp.route("/resources/<int:rid>/assignments", methods=["POST"])
def assign_resource(rid):
    org_id, _ = current_identity()
    data = json_body()
    assignment = resource_service.assign_resource(
        rid, data.get("project_id"), data, organization_id=org_id,
    )
    return committed(assignment, 201)


@resource_bp.route("/assignments/<int:aid>", methods=["DELETE"])
def delete_assignment(aid):
    org_id, _ = current_identity()
    resource_service.remove_assignment(aid, organization_id=org_id)
    return committed({"message": "Assignment deleted"})


@resource_bp.route("/resources/capacity", methods=["GET"])
def resource_capacity():
    org_id, _ = current_identity()
    start = parse_date(request.args.get("start"))
    end = parse_date(request.args.get("end"))
    if start is None or end is None:
        return api_error(E.VALIDATION_REQUIRED, "start and end dates are required (YYYY-MM-DD)")
    return jsonify(resource_service.get_resource_capacity(organization_id=org_id, start=start, end=end))


# ── Documents ────────────────────────────────────────────────────────────────

@resource_bp.route("/documents", methods=["GET"])
def list_documents():
    org_id, _ = current_identity()
    items = document_service.list_documents(
        organization_id=org_id,
        project_id=query_int("project_id"),
        program_id=query_int("program_id"),
    )
    return jsonify({"items": [d.to_dict() for d in items], "total": len(items)})


@resource_bp.route("/documents", methods=["POST"])
def create_document():
    org_id, user_id = current_identity()
    doc = document_service.create_document(json_body(), organization_id=org_id, uploaded_by_id=user_id)
    return committed(doc, 201)


@resource_bp.route("/documents/<int:did>", methods=["DELETE"])
def delete_document(did):
    org_id, _ = current_identity()
    document_service.remove_document(did, organization_id=org_id)
    return committed({"message": "Document deleted"})
