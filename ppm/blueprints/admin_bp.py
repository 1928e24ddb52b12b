"""
PPM Platform
Admin blueprint — the caller's organization and its users.

Endpoints:
    GET  /api/v1/organization
    PUT  /api/v1/organization
    GET  /api/v1/users
    POST /api/v1/users
    PUT  /api/v1/users/<id>
    DELETE /api/v1/users/<id>     (soft delete + deactivate)
"""

import logging

from flask import Blueprint, jsonify

from ppm.blueprints import committed, current_identity, json_body
from ppm.services import organization_service

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/v1")


@admin_bp.route("/organization", methods=["GET"])
def get_organization():
    org_id, _ = current_identity()
    return organization_service.get_organization(org_id).to_dict()


@admin_bp.route("/organization", methods=["PUT"])
def update_organization():
    org_id, _ = current_identity()
    return committed(organization_service.update_organization(org_id, json_body()))


@admin_bp.route("/users", methods=["GET"])
def list_users():
    org_id, _ = current_identity()
    users = organization_service.list_users(organization_id=org_id)
    return jsonify({"items": [u.to_dict() for u in users], "total": len(users)})


@admin_bp.route("/users", methods=["POST"])
def create_user():
    org_id, _ = current_identity()
    return committed(organization_service.create_user(json_body(), organization_id=org_id), 201)


@admin_bp.route("/users/<int:uid>", methods=["PUT"])
def update_user(uid):
    org_id, _ = current_identity()
    return committed(organization_service.update_user(uid, json_body(), organization_id=org_id))


@admin_bp.route("/users/<int:uid>", methods=["DELETE"])
def delete_user(uid):
    org_id, user_id = current_identity()
    organization_service.remove_user(uid, organization_id=org_id, actor_id=user_id)
    return committed({"message": "User removed"})
