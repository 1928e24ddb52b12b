"""
PPM Platform
Project blueprint — projects, EVM, tasks and milestones.

Endpoints summary:
    PROJECT    /api/v1/projects                        GET, POST  (?program_id=&status=&manager_id=)
               /api/v1/projects/<id>                   GET, PUT, DELETE
               /api/v1/projects/<id>/evm               GET

    TASK       /api/v1/projects/<id>/tasks             GET, POST
               /api/v1/projects/<id>/kanban            GET
               /api/v1/projects/<id>/wbs               GET
               /api/v1/tasks/<id>                      GET, PUT, DELETE

    MILESTONE  /api/v1/projects/<id>/milestones        GET, POST
               /api/v1/milestones/<id>                 PUT, DELETE
"""

import logging

from flask import Blueprint, jsonify, request

from ppm.blueprints import committed, current_identity, json_body, query_int
from ppm.services import project_service

logger = logging.getLogger(__name__)

project_bp = Blueprint("project", __name__, url_prefix="/api/v1")


# ═══════════════════════════════════════════════════════════════════════════
#  PROJECT
# ═══════════════════════════════════════════════════════════════════════════

@project_bp.route("/projects", methods=["GET"])
def list_projects():
    org_id, _ = current_identity()
    items = project_service.list_projects(
        organization_id=org_id,
        program_id=query_int("program_id"),
        status=request.args.get("status"),
        manager_id=query_int("manager_id"),
    )
    return jsonify({"items": [p.to_dict() for p in items], "total": len(items)})


@project_bp.route("/projects", methods=["POST"])
def create_project():
    org_id, user_id = current_identity()
    project = project_service.create_project(json_body(), organization_id=org_id, created_by=user_id)
    return committed(project, 201)


@project_bp.route("/projects/<int:project_id>", methods=["GET"])
def get_project(project_id):
    org_id, _ = current_identity()
    return project_service.get_project(project_id, organization_id=org_id).to_dict()


@project_bp.route("/projects/<int:project_id>", methods=["PUT"])
def update_project(project_id):
    org_id, _ = current_identity()
    return committed(project_service.update_project(project_id, json_body(), organization_id=org_id))


@project_bp.route("/projects/<int:project_id>", methods=["DELETE"])
def delete_project(project_id):
    org_id, user_id = current_identity()
    project_service.remove_project(project_id, organization_id=org_id, actor_id=user_id)
    return committed({"message": "Project deleted"})


@project_bp.route("/projects/<int:project_id>/evm", methods=["GET"])
def project_evm(project_id):
    org_id, _ = current_identity()
    metrics = project_service.get_project_evm(project_id, organization_id=org_id)
    return jsonify({"project_id": project_id, **metrics.to_dict()})


# ═══════════════════════════════════════════════════════════════════════════
#  TASK
# ═══════════════════════════════════════════════════════════════════════════

@project_bp.route("/projects/<int:project_id>/tasks", methods=["GET"])
def list_tasks(project_id):
    org_id, _ = current_identity()
    project_service.get_project(project_id, organization_id=org_id)
    filters = {}
    if request.args.get("status"):
        filters["status"] = request.args["status"]
    if query_int("assignee_id") is not None:
        filters["assignee_id"] = query_int("assignee_id")
    items = project_service.list_tasks(project_id, organization_id=org_id, **filters)
    return jsonify({"items": [t.to_dict() for t in items], "total": len(items)})


@project_bp.route("/projects/<int:project_id>/tasks", methods=["POST"])
def create_task(project_id):
    org_id, user_id = current_identity()
    task = project_service.create_task(project_id, json_body(), organization_id=org_id, reporter_id=user_id)
    return committed(task, 201)


@project_bp.route("/projects/<int:project_id>/kanban", methods=["GET"])
def kanban(project_id):
    org_id, _ = current_identity()
    return jsonify(project_service.get_kanban_board(project_id, organization_id=org_id))


@project_bp.route("/projects/<int:project_id>/wbs", methods=["GET"])
def wbs(project_id):
    org_id, _ = current_identity()
    return jsonify(project_service.get_wbs(project_id, organization_id=org_id))


@project_bp.route("/tasks/<int:task_id>", methods=["GET"])
def get_task(task_id):
    org_id, _ = current_identity()
    return project_service.get_task(task_id, organization_id=org_id).to_dict()


@project_bp.route("/tasks/<int:task_id>", methods=["PUT"])
def update_task(task_id):
    org_id, _ = current_identity()
    return committed(project_service.update_task(task_id, json_body(), organization_id=org_id))


@project_bp.route("/tasks/<int:task_id>", methods=["DELETE"])
def delete_task(task_id):
    org_id, _ = current_identity()
    project_service.remove_task(task_id, organization_id=org_id)
    return committed({"message": "Task deleted"})


# ═══════════════════════════════════════════════════════════════════════════
#  MILESTONE
# ═══════════════════════════════════════════════════════════════════════════

@project_bp.route("/projects/<int:project_id>/milestones", methods=["GET"])
def list_milestones(project_id):
    org_id, _ = current_identity()
    project_service.get_project(project_id, organization_id=org_id)
    items = project_service.list_milestones(project_id, organization_id=org_id)
    return jsonify({"items": [m.to_dict() for m in items], "total": len(items)})


@project_bp.route("/projects/<int:project_id>/milestones", methods=["POST"])
def create_milestone(project_id):
    org_id, _ = current_identity()
    return committed(project_service.create_milestone(project_id, json_body(), organization_id=org_id), 201)


@project_bp.route("/milestones/<int:milestone_id>", methods=["PUT"])
def update_milestone(milestone_id):
    org_id, _ = current_identity()
    return committed(project_service.update_milestone(milestone_id, json_body(), organization_id=org_id))


@project_bp.route("/milestones/<int:milestone_id>", methods=["DELETE"])
def delete_milestone(milestone_id):
    org_id, _ = current_identity()
    project_service.remove_milestone(milestone_id, organization_id=org_id)
    return committed({"message": "Milestone deleted"})
