"""
PPM Platform
Portfolio blueprint — portfolios, programs and their dashboards.

Endpoints summary:
    PORTFOLIO  /api/v1/portfolios                  GET, POST
               /api/v1/portfolios/<id>             GET, PUT, DELETE
               /api/v1/portfolios/dashboard        GET

    PROGRAM    /api/v1/programs                    GET, POST   (?portfolio_id=)
               /api/v1/programs/<id>               GET, PUT, DELETE
               /api/v1/programs/<id>/summary       GET
"""

import logging

from flask import Blueprint, jsonify

from ppm.blueprints import committed, current_identity, json_body, query_int
from ppm.services import dashboard_service, portfolio_service

logger = logging.getLogger(__name__)

portfolio_bp = Blueprint("portfolio", __name__, url_prefix="/api/v1")


# ═══════════════════════════════════════════════════════════════════════════
#  PORTFOLIO
# ═══════════════════════════════════════════════════════════════════════════

@portfolio_bp.route("/portfolios", methods=["GET"])
def list_portfolios():
    org_id, _ = current_identity()
    items = portfolio_service.list_portfolios(organization_id=org_id)
    return jsonify({"items": [p.to_dict() for p in items], "total": len(items)})


@portfolio_bp.route("/portfolios", methods=["POST"])
def create_portfolio():
    org_id, user_id = current_identity()
    portfolio = portfolio_service.create_portfolio(json_body(), organization_id=org_id, created_by=user_id)
    return committed(portfolio, 201)


@portfolio_bp.route("/portfolios/dashboard", methods=["GET"])
def portfolio_dashboard():
    org_id, _ = current_identity()
    return jsonify(dashboard_service.get_portfolio_dashboard(org_id))


@portfolio_bp.route("/portfolios/<int:portfolio_id>", methods=["GET"])
def get_portfolio(portfolio_id):
    org_id, _ = current_identity()
    return portfolio_service.get_portfolio(portfolio_id, organization_id=org_id).to_dict()


@portfolio_bp.route("/portfolios/<int:portfolio_id>", methods=["PUT"])
def update_portfolio(portfolio_id):
    org_id, _ = current_identity()
    return committed(portfolio_service.update_portfolio(portfolio_id, json_body(), organization_id=org_id))


@portfolio_bp.route("/portfolios/<int:portfolio_id>", methods=["DELETE"])
def delete_portfolio(portfolio_id):
    org_id, user_id = current_identity()
    portfolio_service.remove_portfolio(portfolio_id, organization_id=org_id, actor_id=user_id)
    return committed({"message": "Portfolio deleted"})


# ═══════════════════════════════════════════════════════════════════════════
#  PROGRAM
# ═══════════════════════════════════════════════════════════════════════════

@portfolio_bp.route("/programs", methods=["GET"])
def list_programs():
    org_id, _ = current_identity()
    items = portfolio_service.list_programs(organization_id=org_id, portfolio_id=query_int("portfolio_id"))
    return jsonify({"items": [p.to_dict() for p in items], "total": len(items)})


@portfolio_bp.route("/programs", methods=["POST"])
def create_program():
    org_id, user_id = current_identity()
    program = portfolio_service.create_program(json_body(), organization_id=org_id, created_by=user_id)
    return committed(program, 201)


@portfolio_bp.route("/programs/<int:program_id>", methods=["GET"])
def get_program(program_id):
    org_id, _ = current_identity()
    return portfolio_service.get_program(program_id, organization_id=org_id).to_dict()


@portfolio_bp.route("/programs/<int:program_id>", methods=["PUT"])
def update_program(program_id):
    org_id, _ = current_identity()
    return committed(portfolio_service.update_program(program_id, json_body(), organization_id=org_id))


@portfolio_bp.route("/programs/<int:program_id>", methods=["DELETE"])
def delete_program(program_id):
    org_id, user_id = current_identity()
    portfolio_service.remove_program(program_id, organization_id=org_id, actor_id=user_id)
    return committed({"message": "Program deleted"})


@portfolio_bp.route("/programs/<int:program_id>/summary", methods=["GET"])
def program_summary(program_id):
    org_id, _ = current_identity()
    return jsonify(dashboard_service.get_program_summary(program_id, org_id))
