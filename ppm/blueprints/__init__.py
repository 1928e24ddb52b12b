"""
PPM Platform
Blueprint registry and shared request helpers.
"""

from flask import g, request

from ppm.models import db


def current_identity():
    """(organization_id, user_id) resolved by the tenant context middleware."""
    return g.organization_id, g.user_id


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def query_int(name):
    """Optional integer query parameter; malformed values are ignored."""
    return request.args.get(name, type=int)


def committed(result, status=200):
    """Commit the request's unit of work and serialise ``result``."""
    db.session.commit()
    body = result.to_dict() if hasattr(result, "to_dict") else result
    return body, status


def register_blueprints(app):
    from ppm.blueprints.admin_bp import admin_bp
    from ppm.blueprints.financials_bp import financials_bp
    from ppm.blueprints.health_bp import health_bp
    from ppm.blueprints.portfolio_bp import portfolio_bp
    from ppm.blueprints.project_bp import project_bp
    from ppm.blueprints.raid_bp import raid_bp
    from ppm.blueprints.reporting_bp import reporting_bp
    from ppm.blueprints.resource_bp import resource_bp

    for bp in (
        health_bp, admin_bp, portfolio_bp, project_bp,
        raid_bp, financials_bp, resource_bp, reporting_bp,
    ):
        app.register_blueprint(bp)
