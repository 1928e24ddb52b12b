"""
PPM Platform
Flask Application Factory.

Usage:
    from ppm import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask
from flask_cors import CORS
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from ppm.config import config
from ppm.middleware.logging_config import configure_logging
from ppm.middleware.tenant_context import init_tenant_context
from ppm.middleware.timing import init_request_timing
from ppm.models import db

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    config_cls = config[config_name]
    # ProductionConfig validates required env vars on instantiation
    app.config.from_object(config_cls() if config_name == "production" else config_cls)

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request id / timing, then identity ───────────────────────────────
    init_request_timing(app)
    init_tenant_context(app)

    # ── Import all models so Alembic can detect them ─────────────────────
    from ppm.models import financials as _financials_models      # noqa: F401
    from ppm.models import organization as _organization_models  # noqa: F401
    from ppm.models import portfolio as _portfolio_models        # noqa: F401
    from ppm.models import project as _project_models            # noqa: F401
    from ppm.models import raid as _raid_models                  # noqa: F401

    # ── Auto-create tables outside production (migrations own prod) ─────
    if config_name != "production":
        os.makedirs(app.instance_path, exist_ok=True)
        with app.app_context():
            db.create_all()
            app.logger.debug("db.create_all() completed")

    # ── Blueprints and error handlers ────────────────────────────────────
    from ppm.blueprints import register_blueprints
    from ppm.utils.errors import register_error_handlers

    register_blueprints(app)
    register_error_handlers(app)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("create-organization")
    def create_organization_cmd():
        """Create a tenant from ORG_NAME / ORG_SLUG env vars."""
        from ppm.services.organization_service import create_organization

        org = create_organization({
            "name": os.getenv("ORG_NAME", "Default Organization"),
            "slug": os.getenv("ORG_SLUG", "default"),
        })
        db.session.commit()
        logger.info("Created organization id=%s slug=%s", org.id, org.slug)

    return app
