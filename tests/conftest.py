"""
Shared pytest fixtures for the PPM Platform test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - org_a / org_b: two pre-created organizations (tenants)
    - make_project: factory for a portfolio → program → project chain
    - auth_headers: factory for Bearer headers carrying an organization claim
"""

import jwt
import pytest

from ppm import create_app
from ppm.models import db as _db


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield _db.session
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Tenants ──────────────────────────────────────────────────────────────


def _make_org(name, slug):
    from ppm.services.organization_service import create_organization

    org = create_organization({"name": name, "slug": slug})
    _db.session.commit()
    return org


@pytest.fixture()
def org_a():
    return _make_org("Acme Corp", "acme")


@pytest.fixture()
def org_b():
    return _make_org("Globex", "globex")


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def make_project():
    """Create portfolio → program → project for an organization.

    Usage: project = make_project(org_a.id, total_budget=1000, rag_status="RED")
    """
    from ppm.services import portfolio_service, project_service

    def _make(organization_id, *, program_id=None, name="Project", **fields):
        if program_id is None:
            portfolio = portfolio_service.create_portfolio(
                {"name": "Portfolio"}, organization_id=organization_id,
            )
            program = portfolio_service.create_program(
                {"name": "Program", "portfolio_id": portfolio.id}, organization_id=organization_id,
            )
            program_id = program.id
        project = project_service.create_project(
            {"name": name, "program_id": program_id, **fields}, organization_id=organization_id,
        )
        _db.session.commit()
        return project

    return _make


@pytest.fixture()
def auth_headers(app):
    """Build Authorization headers for an organization / user pair."""

    def _headers(organization_id, user_id=None):
        claims = {"organization_id": organization_id}
        if user_id is not None:
            claims["sub"] = str(user_id)
        token = jwt.encode(
            claims,
            app.config["SECRET_KEY"],
            algorithm=app.config["JWT_ALGORITHM"],
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
