"""Organization service — tenant root, organization stats and users.

Transaction policy: functions use flush(), never commit().
Caller (route handler) is responsible for db.session.commit().
"""
import logging
from typing import Any

from ppm.core.exceptions import ConflictError, NotFoundError
from ppm.models import db
from ppm.models.organization import USER_ROLES, Organization, User
from ppm.models.portfolio import Portfolio, Program
from ppm.models.project import Project
from ppm.services.audit_service import write_audit
from ppm.services.helpers import tenant_store as store
from ppm.utils.helpers import pick_fields, require_text, validate_enum

logger = logging.getLogger(__name__)

ORGANIZATION_FIELDS = ("name", "domain", "is_active", "settings")
USER_FIELDS = ("first_name", "last_name", "role", "phone", "is_active")


# ── Organization ─────────────────────────────────────────────────────────


def create_organization(data: dict[str, Any]) -> Organization:
    """Create a tenant root. Onboarding only; not reachable from tenant APIs."""
    name = require_text(data, "name")
    slug = require_text(data, "slug", max_len=100).lower()
    if Organization.query.filter_by(slug=slug).first() is not None:
        raise ConflictError("Organization", "slug", slug)
    org = Organization(name=name, slug=slug, domain=data.get("domain"), is_active=True)
    db.session.add(org)
    db.session.flush()
    logger.info("Organization created id=%s slug=%s", org.id, slug)
    return org


def get_organization(organization_id: int) -> Organization:
    return store.find_one(Organization, organization_id, id=organization_id)


def update_organization(organization_id: int, data: dict[str, Any]) -> Organization:
    return store.update(
        Organization, organization_id, organization_id, pick_fields(data, ORGANIZATION_FIELDS),
    )


def get_organization_stats(organization_id: int) -> dict:
    """Active entity counts for the organization overview."""
    return {
        "portfolios": store.count(Portfolio, organization_id),
        "programs": store.count(Program, organization_id),
        "projects": store.count(Project, organization_id),
        "users": store.count(User, organization_id, is_active=True),
    }


# ── Users ────────────────────────────────────────────────────────────────


def list_users(*, organization_id: int) -> list[User]:
    return store.find_many(User, organization_id, order_by=("first_name", "id"))


def get_user(user_id: int, *, organization_id: int) -> User:
    return store.find_one(User, organization_id, id=user_id)


def create_user(data: dict[str, Any], *, organization_id: int) -> User:
    email = require_text(data, "email").lower()
    role = validate_enum(data.get("role", "TEAM_MEMBER"), USER_ROLES, "role")
    if store.find_one_or_none(User, organization_id, options=store.WITH_DELETED, email=email):
        raise ConflictError("User", "email", email)
    return store.create(
        User,
        organization_id,
        email=email,
        first_name=data.get("first_name", ""),
        last_name=data.get("last_name", ""),
        role=role,
        phone=data.get("phone"),
    )


def update_user(user_id: int, data: dict[str, Any], *, organization_id: int) -> User:
    get_user(user_id, organization_id=organization_id)
    patch = pick_fields(data, USER_FIELDS)
    if "role" in patch:
        validate_enum(patch["role"], USER_ROLES, "role")
    return store.update(User, organization_id, user_id, patch)


def remove_user(user_id: int, *, organization_id: int, actor_id: int | None = None) -> User:
    """Soft-delete and deactivate a user."""
    user = get_user(user_id, organization_id=organization_id)
    user.is_active = False
    store.delete(User, organization_id, user.id)
    write_audit(
        organization_id=organization_id, entity_type="user", entity_id=user.id,
        action="delete", user_id=actor_id,
    )
    return user


def ensure_active_organization(organization_id: int) -> Organization:
    """Identity-context check: the organization exists, is not deleted and is active."""
    org = store.find_one_or_none(Organization, organization_id, id=organization_id)
    if org is None or not org.is_active:
        raise NotFoundError(resource="Organization", resource_id=organization_id)
    return org
