"""
Tenant Context Middleware — resolves the caller's identity for API requests.

Every /api/v1 request (except the skip list) must carry
``Authorization: Bearer <jwt>``. Tokens are issued elsewhere; here they are
only verified with SECRET_KEY and read for two claims:

    sub              → g.user_id
    organization_id  → g.organization_id

The organization must exist, not be soft-deleted and be active. Downstream
services receive g.organization_id explicitly; nothing reads it implicitly.

Chain order:
  timing.py  →  tenant_context.py  →  route handler
"""

import logging

import jwt as pyjwt
from flask import current_app, g, request

from ppm.services.organization_service import ensure_active_organization
from ppm.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# Paths that skip identity resolution (unauthenticated paths only)
TENANT_SKIP_PREFIXES = (
    "/api/v1/health",
)


class IdentityError(Exception):
    """Token missing, malformed, expired or lacking the required claims."""


def decode_identity(token: str) -> tuple[int, int | None]:
    """Verify a bearer token and return (organization_id, user_id)."""
    try:
        payload = pyjwt.decode(
            token,
            current_app.config["SECRET_KEY"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
        )
    except pyjwt.ExpiredSignatureError as exc:
        raise IdentityError("Token expired") from exc
    except pyjwt.InvalidTokenError as exc:
        raise IdentityError("Invalid token") from exc

    org_id = payload.get("organization_id")
    if org_id is None:
        raise IdentityError("Token has no organization_id claim")
    try:
        org_id = int(org_id)
        user_id = int(payload["sub"]) if payload.get("sub") is not None else None
    except (TypeError, ValueError) as exc:
        raise IdentityError("Token claims are malformed") from exc
    return org_id, user_id


def init_tenant_context(app):
    """Register tenant context middleware as a before_request hook."""

    @app.before_request
    def _tenant_context():
        g.organization_id = None
        g.user_id = None

        if not request.path.startswith("/api/v1/"):
            return None
        for prefix in TENANT_SKIP_PREFIXES:
            if request.path.startswith(prefix):
                return None
        # CORS preflight carries no credentials
        if request.method == "OPTIONS":
            return None

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return api_error(E.UNAUTHORIZED, "Authentication required")

        try:
            org_id, user_id = decode_identity(auth_header[7:])
        except IdentityError as exc:
            logger.warning("Rejected bearer token on %s: %s", request.path, exc)
            return api_error(E.UNAUTHORIZED, str(exc))

        # NotFoundError → 404 via the registered error handler
        ensure_active_organization(org_id)

        g.organization_id = org_id
        g.user_id = user_id
        return None

    logger.info("Tenant context middleware installed")
