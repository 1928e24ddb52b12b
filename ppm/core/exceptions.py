"""
Platform-wide exception hierarchy.

Services raise these types; blueprints register one handler per type and
get consistent HTTP status codes everywhere.

Usage:
    from ppm.core.exceptions import NotFoundError, InvalidNumericInputError

    raise NotFoundError(resource="Program", resource_id=42)
    raise InvalidNumericInputError("actual_cost", -5)
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist within the given organization.

    Security note: Used for BOTH genuinely missing records AND cross-tenant
    access attempts. A 403 would confirm the resource exists; a 404 does not.

    Args:
        resource: Human-readable model/entity name (e.g. "Program", "Risk").
        resource_id: The PK that was looked up. Included in logs, not in HTTP response.
        organization_id: Optional — the scope that was enforced. For debug logging only.
    """

    def __init__(
        self,
        resource: str,
        resource_id: int | str | None = None,
        organization_id: int | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.organization_id = organization_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        if organization_id is not None:
            msg += f" (organization={organization_id})"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input fails business-rule validation in the service layer.

    Maps to HTTP 422 in blueprint error handlers.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class InvalidNumericInputError(ValidationError):
    """Raised when a ratio computation receives a non-numeric or negative amount.

    The computation is not attempted, so callers never see NaN / Infinity.
    Maps to HTTP 400.
    """

    def __init__(self, field: str, value) -> None:
        self.field = field
        self.value = value
        super().__init__(
            f"{field} must be a non-negative number, got {value!r}",
            details={field: "must be a non-negative number"},
        )


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique value.

    Maps to HTTP 409.

    Args:
        resource: Model name.
        field: The unique field that would be duplicated.
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} already exists")
