"""Shared utility functions for services and blueprints.

parse_date:   returns None on empty / bad input
pick_fields:  whitelist a payload down to updatable columns
"""
import logging
from datetime import date, datetime

from ppm.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def parse_date(value):
    """Parse an ISO date or datetime string to a date object.

    Returns None for empty/invalid input.
    """
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value)).date()
    except (ValueError, TypeError):
        return None


def pick_fields(data: dict, allowed, *, date_fields=()) -> dict:
    """Keep only ``allowed`` keys present in ``data``; parse ``date_fields``."""
    picked = {k: data[k] for k in allowed if k in data}
    for field in date_fields:
        if field in picked:
            picked[field] = parse_date(picked[field])
    return picked


def validate_enum(value, allowed, field_name: str):
    """Raise ValidationError when ``value`` is not one of ``allowed``."""
    if value not in allowed:
        raise ValidationError(
            f"Invalid {field_name}: {value!r}",
            details={field_name: f"must be one of {sorted(allowed)}"},
        )
    return value


def require_text(data: dict, field_name: str, max_len: int = 200) -> str:
    value = data.get(field_name) or ""
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string", details={field_name: "not a string"})
    value = value.strip()
    if not value:
        raise ValidationError(f"{field_name} is required", details={field_name: "required"})
    if len(value) > max_len:
        raise ValidationError(
            f"{field_name} must be at most {max_len} characters",
            details={field_name: "too long"},
        )
    return value
