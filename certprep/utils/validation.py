"""Validation utilities."""
from datetime import timezone

from certprep.errors import BadRequest
from certprep.utils.time_utils import parse_utc_offset


def validate_id(name: str, value: str) -> str:
    """Validate a path/query id (non-empty, no separators)."""
    if not isinstance(value, str):
        raise BadRequest(f"{name} is required")
    cleaned = value.strip()
    if not cleaned:
        raise BadRequest(f"{name} is required")
    if "/" in cleaned or "\\" in cleaned or len(cleaned) > 64:
        raise BadRequest(f"Invalid {name}")
    return cleaned


def validate_timezone(value: str) -> timezone:
    """Parse the caller-supplied ``timezone`` query parameter."""
    # An unescaped "+" in a query string arrives as a space
    if isinstance(value, str) and value.startswith(" ") and value[1:2].isdigit():
        value = "+" + value[1:]
    try:
        return parse_utc_offset(value)
    except ValueError as exc:
        raise BadRequest(str(exc)) from exc
