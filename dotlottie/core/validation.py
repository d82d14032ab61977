"""Input validation helpers for container identifiers and sources."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

from dotlottie.errors import InvalidIdentifier, SchemaViolation

# Ids become archive entry names, so path separators are rejected.
_FORBIDDEN_ID_CHARS = frozenset('/\\\0')

LOTTIE_MANDATORY_KEYS = ("v", "ip", "op", "layers", "fr", "w", "h")


def validate_id(value: Any, kind: str = "document") -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidIdentifier(f"Invalid {kind} id: must be a non-empty string")
    if any(ch in _FORBIDDEN_ID_CHARS for ch in value):
        raise InvalidIdentifier(f"Invalid {kind} id {value!r}: path separators are not allowed")
    if value in {".", ".."}:
        raise InvalidIdentifier(f"Invalid {kind} id {value!r}")
    return value


def is_valid_url(value: Any) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    if not parsed.scheme:
        return False
    if parsed.scheme == "file":
        return bool(parsed.path)
    return bool(parsed.netloc)


def validate_url(value: Any) -> str:
    if not is_valid_url(value):
        raise InvalidIdentifier(f"Invalid url provided: {value!r}")
    return value


def validate_lottie_data(data: Any) -> dict:
    """Check that a document carries the mandatory Lottie top-level keys."""
    if not isinstance(data, dict):
        raise SchemaViolation("Animation data must be a JSON object")
    missing = [key for key in LOTTIE_MANDATORY_KEYS if key not in data]
    if missing:
        raise SchemaViolation(f"Animation data is missing mandatory keys: {', '.join(missing)}")
    if not isinstance(data["layers"], list):
        raise SchemaViolation("Animation data 'layers' must be a list")
    return data
