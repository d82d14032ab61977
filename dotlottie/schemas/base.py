"""Shared pydantic plumbing for container documents."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from dotlottie.errors import SchemaViolation

ModelT = TypeVar("ModelT", bound=BaseModel)


class DocumentModel(BaseModel):
    """Lenient wire model: camelCase aliases, unknown keys kept."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class StrictDocumentModel(BaseModel):
    """Typed wire model: declared fields are checked, unknown keys are dropped."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def describe_errors(exc: ValidationError, limit: int = 5) -> str:
    parts = []
    for error in exc.errors()[:limit]:
        location = ".".join(str(item) for item in error.get("loc", ())) or "<root>"
        parts.append(f"{location}: {error.get('msg', 'invalid')}")
    remaining = exc.error_count() - limit
    if remaining > 0:
        parts.append(f"... and {remaining} more")
    return "; ".join(parts)


def validate_document(model: type[ModelT], data: Any, label: str) -> ModelT:
    """Validate ``data`` against ``model``, raising SchemaViolation on failure."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise SchemaViolation(f"Invalid {label}: {describe_errors(exc)}") from exc
