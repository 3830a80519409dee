"""Payload contracts and error types shared by every engine component."""

from __future__ import annotations

from .errors import (
    AdminInputError,
    AdminServiceError,
    EngineError,
    GridStateError,
    ProgressServiceError,
    PuzzleLoadError,
    SchemaValidationError,
    ValidationIssue,
)
from .schema_validator import check_catalog, is_valid, validate_payload

__all__ = [
    "AdminInputError",
    "AdminServiceError",
    "EngineError",
    "GridStateError",
    "ProgressServiceError",
    "PuzzleLoadError",
    "SchemaValidationError",
    "ValidationIssue",
    "check_catalog",
    "is_valid",
    "validate_payload",
]
