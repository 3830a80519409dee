"""Shared error types for the puzzle engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

SEVERITY_ERROR = "ERROR"


@dataclass(frozen=True)
class ValidationIssue:
    """Single finding produced while validating user-supplied input."""

    code: str
    msg: str
    path: str
    severity: str


def make_error(code: str, msg: str, path: str) -> ValidationIssue:
    """Construct an error-level :class:`ValidationIssue`."""

    return ValidationIssue(code=code, msg=msg, path=path, severity=SEVERITY_ERROR)


class EngineError(RuntimeError):
    """Base class for every error raised by the engine."""


class GridStateError(EngineError, ValueError):
    """Raised when a grid state or an edit command is malformed."""


class PuzzleLoadError(EngineError):
    """Raised when the Puzzle Source cannot deliver a usable document."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ProgressServiceError(EngineError):
    """Raised when a check or telemetry request fails."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class AdminServiceError(EngineError):
    """Raised when an administrative request is refused or fails in transit."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class SchemaValidationError(EngineError):
    """Raised when a payload does not match its contract schema."""

    def __init__(self, code: str, detail: Optional[str] = None) -> None:
        self.code = code
        self.detail = detail
        message = code if detail is None else f"{code}:{detail}"
        super().__init__(message)


class AdminInputError(EngineError, ValueError):
    """Raised when administrative input is rejected before any network call."""

    def __init__(self, issues: Sequence[ValidationIssue]) -> None:
        self.issues: List[ValidationIssue] = list(issues)
        summary = "; ".join(f"{issue.path}: {issue.msg}" for issue in self.issues)
        super().__init__(summary or "invalid administrative input")


__all__ = [
    "SEVERITY_ERROR",
    "AdminInputError",
    "AdminServiceError",
    "EngineError",
    "GridStateError",
    "ProgressServiceError",
    "PuzzleLoadError",
    "SchemaValidationError",
    "ValidationIssue",
    "make_error",
]
