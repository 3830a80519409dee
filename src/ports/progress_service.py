"""Progress Service port: completion verdicts and view telemetry."""

from __future__ import annotations

import re
from enum import Enum
from typing import Protocol

import requests

from contracts.errors import ProgressServiceError, SchemaValidationError
from contracts.schema_validator import validate_payload

from ._http import ServiceConfig, request_json

_GRID_PATTERN = re.compile(r"^[1-9.]{81}$")

TRACK_EVENTS = ("view",)


class CheckStatus(str, Enum):
    """Verdict returned for a submitted grid."""

    COMPLETE = "complete"
    PARTIAL = "partial"
    INCORRECT = "incorrect"
    UNAVAILABLE = "unavailable"

    @classmethod
    def from_value(cls, value: object) -> "CheckStatus":
        """Map unknown or missing statuses to :attr:`UNAVAILABLE`."""

        try:
            return cls(str(value))
        except ValueError:
            return cls.UNAVAILABLE


class ProgressService(Protocol):
    def check(self, grid: str) -> CheckStatus:
        """Judge an 81-character grid (``'.'`` for blanks)."""

    def track(self, event: str) -> None:
        """Record a telemetry event."""


def validate_grid_string(grid: str) -> str:
    if not _GRID_PATTERN.match(grid):
        raise ValueError("grid must be exactly 81 characters of 1-9 or '.'")
    return grid


class HttpProgressService:
    """Talks to ``/puzzle/check`` and ``/puzzle/track``."""

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        config: ServiceConfig | None = None,
    ) -> None:
        self.session = session or requests.Session()
        self.config = config or ServiceConfig.from_config()

    def check(self, grid: str) -> CheckStatus:
        payload = request_json(
            self.session,
            "POST",
            self.config.url("check"),
            error_cls=ProgressServiceError,
            timeout=self.config.timeout_s,
            payload={"grid": validate_grid_string(grid)},
        )
        try:
            validate_payload("check-response", payload)
        except SchemaValidationError:
            return CheckStatus.UNAVAILABLE
        return CheckStatus.from_value(payload["status"])

    def track(self, event: str) -> None:
        if event not in TRACK_EVENTS:
            raise ValueError(f"event must be one of: {', '.join(TRACK_EVENTS)}")
        request_json(
            self.session,
            "POST",
            self.config.url("track"),
            error_cls=ProgressServiceError,
            timeout=self.config.timeout_s,
            payload={"event": event},
            expect_body=False,
        )


__all__ = [
    "CheckStatus",
    "HttpProgressService",
    "ProgressService",
    "TRACK_EVENTS",
    "validate_grid_string",
]
