"""Administrative puzzle surface and the preview source built on it.

All input is checked locally (see :mod:`contracts.admin_input`) before a
request is sent, so malformed constraint JSON or non-numeric fields never
reach the backend.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from contracts import admin_input
from contracts.errors import AdminServiceError, PuzzleLoadError, SchemaValidationError
from contracts.schema_validator import validate_payload

from ._http import ServiceConfig, request_json
from .puzzle_source import PuzzleDocument


@dataclass(frozen=True)
class GeneratedPuzzle:
    puzzle_json: str
    svg: str
    variants: Tuple[str, ...]


@dataclass(frozen=True)
class PuzzleStats:
    date_utc: str
    views: int
    checks: int
    solves: int


def _validated(kind: str, payload: Any) -> Dict[str, Any]:
    try:
        validate_payload(kind, payload)
    except SchemaValidationError as exc:
        raise AdminServiceError(f"Unexpected {kind} response: {exc.detail or exc.code}") from exc
    return payload


def _solution_from_puzzle_json(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return None
    solution = payload.get("solution") if isinstance(payload, dict) else None
    if isinstance(solution, list) and len(solution) == 81:
        digits = "".join(str(item) for item in solution)
        if len(digits) == 81 and digits.isdigit() and "0" not in digits:
            return digits
    return None


class AdminClient:
    """Client for the ``/admin`` endpoints of the puzzle backend."""

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        config: ServiceConfig | None = None,
    ) -> None:
        self.session = session or requests.Session()
        self.config = config or ServiceConfig.from_config()

    def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        return request_json(
            self.session,
            method,
            self.config.url(path),
            error_cls=AdminServiceError,
            timeout=self.config.timeout_s,
            **kwargs,
        )

    def generate(self) -> GeneratedPuzzle:
        payload = _validated("admin-generated", self._call("POST", "admin/puzzles/generate"))
        return GeneratedPuzzle(payload["puzzle_json"], payload["svg"], tuple(payload["variants"]))

    def generate_custom(
        self,
        constraints: Any,
        *,
        clue_target: Any = None,
        seed: Any = None,
    ) -> GeneratedPuzzle:
        body: Dict[str, Any] = {"constraints": admin_input.parse_constraints(constraints)}
        target = admin_input.parse_optional_int("clue_target", clue_target, minimum=0, maximum=81)
        seed_value = admin_input.parse_optional_int("seed", seed, minimum=0)
        if target is not None:
            body["clue_target"] = target
        if seed_value is not None:
            body["seed"] = seed_value
        payload = _validated(
            "admin-generated",
            self._call("POST", "admin/puzzles/generate/custom", payload=body),
        )
        return GeneratedPuzzle(payload["puzzle_json"], payload["svg"], tuple(payload["variants"]))

    def create(
        self,
        date_utc: str,
        puzzle_json: str,
        *,
        svg: Optional[str] = None,
        variants: Optional[Sequence[str]] = None,
        status: str = "draft",
        name: Optional[str] = None,
        author: Optional[str] = None,
        difficulty: Any = None,
        overwrite: bool = True,
    ) -> None:
        """Create or overwrite the puzzle for ``date_utc``."""

        body: Dict[str, Any] = {
            "date_utc": admin_input.validate_date(date_utc),
            "puzzle_json": puzzle_json,
            "status": admin_input.validate_status(status),
            "overwrite": bool(overwrite),
        }
        parsed = admin_input.validate_puzzle_json(puzzle_json)
        if variants is None:
            variants = admin_input.variants_from_constraints(parsed["constraints"])
        body["variants"] = list(dict.fromkeys(variants))
        level = admin_input.parse_optional_int("difficulty", difficulty, minimum=0)
        for key, value in (("svg", svg), ("name", name), ("author", author), ("difficulty", level)):
            if value is not None:
                body[key] = value
        self._call("POST", "admin/puzzles", payload=body, expect_body=False)

    def list(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        params = None
        if status is not None:
            params = {"status": admin_input.validate_status(status)}
        payload = self._call("GET", "admin/puzzles", params=params)
        if not isinstance(payload, list):
            raise AdminServiceError("Puzzle list must be a JSON array")
        return [_validated("admin-puzzle", item) for item in payload]

    def get(self, date_utc: str) -> Dict[str, Any]:
        date_utc = admin_input.validate_date(date_utc)
        return _validated("admin-puzzle", self._call("GET", f"admin/puzzles/{date_utc}"))

    def publish(self, date_utc: str) -> None:
        date_utc = admin_input.validate_date(date_utc)
        self._call("POST", f"admin/puzzles/{date_utc}/publish", expect_body=False)

    def archive(self, date_utc: str) -> None:
        date_utc = admin_input.validate_date(date_utc)
        self._call("POST", f"admin/puzzles/{date_utc}/archive", expect_body=False)

    def stats(self, date_utc: str) -> PuzzleStats:
        date_utc = admin_input.validate_date(date_utc)
        payload = _validated("puzzle-stats", self._call("GET", f"admin/stats/{date_utc}"))
        return PuzzleStats(
            date_utc=payload["date_utc"],
            views=payload["views"],
            checks=payload["checks"],
            solves=payload["solves"],
        )


class AdminPreviewSource:
    """Puzzle Source over the admin surface for previewing drafts.

    With a date the stored puzzle is fetched; without one a fresh puzzle is
    generated. Preview documents carry no ``date_utc`` unless fetched by date.
    """

    def __init__(self, client: AdminClient, date_utc: Optional[str] = None) -> None:
        self.client = client
        self.date_utc = date_utc

    def fetch(self) -> PuzzleDocument:
        try:
            if self.date_utc is None:
                generated = self.client.generate()
                return PuzzleDocument(
                    svg=generated.svg,
                    solution=_solution_from_puzzle_json(generated.puzzle_json),
                    variants=generated.variants,
                )
            record = self.client.get(self.date_utc)
        except AdminServiceError as exc:
            raise PuzzleLoadError(str(exc), status_code=exc.status_code) from exc

        if not record.get("svg"):
            raise PuzzleLoadError(f"Puzzle {self.date_utc} has no rendered SVG")
        return PuzzleDocument(
            svg=record["svg"],
            date_utc=record["date_utc"],
            solution=_solution_from_puzzle_json(record.get("puzzle_json")),
            variants=tuple(record.get("variants") or ()),
            title=record.get("name"),
            difficulty=record.get("difficulty"),
        )


__all__ = ["AdminClient", "AdminPreviewSource", "GeneratedPuzzle", "PuzzleStats"]
