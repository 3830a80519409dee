"""Puzzle Source port: where puzzle documents come from."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, Tuple

import requests

from contracts.errors import PuzzleLoadError, SchemaValidationError
from contracts.schema_validator import validate_payload

from ._http import ServiceConfig, request_json

SOURCE_KINDS = ("today", "random")


@dataclass(frozen=True)
class PuzzleDocument:
    """One loadable puzzle: rendered SVG plus descriptive metadata."""

    svg: str
    date_utc: Optional[str] = None
    solution: Optional[str] = None
    variants: Tuple[str, ...] = field(default_factory=tuple)
    title: Optional[str] = None
    difficulty: Optional[int] = None

    @property
    def has_solution(self) -> bool:
        return self.solution is not None


def document_from_payload(payload: Mapping[str, Any]) -> PuzzleDocument:
    """Validate a Puzzle Source response and normalise it."""

    try:
        validate_payload("puzzle-document", payload)
    except SchemaValidationError as exc:
        raise PuzzleLoadError(f"Malformed puzzle document: {exc.detail or exc.code}") from exc

    raw_solution = payload.get("solution")
    solution: Optional[str] = None
    if isinstance(raw_solution, str):
        solution = raw_solution
    elif isinstance(raw_solution, list) and len(raw_solution) == 81:
        solution = "".join(str(digit) for digit in raw_solution)

    return PuzzleDocument(
        svg=payload["svg"],
        date_utc=payload.get("date_utc"),
        solution=solution,
        variants=tuple(payload.get("variants") or ()),
        title=payload.get("title"),
        difficulty=payload.get("difficulty"),
    )


class PuzzleSource(Protocol):
    """Anything able to hand out the next puzzle document."""

    def fetch(self) -> PuzzleDocument:
        """Return a document or raise :class:`PuzzleLoadError`."""


class HttpPuzzleSource:
    """Fetches ``today`` or ``random`` documents from the puzzle backend."""

    def __init__(
        self,
        kind: str = "today",
        *,
        session: requests.Session | None = None,
        config: ServiceConfig | None = None,
    ) -> None:
        if kind not in SOURCE_KINDS:
            raise ValueError(f"Unknown puzzle source '{kind}'")
        self.kind = kind
        self.session = session or requests.Session()
        self.config = config or ServiceConfig.from_config()

    def fetch(self) -> PuzzleDocument:
        payload = request_json(
            self.session,
            "GET",
            self.config.url(self.kind),
            error_cls=PuzzleLoadError,
            timeout=self.config.timeout_s,
        )
        if not isinstance(payload, dict):
            raise PuzzleLoadError("Puzzle document must be a JSON object")
        return document_from_payload(payload)


class StaticPuzzleSource:
    """Serves one fixed document (offline play, replays, previews)."""

    def __init__(self, document: PuzzleDocument) -> None:
        self.document = document

    @classmethod
    def from_file(cls, path: str | Path) -> "StaticPuzzleSource":
        """Load a JSON document, or a bare ``.svg`` file with no metadata."""

        path = Path(path)
        try:
            text = path.read_text("utf-8")
        except OSError as exc:
            raise PuzzleLoadError(f"Cannot read puzzle file {path}: {exc}") from exc
        if path.suffix.lower() == ".svg":
            return cls(PuzzleDocument(svg=text))
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise PuzzleLoadError(f"Puzzle file {path} is not valid JSON") from exc
        return cls(document_from_payload(payload))

    def fetch(self) -> PuzzleDocument:
        return self.document


__all__ = [
    "HttpPuzzleSource",
    "PuzzleDocument",
    "PuzzleSource",
    "SOURCE_KINDS",
    "StaticPuzzleSource",
    "document_from_payload",
]
