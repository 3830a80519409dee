"""Local validation of administrative input before it reaches the network."""

from __future__ import annotations

import json
import re
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from .errors import AdminInputError, ValidationIssue, make_error

_DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
_PUZZLE_PATTERN = re.compile(r"^[1-9.0]{81}$")

PUZZLE_STATUSES = ("draft", "published", "archived")

# Fields each constraint kind requires, keyed by constraint ``type``.
_PAIR_KINDS = {"kropki_white", "kropki_black"}
_PATH_KINDS = {"thermo": "path", "arrow": "path"}
_GLOBAL_KINDS = {"king", "knight", "queen"}
CONSTRAINT_KINDS = frozenset(_PAIR_KINDS | set(_PATH_KINDS) | _GLOBAL_KINDS | {"killer"})


def _check_cell(value: Any, path: str, issues: List[ValidationIssue]) -> None:
    if not isinstance(value, list):
        issues.append(make_error("cell.shape", "cell must be a [row, col] array", path))
        return
    if len(value) != 2:
        issues.append(make_error("cell.shape", "cell must have two elements", path))
        return
    for label, item in zip(("row", "col"), value):
        if isinstance(item, bool) or not isinstance(item, int):
            issues.append(make_error("cell.coordinate", f"{label} must be an integer", path))
        elif not 0 <= item <= 8:
            issues.append(make_error("cell.range", f"{label} must be in [0, 8]", path))


def _check_path(value: Any, path: str, issues: List[ValidationIssue]) -> None:
    if not isinstance(value, list):
        issues.append(make_error("path.shape", "path must be an array of cells", path))
        return
    if not value:
        issues.append(make_error("path.empty", "path must have at least one cell", path))
        return
    for index, cell in enumerate(value):
        _check_cell(cell, f"{path}[{index}]", issues)


def _check_constraint(item: Any, path: str, issues: List[ValidationIssue]) -> None:
    if not isinstance(item, dict):
        issues.append(make_error("constraint.shape", "constraint must be an object", path))
        return
    kind = item.get("type")
    if not isinstance(kind, str):
        issues.append(make_error("constraint.type", "constraint missing type", path))
        return
    if kind not in CONSTRAINT_KINDS:
        issues.append(make_error("constraint.type", f"unknown constraint type: {kind}", path))
        return

    if kind in _PAIR_KINDS:
        for end in ("a", "b"):
            if end not in item:
                issues.append(make_error("constraint.field", f"{kind} missing {end}", path))
            else:
                _check_cell(item[end], f"{path}.{end}", issues)
    elif kind in _PATH_KINDS:
        field = _PATH_KINDS[kind]
        if field not in item:
            issues.append(make_error("constraint.field", f"{kind} missing {field}", path))
        else:
            _check_path(item[field], f"{path}.{field}", issues)
    elif kind == "killer":
        if "cells" not in item:
            issues.append(make_error("constraint.field", "killer missing cells", path))
        else:
            _check_path(item["cells"], f"{path}.cells", issues)
        total = item.get("sum")
        if isinstance(total, bool) or not isinstance(total, int) or total < 0:
            issues.append(make_error("constraint.field", "killer missing sum", f"{path}.sum"))
        no_repeats = item.get("no_repeats", True)
        if not isinstance(no_repeats, bool):
            issues.append(
                make_error("constraint.field", "no_repeats must be a boolean", f"{path}.no_repeats")
            )


def parse_constraints(raw: Any) -> List[Dict[str, Any]]:
    """Normalise and validate a constraint specification.

    ``raw`` may be JSON text, a list of constraint objects, or an object with a
    ``constraints`` list. Every problem found is reported at once through
    :class:`AdminInputError`.
    """

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise AdminInputError(
                [make_error("constraints.json", f"invalid JSON: {exc.msg}", "constraints")]
            ) from exc

    if isinstance(raw, dict) and isinstance(raw.get("constraints"), list):
        raw = raw["constraints"]
    if not isinstance(raw, list):
        raise AdminInputError(
            [make_error("constraints.shape", "constraints must be a JSON array", "constraints")]
        )

    issues: List[ValidationIssue] = []
    for index, item in enumerate(raw):
        _check_constraint(item, f"constraints[{index}]", issues)
    if issues:
        raise AdminInputError(issues)
    return [dict(item) for item in raw]


def variants_from_constraints(constraints: Sequence[Dict[str, Any]]) -> List[str]:
    """Return the de-duplicated constraint kinds in first-seen order."""

    seen: List[str] = []
    for item in constraints:
        kind = item["type"]
        if kind not in seen:
            seen.append(kind)
    return seen


def parse_optional_int(
    name: str,
    raw: Any,
    *,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
) -> Optional[int]:
    """Parse a numeric form field; blank input yields ``None``."""

    if raw is None:
        return None
    if isinstance(raw, bool):
        raise AdminInputError([make_error("field.numeric", f"{name} must be a number", name)])
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        if not text:
            return None
        try:
            value = int(text)
        except ValueError as exc:
            raise AdminInputError(
                [make_error("field.numeric", f"{name} must be a whole number", name)]
            ) from exc
    if minimum is not None and value < minimum:
        raise AdminInputError([make_error("field.range", f"{name} must be >= {minimum}", name)])
    if maximum is not None and value > maximum:
        raise AdminInputError([make_error("field.range", f"{name} must be <= {maximum}", name)])
    return value


def validate_date(value: Any, *, field: str = "date_utc") -> str:
    """Return ``value`` when it is a real ``YYYY-MM-DD`` calendar day."""

    if not isinstance(value, str) or not _DATE_PATTERN.match(value):
        raise AdminInputError([make_error("field.date", "date must be YYYY-MM-DD", field)])
    try:
        date.fromisoformat(value)
    except ValueError as exc:
        raise AdminInputError([make_error("field.date", "date is not a calendar day", field)]) from exc
    return value


def validate_status(value: Any) -> str:
    if value not in PUZZLE_STATUSES:
        allowed = ", ".join(PUZZLE_STATUSES)
        raise AdminInputError(
            [make_error("field.status", f"status must be one of: {allowed}", "status")]
        )
    return value


def validate_puzzle_json(text: Any) -> Dict[str, Any]:
    """Validate the stored puzzle JSON (``{"puzzle": str, "constraints": [...]}``)."""

    if not isinstance(text, str):
        raise AdminInputError([make_error("puzzle_json.type", "puzzle_json must be text", "puzzle_json")])
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise AdminInputError(
            [make_error("puzzle_json.json", f"invalid JSON: {exc.msg}", "puzzle_json")]
        ) from exc
    if not isinstance(payload, dict):
        raise AdminInputError([make_error("puzzle_json.shape", "puzzle_json must be an object", "puzzle_json")])

    puzzle = payload.get("puzzle")
    if not isinstance(puzzle, str):
        raise AdminInputError([make_error("puzzle_json.puzzle", "missing puzzle string", "puzzle_json.puzzle")])
    if not _PUZZLE_PATTERN.match(puzzle):
        raise AdminInputError(
            [
                make_error(
                    "puzzle_json.puzzle",
                    "puzzle must be 81 characters of 1-9 or '.'",
                    "puzzle_json.puzzle",
                )
            ]
        )
    payload["constraints"] = parse_constraints(payload.get("constraints") or [])
    return payload


__all__ = [
    "CONSTRAINT_KINDS",
    "PUZZLE_STATUSES",
    "parse_constraints",
    "parse_optional_int",
    "validate_date",
    "validate_puzzle_json",
    "validate_status",
    "variants_from_constraints",
]
