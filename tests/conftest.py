from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pytest

from contracts.errors import ProgressServiceError
from feature_flags import SessionFeatures
from ports import CheckStatus, PuzzleDocument

SVG_NS = "http://www.w3.org/2000/svg"
CELL = 40.0


def build_svg(
    givens: Mapping[int, str] | None = None,
    *,
    user: Mapping[int, str] | None = None,
    candidates: Mapping[int, Iterable[int]] | None = None,
    highlights: bool = True,
    candidate_layer: bool = True,
    user_layer: bool = False,
    viewbox: bool = False,
) -> str:
    """Build a minimal puzzle SVG with the structural layers the board reads."""

    size = CELL * 9
    head = f'<svg xmlns="{SVG_NS}" width="{size:g}" height="{size:g}"'
    if viewbox:
        head += f' viewBox="0 0 {size:g} {size:g}"'
    parts = [head + ">"]
    if highlights:
        parts.append('<g id="highlights">')
        for index in range(81):
            row, col = divmod(index, 9)
            box = (row // 3) * 3 + col // 3
            parts.append(
                f'<rect class="highlight-cell" data-row="{row}" data-col="{col}" '
                f'data-box="{box}" x="{col * CELL:g}" y="{row * CELL:g}" '
                f'width="{CELL:g}" height="{CELL:g}"/>'
            )
        parts.append("</g>")
    parts.append('<g id="givens">')
    for index, digit in sorted((givens or {}).items()):
        row, col = divmod(index, 9)
        parts.append(f'<text class="given" data-row="{row}" data-col="{col}">{digit}</text>')
    parts.append("</g>")
    if user_layer or user:
        parts.append('<g id="user-values">')
        for index, digit in sorted((user or {}).items()):
            row, col = divmod(index, 9)
            parts.append(f'<text class="user" data-row="{row}" data-col="{col}">{digit}</text>')
        parts.append("</g>")
    if candidate_layer:
        marks = {index: set(digits) for index, digits in (candidates or {}).items()}
        parts.append('<g id="candidates">')
        for index in range(81):
            row, col = divmod(index, 9)
            parts.append(f'<g class="cell-candidates" data-row="{row}" data-col="{col}">')
            for digit in range(1, 10):
                text = str(digit) if digit in marks.get(index, ()) else ""
                parts.append(f'<text class="candidate" data-digit="{digit}">{text}</text>')
            parts.append("</g>")
        parts.append("</g>")
    parts.append("</svg>")
    return "".join(parts)


SOLUTION = (
    "534678912"
    "672195348"
    "198342567"
    "859761423"
    "426853791"
    "713924856"
    "961537284"
    "287419635"
    "345286179"
)


def make_document(
    givens: Mapping[int, str] | None = None,
    *,
    date_utc: Optional[str] = "2024-05-01",
    solution: Optional[str] = None,
    variants: Iterable[str] = (),
) -> PuzzleDocument:
    return PuzzleDocument(
        svg=build_svg(givens),
        date_utc=date_utc,
        solution=solution,
        variants=tuple(variants),
        title="Daily",
    )


def make_features(profile: str = "player", **overrides: Any) -> SessionFeatures:
    values: Dict[str, Any] = {
        "auto_check": True,
        "telemetry": profile != "admin",
        "persist": profile != "admin",
        "source": "today",
    }
    values.update(overrides)
    return SessionFeatures(profile, **values)


class FakeSource:
    """Hands out queued documents; queued exceptions are raised instead."""

    def __init__(self, *items: Any) -> None:
        self.items: List[Any] = list(items)
        self.calls = 0

    def fetch(self) -> PuzzleDocument:
        self.calls += 1
        item = self.items.pop(0) if len(self.items) > 1 else self.items[0]
        if isinstance(item, Exception):
            raise item
        return item


class FakeProgress:
    def __init__(self, status: str = "complete") -> None:
        self.status = status
        self.checks: List[str] = []
        self.tracks: List[str] = []
        self.check_error: Optional[Exception] = None
        self.track_error: Optional[Exception] = None

    def check(self, grid: str) -> CheckStatus:
        self.checks.append(grid)
        if self.check_error is not None:
            raise self.check_error
        return CheckStatus.from_value(self.status)

    def track(self, event: str) -> None:
        self.tracks.append(event)
        if self.track_error is not None:
            raise self.track_error


class DeferredExecutor:
    """Holds submitted requests until :meth:`run_all` is called."""

    def __init__(self) -> None:
        self.jobs: List[Any] = []

    def submit(self, request, on_success=None, on_error=None) -> None:
        self.jobs.append((request, on_success, on_error))

    def run_all(self) -> None:
        jobs, self.jobs = self.jobs, []
        for request, on_success, on_error in jobs:
            try:
                result = request()
            except Exception as exc:
                if on_error is not None:
                    on_error(exc)
                continue
            if on_success is not None:
                on_success(result)

    def pump(self, *, wait: bool = False, timeout=None) -> int:
        return 0

    def shutdown(self) -> None:
        return None


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, *, raw: Optional[str] = None) -> None:
        self.status_code = status_code
        if raw is not None:
            self.text = raw
        elif body is None:
            self.text = ""
        else:
            self.text = json.dumps(body)
        self.content = self.text.encode("utf-8")

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        return json.loads(self.text)


class FakeHttp:
    """Stand-in for ``requests.Session`` recording every request."""

    def __init__(self, *responses: Any) -> None:
        self.responses: List[Any] = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def request(self, method, url, *, json=None, params=None, timeout=None, headers=None):
        self.calls.append(
            {"method": method, "url": url, "json": json, "params": params, "timeout": timeout}
        )
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_progress() -> FakeProgress:
    return FakeProgress()


@pytest.fixture
def service_error() -> ProgressServiceError:
    return ProgressServiceError("Server error: 503 unavailable", status_code=503)
