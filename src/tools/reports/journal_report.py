"""Aggregation helpers for session journal logs."""

from __future__ import annotations

import json
from collections import Counter, defaultdict
from pathlib import Path
from typing import Dict, Iterable, Mapping

from storage.progress_store import canonicalize

__all__ = ["aggregate"]

_COUNTED = {"session.view": "views", "session.check": "checks", "session.solve": "solves"}


def _load_events(paths: Iterable[Path]) -> Iterable[Mapping[str, object]]:
    for path in paths:
        for line in path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            yield json.loads(line)


def aggregate(paths: Iterable[Path]) -> Dict[str, object]:
    """Count views, checks and solves per puzzle date."""

    per_date: Dict[str, Counter] = defaultdict(Counter)
    totals: Counter = Counter()
    explicit_checks = 0
    for event in _load_events(paths):
        column = _COUNTED.get(str(event.get("event")))
        if column is None:
            continue
        date = str(event.get("date") or "undated")
        per_date[date][column] += 1
        totals[column] += 1
        if column == "checks" and event.get("explicit"):
            explicit_checks += 1

    dates = {
        date: {name: counts.get(name, 0) for name in _COUNTED.values()}
        for date, counts in sorted(per_date.items())
    }
    summary: Dict[str, object] = {
        "dates": dates,
        "totals": {name: totals.get(name, 0) for name in _COUNTED.values()},
        "explicit_checks": explicit_checks,
    }
    # Canonicalise summary for deterministic snapshots
    summary["canonical"] = canonicalize(dict(summary)).decode("utf-8")
    return summary
