#!/usr/bin/env python3
"""Compile every bundled payload schema and validate sample fixtures offline."""

from __future__ import annotations

import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from contracts import SchemaValidationError, check_catalog, validate_payload


def _fixture_kind(path: Path) -> str:
    # fixtures are named <kind>-<case>.json, e.g. puzzle-stats-basic.json
    return "-".join(path.stem.split("-")[:2])


def main() -> int:
    failures = check_catalog()

    fixtures_root = ROOT / "tests" / "fixtures"
    for path in sorted(fixtures_root.glob("valid/*.json")):
        try:
            validate_payload(_fixture_kind(path), json.loads(path.read_text("utf-8")))
        except SchemaValidationError as exc:
            failures.append(f"valid fixture failed: {path.name}: {exc}")
    for path in sorted(fixtures_root.glob("invalid/*.json")):
        try:
            validate_payload(_fixture_kind(path), json.loads(path.read_text("utf-8")))
        except SchemaValidationError as exc:
            print(f"{path.name}: {exc.code}")
        else:
            failures.append(f"invalid fixture unexpectedly passed: {path.name}")

    if failures:
        for line in failures:
            print(line)
        return 1

    print("All payload schemas and fixtures are valid.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
