from __future__ import annotations

import json
from pathlib import Path

import pytest

from contracts import SchemaValidationError, check_catalog, is_valid, validate_payload

FIXTURES = Path(__file__).resolve().parent / "fixtures"


def _kind(path: Path) -> str:
    return "-".join(path.stem.split("-")[:2])


def test_catalog_schemas_compile():
    assert check_catalog() == []


@pytest.mark.parametrize("path", sorted(FIXTURES.glob("valid/*.json")), ids=lambda p: p.name)
def test_valid_fixtures_pass(path):
    validate_payload(_kind(path), json.loads(path.read_text("utf-8")))


@pytest.mark.parametrize("path", sorted(FIXTURES.glob("invalid/*.json")), ids=lambda p: p.name)
def test_invalid_fixtures_fail(path):
    kind = _kind(path)
    with pytest.raises(SchemaValidationError) as info:
        validate_payload(kind, json.loads(path.read_text("utf-8")))
    assert info.value.code == f"invalid-{kind}"


def test_unknown_kind_is_reported():
    with pytest.raises(SchemaValidationError) as info:
        is_valid("puzzle-unknown", {})
    assert info.value.code == "schema-not-found"
