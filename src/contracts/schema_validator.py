"""Offline JSON Schema validation for payloads crossing the engine's ports."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import jsonschema

from .errors import SchemaValidationError

_CONTRACT_ROOT = Path(__file__).resolve().parent / "schemas"
_CATALOG_PATH = _CONTRACT_ROOT / "catalog.json"


@dataclass(frozen=True)
class SchemaDescriptor:
    """Descriptor that binds a payload kind to its active schema."""

    kind: str
    version: str
    schema_id: str
    schema_path: str


_catalog: Dict[str, SchemaDescriptor] = {}
_validator_cache: Dict[str, Any] = {}


def _load_catalog() -> Dict[str, SchemaDescriptor]:
    if _catalog:
        return _catalog

    raw = json.loads(_CATALOG_PATH.read_text("utf-8"))
    for kind, data in raw.items():
        _catalog[kind] = SchemaDescriptor(
            kind=kind,
            version=data["version"],
            schema_id=data["schema_id"],
            schema_path=data["schema_path"],
        )
    return _catalog


def get_schema_descriptor(kind: str) -> SchemaDescriptor:
    """Return the schema descriptor for ``kind``."""

    catalog = _load_catalog()
    if kind not in catalog:
        raise SchemaValidationError("schema-not-found", kind)
    return catalog[kind]


def load_schema(schema_path: str) -> Dict[str, Any]:
    """Load a schema relative to the bundled schema directory."""

    if "://" in schema_path:
        raise SchemaValidationError("schema-not-found", "remote schema paths are not permitted")

    resolved = (_CONTRACT_ROOT / schema_path).resolve()
    try:
        return json.loads(resolved.read_text("utf-8"))
    except FileNotFoundError as exc:  # pragma: no cover - defensive
        raise SchemaValidationError("schema-not-found", schema_path) from exc


def _validator_for(kind: str) -> Any:
    cached = _validator_cache.get(kind)
    if cached is not None:
        return cached

    descriptor = get_schema_descriptor(kind)
    schema = load_schema(descriptor.schema_path)
    if schema.get("$id") != descriptor.schema_id:
        raise SchemaValidationError(
            "schema-id-mismatch",
            f"catalog has {descriptor.schema_id!r}, schema has {schema.get('$id')!r}",
        )
    validator_cls = jsonschema.validators.validator_for(schema)
    validator_cls.check_schema(schema)
    validator = validator_cls(schema)
    _validator_cache[kind] = validator
    return validator


def validate_payload(kind: str, payload: Any) -> None:
    """Validate ``payload`` against the schema registered for ``kind``.

    The most relevant error (per :func:`jsonschema.exceptions.best_match`) is
    reported as ``SchemaValidationError("invalid-<kind>", detail)``.
    """

    validator = _validator_for(kind)
    error = jsonschema.exceptions.best_match(validator.iter_errors(payload))
    if error is not None:
        location = "/".join(str(part) for part in error.absolute_path) or "<root>"
        raise SchemaValidationError(f"invalid-{kind}", f"{location}: {error.message}")


def is_valid(kind: str, payload: Any) -> bool:
    """Return ``True`` when ``payload`` satisfies the ``kind`` schema."""

    return _validator_for(kind).is_valid(payload)


def check_catalog() -> List[str]:
    """Compile every catalogued schema and return one line per failure."""

    failures: List[str] = []
    for kind in sorted(_load_catalog()):
        try:
            _validator_for(kind)
        except SchemaValidationError as exc:
            failures.append(f"{kind}: {exc}")
        except jsonschema.exceptions.SchemaError as exc:
            failures.append(f"{kind}: {exc.message}")
    return failures


__all__ = [
    "SchemaDescriptor",
    "check_catalog",
    "get_schema_descriptor",
    "is_valid",
    "load_schema",
    "validate_payload",
]
