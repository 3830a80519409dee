"""Client-local persistence of in-progress grids, keyed by puzzle date."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from board.state import GridState
from contracts.errors import SchemaValidationError
from contracts.schema_validator import validate_payload
from project_config import get_section

_LOGGER = logging.getLogger(__name__)

_DEFAULT_DIR = ".sudoku/progress"
_DEFAULT_PREFIX = "sudoku-progress"


def canonicalize(obj: Dict[str, Any]) -> bytes:
    """Serialise ``obj`` into compact JSON bytes with sorted keys."""

    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


@dataclass(frozen=True)
class PersistedProgress:
    """Validated progress record for one puzzle date."""

    date: str
    state: GridState
    solved: bool


class ProgressStore:
    """File-backed stand-in for browser local storage.

    One JSON document per key lives under ``root``. Only the most recently
    saved date is kept; saving a record discards every other date's record.
    """

    def __init__(self, root: str | Path | None = None, *, key_prefix: str | None = None) -> None:
        if root is None:
            root = get_section("storage.dir", _DEFAULT_DIR)
        if key_prefix is None:
            key_prefix = get_section("storage.key_prefix", _DEFAULT_PREFIX)
        self.root = Path(root)
        self.key_prefix = key_prefix

    def key_for(self, date: str) -> str:
        return f"{self.key_prefix}-{date}"

    def path_for(self, date: str) -> Path:
        return self.root / f"{self.key_for(date)}.json"

    def save(self, date: str, state: GridState, solved: bool = False) -> bool:
        """Persist ``state``; failures are logged and reported as ``False``."""

        record = {**state.to_record(), "solved": bool(solved)}
        path = self.path_for(date)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".tmp")
            tmp_path.write_bytes(canonicalize(record))
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as exc:
            _LOGGER.warning("Failed to save progress for %s: %s", date, exc)
            return False
        self._discard_others(date)
        return True

    def load(self, date: str) -> Optional[PersistedProgress]:
        """Return the validated record for ``date`` or ``None``."""

        path = self.path_for(date)
        try:
            raw = json.loads(path.read_text("utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            _LOGGER.debug("Discarding unreadable progress %s: %s", path, exc)
            return None

        try:
            validate_payload("persisted-progress", raw)
        except SchemaValidationError as exc:
            _LOGGER.debug("Discarding malformed progress %s: %s", path, exc)
            return None
        return PersistedProgress(
            date=date,
            state=GridState.from_record(raw),
            solved=bool(raw.get("solved", False)),
        )

    def clear(self, date: str) -> None:
        try:
            self.path_for(date).unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            _LOGGER.warning("Failed to clear progress for %s: %s", date, exc)

    def _discard_others(self, date: str) -> None:
        keep = self.path_for(date)
        for candidate in self.root.glob(f"{self.key_prefix}-*.json"):
            if candidate == keep:
                continue
            try:
                candidate.unlink()
            except OSError as exc:
                _LOGGER.debug("Could not discard stale progress %s: %s", candidate, exc)


__all__ = ["PersistedProgress", "ProgressStore", "canonicalize"]
