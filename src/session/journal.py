"""Light-weight JSONL session journal with rotation support."""

from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from project_config import get_section

__all__ = ["SessionJournal", "journal_from_config"]

_DEFAULT_MAX_BYTES = 10 * 1024 * 1024
_DEFAULT_DIR = "logs/session"


class SessionJournal:
    """Appends one JSON line per session event under ``base_dir/YYYYMMDD``."""

    def __init__(self, base_dir: str | Path, *, max_bytes: int | None = None) -> None:
        self.base_dir = Path(base_dir)
        self.max_bytes = max_bytes or _DEFAULT_MAX_BYTES
        self._lock = threading.Lock()
        self._current: Path | None = None

    @staticmethod
    def _date_prefix() -> str:
        return datetime.now(timezone.utc).strftime("%Y%m%d")

    def _resolve_path(self) -> Path:
        date_dir = self.base_dir / self._date_prefix()
        date_dir.mkdir(parents=True, exist_ok=True)

        current = self._current
        if current is not None and current.parent == date_dir and current.exists():
            if current.stat().st_size < self.max_bytes:
                return current

        counter = 0
        while True:
            candidate = date_dir / f"session_{counter:02d}.jsonl"
            if not candidate.exists() or candidate.stat().st_size < self.max_bytes:
                self._current = candidate
                return candidate
            counter += 1

    def append(self, event: str, **fields: Any) -> Path:
        """Append ``event`` with ``fields`` and return the file written."""

        payload: Dict[str, Any] = {"event": event, **fields}
        payload.setdefault("ts", datetime.now(timezone.utc).isoformat(timespec="milliseconds"))
        line = json.dumps(payload, sort_keys=True, ensure_ascii=False)
        with self._lock:
            path = self._resolve_path()
            with path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
        return path

    @property
    def current_path(self) -> Path | None:
        return self._current


def journal_from_config() -> SessionJournal | None:
    """Return the configured journal, or ``None`` when ``[journal]`` is disabled."""

    section = get_section("journal", {})
    if not section.get("enabled", False):
        return None
    return SessionJournal(
        section.get("dir", _DEFAULT_DIR),
        max_bytes=int(section.get("max_bytes", _DEFAULT_MAX_BYTES)),
    )
