"""Local persistence of puzzle progress."""

from __future__ import annotations

from .progress_store import PersistedProgress, ProgressStore

__all__ = ["PersistedProgress", "ProgressStore"]
