"""Bounded linear undo/redo history of grid snapshots."""

from __future__ import annotations

from collections import deque
from typing import Deque, Optional

from .state import GridState

DEFAULT_UNDO_LIMIT = 200


class UndoHistory:
    """Two bounded stacks of :class:`GridState` snapshots.

    ``commit`` records the state *before* a mutation and drops every redo
    entry, so history never branches. When a stack is full the oldest entry is
    evicted.
    """

    def __init__(self, limit: int = DEFAULT_UNDO_LIMIT) -> None:
        if limit < 1:
            raise ValueError("undo limit must be positive")
        self.limit = limit
        self._undo: Deque[GridState] = deque(maxlen=limit)
        self._redo: Deque[GridState] = deque(maxlen=limit)

    def commit(self, prior: GridState) -> None:
        self._undo.append(prior)
        self._redo.clear()

    def undo(self, current: GridState) -> Optional[GridState]:
        """Return the state to install, or ``None`` when there is nothing to undo."""

        if not self._undo:
            return None
        restored = self._undo.pop()
        self._redo.append(current)
        return restored

    def redo(self, current: GridState) -> Optional[GridState]:
        if not self._redo:
            return None
        restored = self._redo.pop()
        self._undo.append(current)
        return restored

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def __repr__(self) -> str:
        return f"UndoHistory(limit={self.limit}, undo={self.undo_depth}, redo={self.redo_depth})"


__all__ = ["DEFAULT_UNDO_LIMIT", "UndoHistory"]
