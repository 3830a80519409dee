"""Grid state, edit reducer and undo/redo history."""

from __future__ import annotations

from .history import DEFAULT_UNDO_LIMIT, UndoHistory
from .reducer import InputMode, SetValue, ToggleCandidate, make_edit, reduce, set_value, toggle_candidate
from .state import CELL_COUNT, GridState, candidate_digits, cell_coords, cell_index
from .store import GridStore, StateChange

__all__ = [
    "CELL_COUNT",
    "DEFAULT_UNDO_LIMIT",
    "GridState",
    "GridStore",
    "InputMode",
    "SetValue",
    "StateChange",
    "ToggleCandidate",
    "UndoHistory",
    "candidate_digits",
    "cell_coords",
    "cell_index",
    "make_edit",
    "reduce",
    "set_value",
    "toggle_candidate",
]
