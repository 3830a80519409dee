"""Authoritative grid store that wraps the reducer with history and hooks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Union

from .history import DEFAULT_UNDO_LIMIT, UndoHistory
from .reducer import Edit, InputMode, make_edit, reduce
from .state import GridState

_LOGGER = logging.getLogger(__name__)

REASON_EDIT = "edit"
REASON_UNDO = "undo"
REASON_REDO = "redo"


@dataclass(frozen=True)
class StateChange:
    """Describes one committed transition for post-commit hooks."""

    reason: str
    before: GridState
    after: GridState
    cells: Tuple[int, ...]


PostCommitHook = Callable[[StateChange], None]


class GridStore:
    """Holds the current :class:`GridState` for one loaded puzzle.

    Every transition that changes the state is recorded in the undo history
    and then announced to the registered hooks in registration order.
    """

    def __init__(
        self,
        givens: Mapping[int, str] | None = None,
        state: GridState | None = None,
        *,
        undo_limit: int = DEFAULT_UNDO_LIMIT,
    ) -> None:
        self.givens: Dict[int, str] = dict(givens or {})
        self._given_cells = frozenset(self.givens)
        base = state if state is not None else GridState.empty()
        self._state = base.with_givens(self.givens)
        self.history = UndoHistory(undo_limit)
        self._hooks: List[Tuple[str, PostCommitHook]] = []

    @property
    def state(self) -> GridState:
        return self._state

    @property
    def given_cells(self) -> frozenset[int]:
        return self._given_cells

    def is_given(self, index: int) -> bool:
        return index in self._given_cells

    def add_hook(self, name: str, hook: PostCommitHook) -> None:
        self.remove_hook(name)
        self._hooks.append((name, hook))

    def remove_hook(self, name: str) -> None:
        self._hooks = [(key, hook) for key, hook in self._hooks if key != name]

    @property
    def hook_names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self._hooks)

    def replace(self, state: GridState) -> None:
        """Install ``state`` wholesale (hydration) and forget all history."""

        self._state = state.with_givens(self.givens)
        self.history.clear()

    def apply(self, edit: Edit) -> bool:
        """Apply ``edit``; return ``True`` when the state actually changed."""

        if not edit.cells:
            return False
        current = self._state
        nxt = reduce(current, edit, self._given_cells)
        if nxt == current:
            return False
        self.history.commit(current)
        self._install(REASON_EDIT, current, nxt)
        return True

    def input(self, mode: InputMode, cells, digit: Optional[Union[int, str]]) -> bool:
        """Route a digit (or ``None`` for erase) according to ``mode``."""

        return self.apply(make_edit(mode, cells, digit))

    def set_value(self, cells, digit: Optional[Union[int, str]]) -> bool:
        return self.input(InputMode.VALUE, cells, digit)

    def toggle_candidate(self, cells, digit: Optional[Union[int, str]]) -> bool:
        return self.input(InputMode.CANDIDATE, cells, digit)

    def undo(self) -> bool:
        restored = self.history.undo(self._state)
        if restored is None:
            return False
        self._install(REASON_UNDO, self._state, restored)
        return True

    def redo(self) -> bool:
        restored = self.history.redo(self._state)
        if restored is None:
            return False
        self._install(REASON_REDO, self._state, restored)
        return True

    def _install(self, reason: str, before: GridState, after: GridState) -> None:
        self._state = after
        change = StateChange(reason=reason, before=before, after=after, cells=after.diff(before))
        _LOGGER.debug("grid %s touched cells %s", reason, change.cells)
        for _, hook in self._hooks:
            hook(change)


__all__ = [
    "GridStore",
    "PostCommitHook",
    "REASON_EDIT",
    "REASON_REDO",
    "REASON_UNDO",
    "StateChange",
]
