"""Selection state machine: pointer, drag, keyboard and mode handling."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Set, Tuple

from board.reducer import InputMode
from board.state import CELL_COUNT, SIZE


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def delta(self) -> Tuple[int, int]:
        return _DELTAS[self]


_DELTAS = {
    Direction.UP: (-1, 0),
    Direction.DOWN: (1, 0),
    Direction.LEFT: (0, -1),
    Direction.RIGHT: (0, 1),
}


@dataclass
class SelectionState:
    """Selected cells, focus, input mode and the transient shift override."""

    selected: Set[int] = field(default_factory=set)
    focus: Optional[int] = None
    input_mode: InputMode = InputMode.VALUE
    multi_select: bool = False
    shift_held: bool = False
    shift_forced: bool = False

    @property
    def effective_mode(self) -> InputMode:
        return InputMode.CANDIDATE if self.shift_forced else self.input_mode


class SelectionController:
    """Applies input transitions to a :class:`SelectionState`.

    Every public method returns ``True`` when the selected set or focus
    changed, so callers know when to refresh selection styling.
    """

    def __init__(self, state: SelectionState | None = None) -> None:
        self.state = state or SelectionState()
        self._dragging = False
        self._drag_occurred = False
        self._skip_next_click = False

    @property
    def selected(self) -> frozenset[int]:
        return frozenset(self.state.selected)

    @property
    def focus(self) -> Optional[int]:
        return self.state.focus

    @property
    def effective_mode(self) -> InputMode:
        return self.state.effective_mode

    @property
    def dragging(self) -> bool:
        return self._dragging

    def reset(self) -> None:
        self.state = SelectionState()
        self._dragging = False
        self._drag_occurred = False
        self._skip_next_click = False

    def _snapshot(self) -> Tuple[frozenset[int], Optional[int]]:
        return frozenset(self.state.selected), self.state.focus

    def clear(self) -> bool:
        before = self._snapshot()
        self.state.selected.clear()
        self.state.focus = None
        return before != self._snapshot()

    def select_only(self, cell: int) -> bool:
        _check_cell(cell)
        before = self._snapshot()
        self.state.selected = {cell}
        self.state.focus = cell
        return before != self._snapshot()

    def toggle(self, cell: int) -> bool:
        _check_cell(cell)
        if cell in self.state.selected:
            self.state.selected.discard(cell)
            if self.state.focus == cell:
                self.state.focus = None
        else:
            self.state.selected.add(cell)
            self.state.focus = cell
        return True

    def _activate(self, cell: int) -> bool:
        if self.state.multi_select:
            return self.toggle(cell)
        if self.state.selected == {cell}:
            return self.clear()
        return self.select_only(cell)

    def press(self, cell: int) -> bool:
        """Pointer pressed on ``cell``; arms drag selection."""

        changed = self._activate(cell)
        self._dragging = True
        self._drag_occurred = False
        self._skip_next_click = True
        return changed

    def drag_over(self, cell: Optional[int]) -> bool:
        """Pointer moved over ``cell`` while pressed; drag only ever adds."""

        if not self._dragging or cell is None:
            return False
        _check_cell(cell)
        if cell in self.state.selected:
            return False
        self.state.selected.add(cell)
        self.state.focus = cell
        self._drag_occurred = True
        return True

    def release(self) -> None:
        self._dragging = False

    def click(self, cell: Optional[int]) -> bool:
        """Click delivered after press/release, or on empty space.

        The click that follows a press, and the click that ends a drag, are
        swallowed so that they do not undo the selection just made.
        """

        if self._skip_next_click:
            self._skip_next_click = False
            self._drag_occurred = False
            return False
        if self._drag_occurred:
            self._drag_occurred = False
            return False
        if cell is None:
            return self.clear()
        return self._activate(cell)

    def move(self, direction: Direction) -> bool:
        """Move focus one cell; the target becomes the sole selection."""

        start = self.state.focus if self.state.focus is not None else 0
        row, col = divmod(start, SIZE)
        d_row, d_col = direction.delta
        row += d_row
        col += d_col
        if not (0 <= row < SIZE and 0 <= col < SIZE):
            return False
        return self.select_only(row * SIZE + col)

    def set_multi_select(self, enabled: bool) -> bool:
        """Switch multi-select; switching off collapses to a single cell."""

        self.state.multi_select = enabled
        if enabled or len(self.state.selected) <= 1:
            return False
        keep = self.state.focus
        if keep is None or keep not in self.state.selected:
            keep = min(self.state.selected)
        self.state.selected = {keep}
        self.state.focus = keep
        return True

    def toggle_multi_select(self) -> bool:
        return self.set_multi_select(not self.state.multi_select)

    def set_mode(self, mode: InputMode | str) -> None:
        self.state.input_mode = mode if isinstance(mode, InputMode) else InputMode.from_value(mode)

    def shift_down(self) -> None:
        if self.state.shift_held:
            return
        self.state.shift_held = True
        self.state.shift_forced = self.state.input_mode is InputMode.VALUE

    def shift_up(self) -> None:
        if not self.state.shift_held:
            return
        self.state.shift_held = False
        self.state.shift_forced = False


def _check_cell(cell: int) -> None:
    if not 0 <= cell < CELL_COUNT:
        raise ValueError(f"cell index must be in [0, 80], got {cell!r}")


__all__ = ["Direction", "SelectionController", "SelectionState"]
