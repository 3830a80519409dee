"""Pure edit reducer: ``(state, edit) -> next state``.

Edits never touch given cells. A candidate toggle is an XOR on the cell's
mask and is ignored for cells that already hold a value; writing a value
always clears the mask.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Iterable, Optional, Union

from contracts.errors import GridStateError

from .state import CELL_COUNT, GridState, digit_bit


class InputMode(str, Enum):
    """Whether digit input writes values or toggles candidates."""

    VALUE = "value"
    CANDIDATE = "candidate"

    @classmethod
    def from_value(cls, value: str) -> "InputMode":
        try:
            return cls(value)
        except ValueError as exc:
            raise GridStateError(f"Unsupported input mode: {value!r}") from exc


def _normalise_digit(digit: Optional[Union[int, str]]) -> Optional[str]:
    if digit is None:
        return None
    text = str(digit)
    digit_bit(text)
    return text


def _targets(selection: Iterable[int], givens: AbstractSet[int]) -> list[int]:
    targets = []
    for index in selection:
        if not 0 <= index < CELL_COUNT:
            raise GridStateError(f"cell index must be in [0, 80], got {index!r}")
        if index not in givens:
            targets.append(index)
    return targets


@dataclass(frozen=True)
class SetValue:
    """Write ``digit`` into every selected cell; ``None`` erases."""

    cells: frozenset[int]
    digit: Optional[str]


@dataclass(frozen=True)
class ToggleCandidate:
    """Toggle ``digit`` in every selected cell's mask; ``None`` clears it."""

    cells: frozenset[int]
    digit: Optional[str]


Edit = Union[SetValue, ToggleCandidate]


def make_edit(mode: InputMode, cells: Iterable[int], digit: Optional[Union[int, str]]) -> Edit:
    """Build the edit that a digit/erase press produces in ``mode``."""

    normalised = _normalise_digit(digit)
    selection = frozenset(int(cell) for cell in cells)
    if mode is InputMode.VALUE:
        return SetValue(selection, normalised)
    return ToggleCandidate(selection, normalised)


def set_value(
    state: GridState,
    selection: Iterable[int],
    digit: Optional[Union[int, str]],
    givens: AbstractSet[int] = frozenset(),
) -> GridState:
    """Return ``state`` with ``digit`` written (or erased) in the selection."""

    value = _normalise_digit(digit)
    values = list(state.values)
    candidates = list(state.candidates)
    for index in _targets(selection, givens):
        values[index] = value
        candidates[index] = 0
    return state.evolve(values=values, candidates=candidates)


def toggle_candidate(
    state: GridState,
    selection: Iterable[int],
    digit: Optional[Union[int, str]],
    givens: AbstractSet[int] = frozenset(),
) -> GridState:
    """Return ``state`` with ``digit`` toggled (or all marks erased)."""

    bit = None if digit is None else digit_bit(digit)
    candidates = list(state.candidates)
    for index in _targets(selection, givens):
        if bit is None:
            candidates[index] = 0
        elif state.values[index] is None:
            candidates[index] ^= bit
    return state.evolve(candidates=candidates)


def reduce(state: GridState, edit: Edit, givens: AbstractSet[int] = frozenset()) -> GridState:
    """Apply ``edit`` and return the next state; equal input means no-op."""

    if isinstance(edit, SetValue):
        return set_value(state, edit.cells, edit.digit, givens)
    if isinstance(edit, ToggleCandidate):
        return toggle_candidate(state, edit.cells, edit.digit, givens)
    raise TypeError(f"Unsupported edit: {type(edit)!r}")


__all__ = [
    "Edit",
    "InputMode",
    "SetValue",
    "ToggleCandidate",
    "make_edit",
    "reduce",
    "set_value",
    "toggle_candidate",
]
