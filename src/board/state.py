"""Immutable grid state for the 9×9 editing engine."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, Iterator, Mapping, Optional, Tuple

from contracts.errors import GridStateError

SIZE = 9
CELL_COUNT = SIZE * SIZE
DIGITS = "123456789"
FULL_MASK = (1 << SIZE) - 1
BLANK = "."


def cell_index(row: int, col: int) -> int:
    """Return the flat index of ``(row, col)``."""

    row = int(row)
    col = int(col)
    if not (0 <= row < SIZE and 0 <= col < SIZE):
        raise GridStateError(f"cell ({row}, {col}) is outside the 9x9 grid")
    return row * SIZE + col


def cell_coords(index: int) -> Tuple[int, int]:
    """Return ``(row, col)`` for the flat ``index``."""

    if not 0 <= index < CELL_COUNT:
        raise GridStateError(f"cell index must be in [0, 80], got {index!r}")
    return divmod(index, SIZE)


def digit_bit(digit: int | str) -> int:
    """Return the candidate mask bit for ``digit``."""

    try:
        value = int(digit)
    except (TypeError, ValueError) as exc:
        raise GridStateError(f"digit must be in [1, 9], got {digit!r}") from exc
    if not 1 <= value <= SIZE:
        raise GridStateError(f"digit must be in [1, 9], got {digit!r}")
    return 1 << (value - 1)


def candidate_digits(mask: int) -> Iterator[int]:
    """Yield the digits whose bits are set in ``mask`` in ascending order."""

    for digit in range(1, SIZE + 1):
        if mask & (1 << (digit - 1)):
            yield digit


@dataclass(frozen=True)
class GridState:
    """Snapshot of entered values and candidate masks for all 81 cells.

    Instances are immutable, so the same object doubles as an undo snapshot.
    ``values`` holds ``'1'``–``'9'`` or ``None``; ``candidates`` holds 9-bit
    masks where bit ``d - 1`` marks digit ``d``. A cell that holds a value has
    an empty mask.
    """

    values: Tuple[Optional[str], ...]
    candidates: Tuple[int, ...]

    def __post_init__(self) -> None:
        values = tuple(self.values)
        candidates = tuple(int(mask) for mask in self.candidates)
        if len(values) != CELL_COUNT or len(candidates) != CELL_COUNT:
            raise GridStateError("grid state must describe exactly 81 cells")
        for index, (value, mask) in enumerate(zip(values, candidates)):
            if value is not None and (not isinstance(value, str) or value not in DIGITS or len(value) != 1):
                raise GridStateError(f"values[{index}] must be a digit 1-9 or empty, got {value!r}")
            if not 0 <= mask <= FULL_MASK:
                raise GridStateError(f"candidates[{index}] must be a 9-bit mask, got {mask!r}")
            if value is not None and mask:
                raise GridStateError(f"cell {index} holds both a value and candidates")
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "candidates", candidates)

    @classmethod
    def empty(cls) -> "GridState":
        return cls(values=(None,) * CELL_COUNT, candidates=(0,) * CELL_COUNT)

    @classmethod
    def from_cells(
        cls,
        values: Mapping[int, str] | None = None,
        candidates: Mapping[int, int] | None = None,
    ) -> "GridState":
        """Build a state from sparse mappings; values win over candidates."""

        value_list: list[Optional[str]] = [None] * CELL_COUNT
        mask_list = [0] * CELL_COUNT
        for index, digit in (values or {}).items():
            value_list[index] = str(digit)
        for index, mask in (candidates or {}).items():
            if value_list[index] is None:
                mask_list[index] = int(mask)
        return cls(values=tuple(value_list), candidates=tuple(mask_list))

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "GridState":
        """Rebuild a state from a persisted ``{values, candidates}`` record."""

        values = [value or None for value in record["values"]]
        candidates = [0 if value else int(mask) for value, mask in zip(values, record["candidates"])]
        return cls(values=tuple(values), candidates=tuple(candidates))

    def to_record(self) -> dict[str, list]:
        return {"values": list(self.values), "candidates": list(self.candidates)}

    def evolve(
        self,
        *,
        values: Iterable[Optional[str]] | None = None,
        candidates: Iterable[int] | None = None,
    ) -> "GridState":
        """Create a new state with the given components replaced."""

        return replace(
            self,
            values=self.values if values is None else tuple(values),
            candidates=self.candidates if candidates is None else tuple(candidates),
        )

    def with_givens(self, givens: Mapping[int, str]) -> "GridState":
        """Return a state whose given cells hold their clue and no candidates."""

        values = list(self.values)
        candidates = list(self.candidates)
        for index, digit in givens.items():
            values[index] = digit
            candidates[index] = 0
        return self.evolve(values=values, candidates=candidates)

    def is_filled(self) -> bool:
        return all(value is not None for value in self.values)

    def filled_count(self) -> int:
        return sum(1 for value in self.values if value is not None)

    def to_grid_string(self) -> str:
        """Serialise the values row-major with ``'.'`` for blank cells."""

        return "".join(value or BLANK for value in self.values)

    def diff(self, other: "GridState") -> Tuple[int, ...]:
        """Return the indices whose value or mask differ from ``other``."""

        return tuple(
            index
            for index in range(CELL_COUNT)
            if self.values[index] != other.values[index]
            or self.candidates[index] != other.candidates[index]
        )


def givens_from_string(puzzle: str) -> dict[int, str]:
    """Parse an 81-character clue string (``'.'``/``'0'`` blank) into givens."""

    if len(puzzle) != CELL_COUNT:
        raise GridStateError("puzzle string must be exactly 81 characters")
    return {index: ch for index, ch in enumerate(puzzle) if ch in DIGITS}


def format_grid(state: GridState) -> str:
    """Render ``state`` as nine ASCII rows with box separators."""

    lines = []
    for row in range(SIZE):
        if row and row % 3 == 0:
            lines.append("------+-------+------")
        cells = []
        for col in range(SIZE):
            if col and col % 3 == 0:
                cells.append("|")
            cells.append(state.values[row * SIZE + col] or BLANK)
        lines.append(" ".join(cells))
    return "\n".join(lines)


__all__ = [
    "BLANK",
    "CELL_COUNT",
    "DIGITS",
    "FULL_MASK",
    "GridState",
    "SIZE",
    "candidate_digits",
    "cell_coords",
    "cell_index",
    "digit_bit",
    "format_grid",
    "givens_from_string",
]
