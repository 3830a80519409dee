from __future__ import annotations

import pytest

from board import GridState, GridStore, InputMode, cell_index, set_value, toggle_candidate
from board.state import candidate_digits, cell_coords, format_grid, givens_from_string
from contracts.errors import GridStateError


def _store(givens=None) -> GridStore:
    return GridStore(givens or {0: "5"})


def test_given_cell_is_never_overwritten():
    store = _store()
    assert store.set_value([0], "7") is False
    assert store.state.values[0] == "5"
    assert not store.history.can_undo


def test_value_entry_sets_digit_and_clears_candidates():
    store = _store()
    target = cell_index(1, 1)
    store.toggle_candidate([target], 2)
    store.set_value([target], "3")
    assert target == 10
    assert store.state.values[10] == "3"
    assert store.state.candidates[10] == 0


def test_candidate_entry_sets_bit_for_digit():
    store = _store()
    store.input(InputMode.CANDIDATE, [cell_index(2, 2)], "4")
    assert store.state.candidates[20] == 0b000001000


def test_candidate_toggle_is_an_involution():
    state = GridState.empty()
    once = toggle_candidate(state, [5, 6], 9)
    twice = toggle_candidate(once, [5, 6], 9)
    assert once.candidates[5] == 1 << 8
    assert twice == state


def test_candidate_toggle_skips_cells_with_values():
    state = set_value(GridState.empty(), [3], 1)
    assert toggle_candidate(state, [3], 2) == state


def test_erase_in_candidate_mode_clears_mask():
    state = toggle_candidate(GridState.empty(), [4], 1)
    state = toggle_candidate(state, [4], 7)
    assert toggle_candidate(state, [4], None).candidates[4] == 0


def test_erase_in_value_mode_clears_value():
    state = set_value(GridState.empty(), [8], 6)
    assert set_value(state, [8], None).values[8] is None


def test_value_and_candidates_stay_exclusive_across_edits():
    store = _store({})
    for digit in range(1, 10):
        store.toggle_candidate([12, 13], digit)
    store.set_value([12], 4)
    store.toggle_candidate([12, 13], 4)
    for value, mask in zip(store.state.values, store.state.candidates):
        assert value is None or mask == 0
    assert store.state.candidates[13] == 0b111110111


def test_multi_cell_edit_skips_givens_silently():
    state = set_value(GridState.empty(), [0, 1, 2], "8", givens=frozenset({1}))
    assert state.values[:3] == ("8", None, "8")


def test_unchanged_state_is_a_noop():
    store = _store({})
    calls = []
    store.add_hook("spy", calls.append)
    store.set_value([9], None)
    store.set_value([], "1")
    assert calls == []
    assert not store.history.can_undo


@pytest.mark.parametrize("digit", [0, 10, "x"])
def test_invalid_digits_are_rejected(digit):
    with pytest.raises(GridStateError):
        set_value(GridState.empty(), [0], digit)


def test_state_rejects_value_with_candidates():
    values = ["1"] + [None] * 80
    masks = [1] + [0] * 80
    with pytest.raises(GridStateError):
        GridState(values=tuple(values), candidates=tuple(masks))


def test_record_round_trip_drops_masks_under_values():
    record = {"values": ["2"] + [None] * 80, "candidates": [5] + [3] * 80}
    state = GridState.from_record(record)
    assert state.candidates[0] == 0
    assert state.candidates[1] == 3
    assert state.to_record()["values"][0] == "2"


def test_grid_string_uses_dots_for_blanks():
    state = GridState.from_cells({0: "5", 80: "9"})
    text = state.to_grid_string()
    assert len(text) == 81
    assert text[0] == "5" and text[80] == "9" and text[1] == "."
    assert not state.is_filled()
    assert state.filled_count() == 2


def test_helpers():
    assert cell_coords(80) == (8, 8)
    assert list(candidate_digits(0b100000101)) == [1, 3, 9]
    assert givens_from_string("1" + "." * 79 + "0") == {0: "1"}
    with pytest.raises(GridStateError):
        cell_index(9, 0)


def test_format_grid_draws_box_separators():
    lines = format_grid(GridState.from_cells({0: "5"})).splitlines()
    assert len(lines) == 11
    assert lines[0].startswith("5 . . |")
    assert lines[3] == "------+-------+------"
