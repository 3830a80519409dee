from __future__ import annotations

import logging

import pytest

from board import GridState
from render import SvgBoard, plan_render
from render.svg_board import DEFAULT_VALUE_OFFSET

from conftest import CELL, build_svg


def _board(**kwargs) -> SvgBoard:
    return SvgBoard(baseline_offset=DEFAULT_VALUE_OFFSET).hydrate(build_svg(**kwargs))


def test_hydrate_normalises_viewbox_and_creates_user_layer():
    board = _board(givens={0: "5"})
    root = board.root
    assert root.get("viewBox") == "0 0 360 360"
    assert "width" not in root.attrib and "height" not in root.attrib
    assert board.user_layer is not None
    assert board.user_layer.get("id") == "user-values"
    assert board.givens == {0: "5"}
    assert board.cell_indices == tuple(range(81))


def test_existing_viewbox_is_kept():
    board = SvgBoard(baseline_offset=0).hydrate(build_svg(viewbox=True))
    assert board.root.get("viewBox") == "0 0 360 360"


def test_missing_layers_are_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="render.svg_board"):
        board = _board(highlights=False, candidate_layer=False)
    messages = " ".join(record.getMessage() for record in caplog.records)
    assert "#highlights" in messages
    assert "#candidates" in messages
    assert board.cell_at(10, 10) is None


def test_malformed_svg_is_a_value_error():
    with pytest.raises(ValueError):
        SvgBoard(baseline_offset=0).hydrate("<svg")
    with pytest.raises(ValueError):
        SvgBoard(baseline_offset=0).hydrate("<html/>")


def test_apply_draws_user_values_at_cell_centre():
    board = _board(givens={0: "5"})
    state = GridState.from_cells({0: "5", 10: "3"})
    board.apply(state)
    assert board.user_digits() == {10: "3"}
    (node,) = list(board._user_nodes())
    assert float(node.get("x")) == pytest.approx(CELL + CELL / 2)
    assert float(node.get("y")) == pytest.approx(CELL + CELL / 2 + 26 * 0.08)


def test_apply_replaces_previous_glyphs_and_candidates():
    board = _board()
    board.apply(GridState.from_cells({1: "4"}, {2: 0b101}))
    assert board.candidate_text(2)[1] == "1"
    assert board.candidate_text(2)[3] == "3"
    board.apply(GridState.from_cells({3: "7"}, {2: 0b10}))
    assert board.user_digits() == {3: "7"}
    assert board.candidate_text(2) == {
        digit: ("2" if digit == 2 else "") for digit in range(1, 10)
    }


def test_plan_render_skips_givens_and_is_pure():
    board = _board(givens={0: "5"})
    state = GridState.from_cells({0: "5", 1: "6"}, {9: 1 << 8})
    plan = plan_render(state, board.geometry, board.givens, baseline_offset=0)
    assert [glyph.index for glyph in plan.user_glyphs] == [1]
    assert plan.candidate_marks == ((9, 9),)
    assert board.user_digits() == {}


def test_init_from_document_reads_existing_glyphs():
    board = _board(givens={0: "5"}, user={1: "2"}, candidates={2: [1, 9]})
    state = board.init_from_document()
    assert state.values[0] == "5"
    assert state.values[1] == "2"
    assert state.candidates[2] == 0b100000001


def test_cell_at_uses_inclusive_bounds():
    board = _board()
    assert board.cell_at(0, 0) == 0
    assert board.cell_at(CELL * 1.5, CELL * 0.5) == 1
    assert board.cell_at(CELL * 9, CELL * 9) == 80
    assert board.cell_at(-1, 5) is None


def test_same_value_styling_needs_single_valued_selection():
    board = _board(givens={0: "5"})
    state = GridState.from_cells({0: "5", 40: "5", 41: "6"})
    board.apply(state)

    assert board.update_selection({40}, state) == "5"
    assert "selected" in board.cell_classes(40)
    assert "same-value" in board.cell_classes(0)
    assert "same-value" not in board.cell_classes(41)

    assert board.update_selection({40, 41}, state) is None
    assert "same-value" not in board.cell_classes(0)
    assert "selected" in board.cell_classes(41)

    assert board.update_selection({1}, state) is None
    assert board.cell_classes(40) == ["highlight-cell"]


def test_to_string_round_trips_through_hydrate():
    board = _board(givens={4: "8"})
    board.apply(GridState.from_cells({4: "8", 5: "1"}))
    again = SvgBoard(baseline_offset=0).hydrate(board.to_string())
    assert again.givens == {4: "8"}
    assert again.user_digits() == {5: "1"}
