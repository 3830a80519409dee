"""Projection of :class:`GridState` onto a pre-rendered puzzle SVG.

The document is expected to carry four layers:

* ``#highlights`` with one ``rect.highlight-cell`` per cell (``data-row``,
  ``data-col``, ``data-box`` plus ``x``/``y``/``width``/``height``);
* ``#givens`` with ``text.given`` clue glyphs tagged by row/column;
* ``#user-values`` for entered digits (created when missing);
* ``#candidates`` with one ``g.cell-candidates`` per cell, each holding a
  ``text.candidate[data-digit]`` placeholder for digits 1–9.

The board only mirrors state it is handed; it never decides edits.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from board.state import CELL_COUNT, DIGITS, GridState, candidate_digits, cell_index
from project_config import get_section

_LOGGER = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
ET.register_namespace("", SVG_NS)

DEFAULT_VALUE_OFFSET = 26 * 0.08

CLASS_SELECTED = "selected"
CLASS_SAME_VALUE = "same-value"


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _classes(element: ET.Element) -> List[str]:
    return element.get("class", "").split()


def _has_class(element: ET.Element, name: str) -> bool:
    return name in _classes(element)


def _toggle_class(element: ET.Element, name: str, enabled: bool) -> None:
    classes = [item for item in _classes(element) if item != name]
    if enabled:
        classes.append(name)
    if classes:
        element.set("class", " ".join(classes))
    elif "class" in element.attrib:
        del element.attrib["class"]


def _fmt(value: float) -> str:
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return text or "0"


def _coords(element: ET.Element) -> Optional[int]:
    try:
        return cell_index(int(element.get("data-row", "")), int(element.get("data-col", "")))
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class CellGeometry:
    """Selectable rectangle of one cell in document coordinates."""

    index: int
    row: int
    col: int
    box: str
    x: float
    y: float
    width: float
    height: float

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x + self.width and self.y <= py <= self.y + self.height

    def center(self, baseline_offset: float = 0.0) -> Tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2 + baseline_offset


@dataclass(frozen=True)
class UserGlyph:
    index: int
    digit: str
    x: float
    y: float


@dataclass(frozen=True)
class RenderPlan:
    """Document patch set derived from one state."""

    user_glyphs: Tuple[UserGlyph, ...]
    candidate_marks: Tuple[Tuple[int, int], ...]


def plan_render(
    state: GridState,
    geometry: Mapping[int, CellGeometry],
    givens: Iterable[int] = (),
    *,
    baseline_offset: float = DEFAULT_VALUE_OFFSET,
) -> RenderPlan:
    """Compute the glyphs to draw for ``state`` without touching a document."""

    given_cells = frozenset(givens)
    glyphs: List[UserGlyph] = []
    marks: List[Tuple[int, int]] = []
    for index in range(CELL_COUNT):
        value = state.values[index]
        if value is not None and index not in given_cells:
            cell = geometry.get(index)
            if cell is not None:
                x, y = cell.center(baseline_offset)
                glyphs.append(UserGlyph(index=index, digit=value, x=x, y=y))
        for digit in candidate_digits(state.candidates[index]):
            marks.append((index, digit))
    return RenderPlan(user_glyphs=tuple(glyphs), candidate_marks=tuple(marks))


class SvgBoard:
    """Mounted puzzle document with read/write access to its layers."""

    def __init__(self, *, baseline_offset: float | None = None) -> None:
        if baseline_offset is None:
            baseline_offset = float(get_section("render.value_baseline_offset", DEFAULT_VALUE_OFFSET))
        self.baseline_offset = baseline_offset
        self.root: Optional[ET.Element] = None
        self.highlight_layer: Optional[ET.Element] = None
        self.givens_layer: Optional[ET.Element] = None
        self.user_layer: Optional[ET.Element] = None
        self.candidate_layer: Optional[ET.Element] = None
        self._rects: Dict[int, ET.Element] = {}
        self._geometry: Dict[int, CellGeometry] = {}
        self._candidate_slots: Dict[int, Dict[int, ET.Element]] = {}
        self._givens: Dict[int, str] = {}

    # -- mounting -----------------------------------------------------------------

    def hydrate(self, svg_text: str) -> "SvgBoard":
        """Parse ``svg_text`` and locate (or create) the structural layers."""

        try:
            root = ET.fromstring(svg_text)
        except ET.ParseError as exc:
            raise ValueError(f"puzzle SVG is not well-formed: {exc}") from exc
        if _local(root.tag) != "svg":
            raise ValueError(f"expected an <svg> root element, got <{_local(root.tag)}>")
        self.root = root
        self._normalise_viewbox()

        self.highlight_layer = self._find_by_id("highlights")
        self.givens_layer = self._find_by_id("givens")
        self.user_layer = self._find_by_id("user-values")
        self.candidate_layer = self._find_by_id("candidates")

        if self.user_layer is None:
            self.user_layer = ET.SubElement(root, self._tag("g"), {"id": "user-values"})
        if self.highlight_layer is None:
            _LOGGER.warning("Missing #highlights layer")
        if self.candidate_layer is None:
            _LOGGER.warning("Missing #candidates layer")

        self._index_cells()
        self._index_givens()
        self._index_candidates()
        return self

    @property
    def mounted(self) -> bool:
        return self.root is not None

    def _tag(self, name: str) -> str:
        assert self.root is not None
        if self.root.tag.startswith("{"):
            namespace = self.root.tag[1:].split("}", 1)[0]
            return f"{{{namespace}}}{name}"
        return name

    def _find_by_id(self, element_id: str) -> Optional[ET.Element]:
        assert self.root is not None
        for element in self.root.iter():
            if element.get("id") == element_id:
                return element
        return None

    def _normalise_viewbox(self) -> None:
        assert self.root is not None
        width = self.root.get("width")
        height = self.root.get("height")
        if "viewBox" not in self.root.attrib and width and height:
            try:
                w = float(width)
                h = float(height)
            except ValueError:
                pass
            else:
                self.root.set("viewBox", f"0 0 {_fmt(w)} {_fmt(h)}")
        self.root.attrib.pop("width", None)
        self.root.attrib.pop("height", None)

    def _index_cells(self) -> None:
        self._rects.clear()
        self._geometry.clear()
        if self.highlight_layer is None:
            return
        for rect in self.highlight_layer.iter():
            if _local(rect.tag) != "rect" or not _has_class(rect, "highlight-cell"):
                continue
            index = _coords(rect)
            if index is None:
                continue
            self._rects[index] = rect
            try:
                row, col = divmod(index, 9)
                self._geometry[index] = CellGeometry(
                    index=index,
                    row=row,
                    col=col,
                    box=rect.get("data-box") or "0",
                    x=float(rect.get("x", "")),
                    y=float(rect.get("y", "")),
                    width=float(rect.get("width", "")),
                    height=float(rect.get("height", "")),
                )
            except ValueError:
                _LOGGER.warning("highlight cell %s has no usable geometry", index)

    def _index_givens(self) -> None:
        self._givens.clear()
        if self.givens_layer is None:
            return
        for node in self.givens_layer.iter():
            if _local(node.tag) != "text" or not _has_class(node, "given"):
                continue
            index = _coords(node)
            text = (node.text or "").strip()
            if index is not None and len(text) == 1 and text in DIGITS:
                self._givens[index] = text

    def _index_candidates(self) -> None:
        self._candidate_slots.clear()
        if self.candidate_layer is None:
            return
        for group in self.candidate_layer.iter():
            if not _has_class(group, "cell-candidates"):
                continue
            index = _coords(group)
            if index is None:
                continue
            slots: Dict[int, ET.Element] = {}
            for node in group.iter():
                if _local(node.tag) != "text" or not _has_class(node, "candidate"):
                    continue
                try:
                    digit = int(node.get("data-digit", ""))
                except ValueError:
                    continue
                if 1 <= digit <= 9:
                    slots[digit] = node
            self._candidate_slots[index] = slots

    # -- queries ------------------------------------------------------------------

    @property
    def givens(self) -> Dict[int, str]:
        return dict(self._givens)

    @property
    def geometry(self) -> Dict[int, CellGeometry]:
        return dict(self._geometry)

    @property
    def cell_indices(self) -> Tuple[int, ...]:
        return tuple(sorted(self._rects))

    def cell_at(self, x: float, y: float) -> Optional[int]:
        """Return the cell whose rectangle contains ``(x, y)``."""

        for index in sorted(self._geometry):
            if self._geometry[index].contains(x, y):
                return index
        return None

    def cell_classes(self, index: int) -> List[str]:
        rect = self._rects.get(index)
        return [] if rect is None else _classes(rect)

    def user_digits(self) -> Dict[int, str]:
        """Return the entered digits currently drawn in ``#user-values``."""

        digits: Dict[int, str] = {}
        for node in self._user_nodes():
            index = _coords(node)
            if index is not None and node.text:
                digits[index] = node.text.strip()
        return digits

    def candidate_text(self, index: int) -> Dict[int, str]:
        return {digit: node.text or "" for digit, node in self._candidate_slots.get(index, {}).items()}

    def to_string(self) -> str:
        if self.root is None:
            return ""
        return ET.tostring(self.root, encoding="unicode")

    # -- state projection ---------------------------------------------------------

    def _user_nodes(self) -> Iterator[ET.Element]:
        if self.user_layer is None:
            return iter(())
        return (
            node
            for node in self.user_layer.iter()
            if _local(node.tag) == "text" and _has_class(node, "user")
        )

    def _remove_user_glyphs(self) -> None:
        assert self.user_layer is not None
        for parent in list(self.user_layer.iter()):
            for child in list(parent):
                if _local(child.tag) == "text" and _has_class(child, "user"):
                    parent.remove(child)

    def apply(self, state: GridState) -> RenderPlan:
        """Redraw entered digits and candidate marks from ``state``."""

        if self.root is None or self.user_layer is None:
            raise RuntimeError("apply() called before hydrate()")

        plan = plan_render(state, self._geometry, self._givens, baseline_offset=self.baseline_offset)

        self._remove_user_glyphs()
        for glyph in plan.user_glyphs:
            cell = self._geometry[glyph.index]
            node = ET.SubElement(
                self.user_layer,
                self._tag("text"),
                {
                    "class": "user",
                    "data-row": str(cell.row),
                    "data-col": str(cell.col),
                    "data-box": cell.box,
                    "x": _fmt(glyph.x),
                    "y": _fmt(glyph.y),
                    "text-anchor": "middle",
                    "dominant-baseline": "middle",
                    "pointer-events": "none",
                },
            )
            node.text = glyph.digit

        for slots in self._candidate_slots.values():
            for node in slots.values():
                node.text = ""
        for index, digit in plan.candidate_marks:
            node = self._candidate_slots.get(index, {}).get(digit)
            if node is not None:
                node.text = str(digit)
        return plan

    def init_from_document(self) -> GridState:
        """Read givens, entered digits and candidate marks already in the document."""

        values: Dict[int, str] = {}
        for node in self._user_nodes():
            index = _coords(node)
            text = (node.text or "").strip()
            if index is not None and len(text) == 1 and text in DIGITS:
                values[index] = text
        values.update(self._givens)

        masks: Dict[int, int] = {}
        for index, slots in self._candidate_slots.items():
            mask = 0
            for digit, node in slots.items():
                if (node.text or "").strip():
                    mask |= 1 << (digit - 1)
            masks[index] = mask
        return GridState.from_cells(values, masks)

    def update_selection(self, selected: Iterable[int], state: GridState) -> Optional[str]:
        """Style selected cells and, for a single valued selection, its peers.

        Returns the digit used for same-value highlighting, if any.
        """

        chosen = frozenset(selected)
        highlight: Optional[str] = None
        if len(chosen) == 1:
            (only,) = chosen
            value = state.values[only]
            if value is not None and value in DIGITS:
                highlight = value

        for index, rect in self._rects.items():
            is_selected = index in chosen
            _toggle_class(rect, CLASS_SELECTED, is_selected)
            same = highlight is not None and not is_selected and state.values[index] == highlight
            _toggle_class(rect, CLASS_SAME_VALUE, same)
        return highlight


__all__ = [
    "CellGeometry",
    "DEFAULT_VALUE_OFFSET",
    "RenderPlan",
    "SvgBoard",
    "UserGlyph",
    "plan_render",
]
