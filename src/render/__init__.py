"""SVG projection of the grid state."""

from __future__ import annotations

from .svg_board import CellGeometry, RenderPlan, SvgBoard, plan_render

__all__ = ["CellGeometry", "RenderPlan", "SvgBoard", "plan_render"]
