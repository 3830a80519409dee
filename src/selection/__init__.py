"""Cell selection state machine."""

from __future__ import annotations

from .controller import Direction, SelectionController, SelectionState

__all__ = ["Direction", "SelectionController", "SelectionState"]
