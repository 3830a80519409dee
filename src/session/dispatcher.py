"""Routes input commands to the selection controller and the grid store."""

from __future__ import annotations

import logging
import re
import sys
from typing import Callable, Dict, Iterable, List, Optional, Type, Union

from board import InputMode
from selection import Direction

from .commands import (
    CheckPressed,
    Click,
    Command,
    DigitPadPress,
    KeyPress,
    KeyRelease,
    PointerDown,
    PointerLeave,
    PointerMove,
    PointerUp,
    RedoPressed,
    ReloadPressed,
    SetMode,
    ToggleMultiSelect,
    UndoPressed,
)
from .controller import PuzzleSession, SessionController

_LOGGER = logging.getLogger(__name__)

_CODE_DIGIT = re.compile(r"^(?:Digit|Numpad)([1-9])$")
_ERASE_KEYS = {"Backspace", "Delete", "0"}
_ARROWS = {
    "ArrowUp": Direction.UP,
    "ArrowDown": Direction.DOWN,
    "ArrowLeft": Direction.LEFT,
    "ArrowRight": Direction.RIGHT,
}


def digit_from_key(key: str, code: str = "") -> Optional[str]:
    """Digit typed by a key event; ``code`` covers shifted number keys."""

    if len(key) == 1 and key in "123456789":
        return key
    match = _CODE_DIGIT.match(code or "")
    return match.group(1) if match else None


class CommandDispatcher:
    """Single entry point for user input on the session thread."""

    def __init__(self, controller: SessionController, *, mac: bool | None = None) -> None:
        self.controller = controller
        self.mac = sys.platform == "darwin" if mac is None else mac
        self._handlers: Dict[Type[object], Callable[[object], bool]] = {
            PointerDown: self._pointer_down,
            PointerMove: self._pointer_move,
            PointerUp: self._pointer_up,
            PointerLeave: self._pointer_up,
            Click: self._click,
            KeyPress: self._key_press,
            KeyRelease: self._key_release,
            DigitPadPress: self._digit_pad,
            SetMode: self._set_mode,
            ToggleMultiSelect: self._toggle_multi_select,
            UndoPressed: lambda command: self.controller.undo(),
            RedoPressed: lambda command: self.controller.redo(),
            CheckPressed: self._check,
            ReloadPressed: lambda command: self.controller.reload(),
        }

    def dispatch(self, command: Command) -> bool:
        """Handle ``command``; return ``True`` when it changed something."""

        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unsupported command {command!r}")
        return bool(handler(command))

    def dispatch_all(self, commands: Iterable[Command]) -> List[bool]:
        return [self.dispatch(command) for command in commands]

    @property
    def _session(self) -> Optional[PuzzleSession]:
        return self.controller.session

    def _resolve_cell(self, command) -> Optional[int]:
        if command.cell is not None:
            return command.cell
        session = self._session
        if session is None or command.x is None or command.y is None:
            return None
        return session.board.cell_at(command.x, command.y)

    def _after_selection(self, changed: bool) -> bool:
        if changed:
            self.controller.refresh_selection()
        return changed

    # -- pointer ------------------------------------------------------------------

    def _pointer_down(self, command: PointerDown) -> bool:
        session = self._session
        cell = self._resolve_cell(command)
        if session is None or cell is None:
            return False
        return self._after_selection(session.selection.press(cell))

    def _pointer_move(self, command: PointerMove) -> bool:
        session = self._session
        if session is None:
            return False
        return self._after_selection(session.selection.drag_over(self._resolve_cell(command)))

    def _pointer_up(self, command: Union[PointerUp, PointerLeave]) -> bool:
        session = self._session
        if session is not None:
            session.selection.release()
        return False

    def _click(self, command: Click) -> bool:
        session = self._session
        if session is None:
            return False
        return self._after_selection(session.selection.click(self._resolve_cell(command)))

    # -- keyboard -----------------------------------------------------------------

    def _key_press(self, command: KeyPress) -> bool:
        session = self._session
        if session is None:
            return False
        if command.key == "Shift":
            session.selection.shift_down()
            return False

        mod = command.meta if self.mac else command.ctrl
        lowered = command.key.lower()
        if mod and lowered == "z":
            return self.controller.redo() if command.shift else self.controller.undo()
        if mod and lowered == "y":
            return self.controller.redo()

        direction = _ARROWS.get(command.key)
        if direction is not None:
            return self._after_selection(session.selection.move(direction))

        if not session.selection.selected:
            return False
        digit = digit_from_key(command.key, command.code)
        if digit is not None:
            return self.controller.enter(digit)
        if command.key in _ERASE_KEYS:
            return self.controller.erase()
        return False

    def _key_release(self, command: KeyRelease) -> bool:
        session = self._session
        if session is not None and command.key == "Shift":
            session.selection.shift_up()
        return False

    # -- controls -----------------------------------------------------------------

    def _digit_pad(self, command: DigitPadPress) -> bool:
        if command.digit is None:
            return self.controller.erase()
        return self.controller.enter(command.digit)

    def _set_mode(self, command: SetMode) -> bool:
        session = self._session
        if session is None:
            return False
        mode = InputMode.from_value(command.mode)
        changed = session.selection.state.input_mode is not mode
        session.selection.set_mode(mode)
        return changed

    def _toggle_multi_select(self, command: ToggleMultiSelect) -> bool:
        session = self._session
        if session is None:
            return False
        self._after_selection(session.selection.toggle_multi_select())
        return True

    def _check(self, command: CheckPressed) -> bool:
        self.controller.check()
        return False


__all__ = ["CommandDispatcher", "digit_from_key"]
