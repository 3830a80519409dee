"""Input commands accepted by the session dispatcher."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional, Type, Union


@dataclass(frozen=True)
class PointerDown:
    x: Optional[float] = None
    y: Optional[float] = None
    cell: Optional[int] = None


@dataclass(frozen=True)
class PointerMove:
    x: Optional[float] = None
    y: Optional[float] = None
    cell: Optional[int] = None


@dataclass(frozen=True)
class PointerUp:
    pass


@dataclass(frozen=True)
class PointerLeave:
    """Pointer left the board; ends a drag like :class:`PointerUp`."""


@dataclass(frozen=True)
class Click:
    """Click on a cell, or on empty space when no cell resolves."""

    x: Optional[float] = None
    y: Optional[float] = None
    cell: Optional[int] = None


@dataclass(frozen=True)
class KeyPress:
    key: str
    code: str = ""
    shift: bool = False
    ctrl: bool = False
    meta: bool = False


@dataclass(frozen=True)
class KeyRelease:
    key: str
    code: str = ""


@dataclass(frozen=True)
class DigitPadPress:
    """Digit pad button; ``digit=None`` is the erase button."""

    digit: Optional[int] = None


@dataclass(frozen=True)
class SetMode:
    mode: str


@dataclass(frozen=True)
class ToggleMultiSelect:
    pass


@dataclass(frozen=True)
class UndoPressed:
    pass


@dataclass(frozen=True)
class RedoPressed:
    pass


@dataclass(frozen=True)
class CheckPressed:
    pass


@dataclass(frozen=True)
class ReloadPressed:
    pass


Command = Union[
    PointerDown,
    PointerMove,
    PointerUp,
    PointerLeave,
    Click,
    KeyPress,
    KeyRelease,
    DigitPadPress,
    SetMode,
    ToggleMultiSelect,
    UndoPressed,
    RedoPressed,
    CheckPressed,
    ReloadPressed,
]

COMMAND_TYPES: Dict[str, Type[Any]] = {
    "pointer_down": PointerDown,
    "pointer_move": PointerMove,
    "pointer_up": PointerUp,
    "pointer_leave": PointerLeave,
    "click": Click,
    "key_press": KeyPress,
    "key_release": KeyRelease,
    "digit": DigitPadPress,
    "set_mode": SetMode,
    "toggle_multi_select": ToggleMultiSelect,
    "undo": UndoPressed,
    "redo": RedoPressed,
    "check": CheckPressed,
    "reload": ReloadPressed,
}


def command_from_payload(payload: Mapping[str, Any]) -> Command:
    """Build a command from ``{"type": ..., **fields}``.

    ``row``/``col`` are accepted in place of ``cell`` for pointer commands.
    """

    kind = payload.get("type")
    cls = COMMAND_TYPES.get(str(kind))
    if cls is None:
        raise ValueError(f"Unknown command type '{kind}'")

    known = {item.name for item in fields(cls)}
    data = {key: value for key, value in payload.items() if key != "type"}
    if "cell" in known and "cell" not in data and "row" in data and "col" in data:
        data["cell"] = int(data.pop("row")) * 9 + int(data.pop("col"))
    unexpected = sorted(set(data) - known)
    if unexpected:
        raise ValueError(f"{kind}: unexpected field(s) {', '.join(unexpected)}")
    try:
        return cls(**data)
    except TypeError as exc:
        raise ValueError(f"{kind}: {exc}") from exc


__all__ = [
    "COMMAND_TYPES",
    "Click",
    "CheckPressed",
    "Command",
    "DigitPadPress",
    "KeyPress",
    "KeyRelease",
    "PointerDown",
    "PointerLeave",
    "PointerMove",
    "PointerUp",
    "RedoPressed",
    "ReloadPressed",
    "SetMode",
    "ToggleMultiSelect",
    "UndoPressed",
    "command_from_payload",
]
