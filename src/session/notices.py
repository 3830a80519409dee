"""User-facing texts and the presenter port that displays them."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple

STATUS_LOADING = "Loading puzzle…"
STATUS_LOADED = "Puzzle loaded."
STATUS_FAILED = "Failed to load puzzle."
FALLBACK_MESSAGE = "Something went wrong loading the puzzle. Try again."

CLASSIC_LABEL = "Classic"

VARIANT_LABELS = {
    "kropki_white": "Kropki (white)",
    "kropki_black": "Kropki (black)",
    "thermo": "Thermo",
    "arrow": "Arrow",
    "killer": "Killer cages",
    "king": "King move",
    "knight": "Knight move",
    "queen": "Queen move",
}


@dataclass(frozen=True)
class Notice:
    title: str
    message: str


SOLVED = Notice("Solved!", "You solved the puzzle. Nice work.")
LOOKS_GOOD = Notice("Looks good", "Everything is looking correct so far.")
NOT_QUITE = Notice("Not quite", "There is an error somewhere.")
CANNOT_VALIDATE = Notice("Check", "No solution is available right now, so I can't validate this puzzle.")
CHECK_FAILED = Notice("Check failed", "The puzzle could not be checked right now. Try again later.")


def format_variant_label(kind: str) -> str:
    """Human label for a constraint kind; unknown kinds are title-cased."""

    label = VARIANT_LABELS.get(kind)
    if label:
        return label
    return re.sub(r"\b\w", lambda match: match.group(0).upper(), kind.replace("_", " "))


def variant_labels(kinds: Sequence[str]) -> List[str]:
    labels = [format_variant_label(kind) for kind in kinds]
    return labels or [CLASSIC_LABEL]


class Presenter(Protocol):
    """Where the session sends status lines, dialogs and control state."""

    def status(self, text: str) -> None:
        ...

    def dialog(self, title: str, message: str) -> None:
        ...

    def variants(self, labels: Sequence[str]) -> None:
        ...

    def history(self, can_undo: bool, can_redo: bool) -> None:
        ...

    def fallback(self, message: str) -> None:
        ...


@dataclass
class RecordingPresenter:
    """Presenter that keeps everything in memory (CLI replays and tests)."""

    statuses: List[str] = field(default_factory=list)
    dialogs: List[Tuple[str, str]] = field(default_factory=list)
    variant_pills: List[str] = field(default_factory=list)
    undo_enabled: bool = False
    redo_enabled: bool = False
    placeholder: Optional[str] = None

    def status(self, text: str) -> None:
        self.statuses.append(text)

    def dialog(self, title: str, message: str) -> None:
        self.dialogs.append((title, message))

    def variants(self, labels: Sequence[str]) -> None:
        self.variant_pills = list(labels)

    def history(self, can_undo: bool, can_redo: bool) -> None:
        self.undo_enabled = can_undo
        self.redo_enabled = can_redo

    def fallback(self, message: str) -> None:
        self.placeholder = message
        self.variant_pills = []

    @property
    def last_status(self) -> Optional[str]:
        return self.statuses[-1] if self.statuses else None

    @property
    def last_dialog(self) -> Optional[Tuple[str, str]]:
        return self.dialogs[-1] if self.dialogs else None


__all__ = [
    "CANNOT_VALIDATE",
    "CHECK_FAILED",
    "CLASSIC_LABEL",
    "FALLBACK_MESSAGE",
    "LOOKS_GOOD",
    "NOT_QUITE",
    "Notice",
    "Presenter",
    "RecordingPresenter",
    "SOLVED",
    "STATUS_FAILED",
    "STATUS_LOADED",
    "STATUS_LOADING",
    "VARIANT_LABELS",
    "format_variant_label",
    "variant_labels",
]
