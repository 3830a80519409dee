"""Puzzle session orchestration: loading, input dispatch and completion."""

from __future__ import annotations

from .commands import Command, command_from_payload
from .controller import PuzzleSession, SessionController, build_source, create_controller
from .dispatcher import CommandDispatcher
from .executor import InlineExecutor, RequestExecutor, ThreadedExecutor
from .journal import SessionJournal, journal_from_config
from .notices import Presenter, RecordingPresenter, format_variant_label

__all__ = [
    "Command",
    "CommandDispatcher",
    "InlineExecutor",
    "Presenter",
    "PuzzleSession",
    "RecordingPresenter",
    "RequestExecutor",
    "SessionController",
    "SessionJournal",
    "ThreadedExecutor",
    "build_source",
    "command_from_payload",
    "create_controller",
    "format_variant_label",
    "journal_from_config",
]
