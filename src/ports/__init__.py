"""Ports to the remote collaborators of a puzzle session."""

from __future__ import annotations

from ._http import ServiceConfig
from .admin_port import AdminClient, AdminPreviewSource, PuzzleStats
from .progress_service import CheckStatus, HttpProgressService, ProgressService
from .puzzle_source import HttpPuzzleSource, PuzzleDocument, PuzzleSource, StaticPuzzleSource

__all__ = [
    "AdminClient",
    "AdminPreviewSource",
    "CheckStatus",
    "HttpProgressService",
    "HttpPuzzleSource",
    "ProgressService",
    "PuzzleDocument",
    "PuzzleSource",
    "PuzzleStats",
    "ServiceConfig",
    "StaticPuzzleSource",
]
