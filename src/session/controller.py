"""Puzzle session lifecycle: load, post-commit hooks and completion checks."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Set

import requests

from board import DEFAULT_UNDO_LIMIT, GridState, GridStore, StateChange
from contracts.errors import ProgressServiceError, PuzzleLoadError
from feature_flags import SessionFeatures, resolve_session_features
from ports import (
    AdminClient,
    AdminPreviewSource,
    CheckStatus,
    HttpProgressService,
    HttpPuzzleSource,
    ProgressService,
    PuzzleDocument,
    PuzzleSource,
    ServiceConfig,
)
from project_config import get_section
from render import SvgBoard
from selection import SelectionController
from storage import ProgressStore

from .executor import InlineExecutor, RequestExecutor, ThreadedExecutor
from .journal import SessionJournal
from .notices import (
    CANNOT_VALIDATE,
    CHECK_FAILED,
    FALLBACK_MESSAGE,
    LOOKS_GOOD,
    NOT_QUITE,
    SOLVED,
    STATUS_FAILED,
    STATUS_LOADED,
    STATUS_LOADING,
    Notice,
    Presenter,
    RecordingPresenter,
    variant_labels,
)

_LOGGER = logging.getLogger(__name__)

HOOK_RENDER = "render"
HOOK_PERSIST = "persist"
HOOK_COMPLETION = "completion"

_VERDICT_NOTICES = {
    CheckStatus.COMPLETE: SOLVED,
    CheckStatus.PARTIAL: LOOKS_GOOD,
    CheckStatus.INCORRECT: NOT_QUITE,
    CheckStatus.UNAVAILABLE: CANNOT_VALIDATE,
}


class PuzzleSession:
    """One loaded document together with its board, grid store and selection."""

    def __init__(self, document: PuzzleDocument, generation: int, *, undo_limit: int) -> None:
        self.document = document
        self.generation = generation
        self.board = SvgBoard().hydrate(document.svg)
        self.store = GridStore(
            self.board.givens,
            self.board.init_from_document(),
            undo_limit=undo_limit,
        )
        self.selection = SelectionController()
        self.solved = False

    @property
    def date(self) -> Optional[str]:
        return self.document.date_utc

    @property
    def guard_key(self) -> str:
        # Undated documents (random, preview) are guarded per load.
        return self.document.date_utc or f"#{self.generation}"

    @property
    def state(self) -> GridState:
        return self.store.state

    def local_verdict(self) -> Optional[bool]:
        """Compare filled cells with the embedded solution.

        Returns ``None`` when the document carries no usable solution.
        """

        solution = self.document.solution
        if not solution or len(solution) != len(self.state.values):
            return None
        for value, expected in zip(self.state.values, solution):
            if value is not None and value != expected:
                return False
        return True


class SessionController:
    """Owns the active :class:`PuzzleSession` and talks to the ports.

    All mutation happens on the caller's thread. Requests go through the
    executor and their callbacks re-check the session generation so that a
    late answer for a discarded puzzle is dropped.
    """

    def __init__(
        self,
        source: PuzzleSource,
        progress: ProgressService,
        *,
        presenter: Presenter | None = None,
        progress_store: ProgressStore | None = None,
        features: SessionFeatures | None = None,
        executor: RequestExecutor | None = None,
        journal: SessionJournal | None = None,
        undo_limit: int | None = None,
    ) -> None:
        self.source = source
        self.progress = progress
        self.presenter: Presenter = presenter or RecordingPresenter()
        self.features = features or resolve_session_features()
        self.progress_store = progress_store if progress_store is not None else ProgressStore()
        self.executor: RequestExecutor = executor or InlineExecutor()
        self.journal = journal
        if undo_limit is None:
            undo_limit = int(get_section("engine.undo_limit", DEFAULT_UNDO_LIMIT))
        self.undo_limit = undo_limit

        self._session: Optional[PuzzleSession] = None
        self._generation = 0
        self._completed: Set[str] = set()
        self._check_in_flight = False

    # -- lifecycle ----------------------------------------------------------------

    @property
    def session(self) -> Optional[PuzzleSession]:
        return self._session

    @property
    def check_in_flight(self) -> bool:
        return self._check_in_flight

    def load(self) -> bool:
        """Fetch and install a new document; on failure keep the current one."""

        self.presenter.status(STATUS_LOADING)
        try:
            document = self.source.fetch()
            session = PuzzleSession(document, self._generation + 1, undo_limit=self.undo_limit)
        except (PuzzleLoadError, ValueError) as exc:
            _LOGGER.warning("Puzzle load failed: %s", exc)
            self.presenter.status(STATUS_FAILED)
            self.presenter.fallback(FALLBACK_MESSAGE)
            return False

        self._generation = session.generation
        self._session = session
        self._check_in_flight = False
        self._restore(session)
        self._install_hooks(session)

        self._render(session)
        self.presenter.variants(variant_labels(document.variants))
        self.presenter.status(STATUS_LOADED)
        _LOGGER.info("Loaded puzzle %s (generation %d)", session.guard_key, session.generation)

        self._record("session.view", date=session.date, profile=self.features.profile)
        if self.features.telemetry:
            self.executor.submit(lambda: self.progress.track("view"), on_error=self._telemetry_failed)
        return True

    def reload(self) -> bool:
        return self.load()

    def pump(self, *, wait: bool = False) -> int:
        """Deliver finished request callbacks; ``wait`` drains every pending one."""

        return self.executor.pump(wait=wait)

    def close(self) -> None:
        """Release the request executor."""

        self.executor.shutdown()

    def _restore(self, session: PuzzleSession) -> None:
        if not self.features.persist or session.date is None:
            return
        record = self.progress_store.load(session.date)
        if record is None:
            return
        session.store.replace(record.state)
        session.solved = record.solved
        if record.solved:
            self._completed.add(session.guard_key)
        _LOGGER.debug("Restored progress for %s (solved=%s)", session.date, record.solved)

    def _install_hooks(self, session: PuzzleSession) -> None:
        store = session.store
        store.add_hook(HOOK_RENDER, lambda change: self._on_render(session, change))
        if self.features.persist:
            store.add_hook(HOOK_PERSIST, lambda change: self._persist(session))
        if self.features.auto_check:
            store.add_hook(HOOK_COMPLETION, lambda change: self._maybe_complete(session))

    # -- post-commit hooks ----------------------------------------------------------

    def _render(self, session: PuzzleSession) -> None:
        session.board.apply(session.state)
        session.board.update_selection(session.selection.selected, session.state)
        history = session.store.history
        self.presenter.history(history.can_undo, history.can_redo)

    def _on_render(self, session: PuzzleSession, change: StateChange) -> None:
        self._render(session)

    def _persist(self, session: PuzzleSession) -> None:
        if session.date is None:
            return
        self.progress_store.save(session.date, session.state, session.solved)

    def _maybe_complete(self, session: PuzzleSession) -> None:
        if not session.state.is_filled():
            return
        if session.guard_key in self._completed or self._check_in_flight:
            return
        self._completed.add(session.guard_key)
        self._submit(session, explicit=False)

    # -- checks -------------------------------------------------------------------

    def check(self) -> None:
        """User-initiated check.

        With an embedded solution only the filled cells are compared locally;
        otherwise the current grid, complete or not, goes to the service.
        """

        session = self._session
        if session is None:
            return
        verdict = session.local_verdict()
        if verdict is not None:
            self._record("session.check", date=session.date, explicit=True, local=True, ok=verdict)
            self._show(LOOKS_GOOD if verdict else NOT_QUITE)
            return
        if self._check_in_flight:
            _LOGGER.debug("Check already in flight; ignoring request")
            return
        self._submit(session, explicit=True)

    def _submit(self, session: PuzzleSession, *, explicit: bool) -> None:
        grid = session.state.to_grid_string()
        generation = session.generation
        self._record(
            "session.check",
            date=session.date,
            explicit=explicit,
            local=False,
            filled=session.state.filled_count(),
        )
        self._check_in_flight = True
        self.executor.submit(
            lambda: self.progress.check(grid),
            on_success=lambda status: self._on_verdict(generation, status),
            on_error=lambda exc: self._on_check_failed(generation, exc, explicit),
        )

    def _current(self, generation: int) -> Optional[PuzzleSession]:
        session = self._session
        if session is None or session.generation != generation:
            _LOGGER.debug("Dropping response for discarded session %d", generation)
            return None
        return session

    def _on_verdict(self, generation: int, status: Any) -> None:
        session = self._current(generation)
        if session is None:
            return
        self._check_in_flight = False
        verdict = CheckStatus.from_value(status)
        if verdict is CheckStatus.COMPLETE:
            session.solved = True
            self._completed.add(session.guard_key)
            if self.features.persist:
                self._persist(session)
            self._record("session.solve", date=session.date)
            _LOGGER.info("Puzzle %s solved", session.guard_key)
        self._show(_VERDICT_NOTICES[verdict])

    def _on_check_failed(self, generation: int, exc: Exception, explicit: bool) -> None:
        session = self._current(generation)
        if session is None:
            return
        self._check_in_flight = False
        if not isinstance(exc, ProgressServiceError):
            raise exc
        _LOGGER.warning("Check request failed: %s", exc)
        if explicit:
            self._show(CHECK_FAILED)

    def _telemetry_failed(self, exc: Exception) -> None:
        if not isinstance(exc, ProgressServiceError):
            raise exc
        _LOGGER.warning("Telemetry request failed: %s", exc)

    def _show(self, notice: Notice) -> None:
        self.presenter.dialog(notice.title, notice.message)

    def _record(self, event: str, **fields: Any) -> None:
        if self.journal is None:
            return
        try:
            self.journal.append(event, **fields)
        except OSError as exc:
            _LOGGER.warning("Journal write failed for %s: %s", event, exc)

    # -- editing ------------------------------------------------------------------

    def enter(self, digit: Optional[int | str]) -> bool:
        """Write ``digit`` (``None`` erases) into the selection in the effective mode."""

        session = self._session
        if session is None:
            return False
        selection = session.selection
        return session.store.input(selection.effective_mode, selection.selected, digit)

    def erase(self) -> bool:
        return self.enter(None)

    def undo(self) -> bool:
        session = self._session
        return session is not None and session.store.undo()

    def redo(self) -> bool:
        session = self._session
        return session is not None and session.store.redo()

    def refresh_selection(self) -> Optional[str]:
        session = self._session
        if session is None:
            return None
        return session.board.update_selection(session.selection.selected, session.state)


def build_source(
    kind: str,
    *,
    http: requests.Session | None = None,
    config: ServiceConfig | None = None,
    preview_date: str | None = None,
) -> PuzzleSource:
    """Return the Puzzle Source named by ``kind`` (``today``, ``random`` or ``preview``)."""

    if kind == "preview":
        return AdminPreviewSource(AdminClient(session=http, config=config), preview_date)
    try:
        return HttpPuzzleSource(kind, session=http, config=config)
    except ValueError as exc:
        raise PuzzleLoadError(str(exc)) from exc


def create_controller(
    profile: str = "player",
    *,
    env: Mapping[str, str] | None = None,
    presenter: Presenter | None = None,
    http: requests.Session | None = None,
    source: PuzzleSource | None = None,
    progress_store: ProgressStore | None = None,
    executor: RequestExecutor | None = None,
    journal: SessionJournal | None = None,
    threaded: bool = False,
) -> SessionController:
    """Wire a controller for ``profile`` from configuration and feature flags.

    ``threaded`` runs service requests on a worker thread; callers then
    deliver results with :meth:`SessionController.pump` and release the
    worker with :meth:`SessionController.close`.
    """

    features = resolve_session_features(profile, env)
    config = ServiceConfig.from_config()
    http = http or requests.Session()
    if source is None:
        source = build_source(features.source, http=http, config=config)
    return SessionController(
        source,
        HttpProgressService(session=http, config=config),
        presenter=presenter,
        progress_store=progress_store,
        features=features,
        executor=executor or (ThreadedExecutor() if threaded else None),
        journal=journal,
    )


__all__ = [
    "HOOK_COMPLETION",
    "HOOK_PERSIST",
    "HOOK_RENDER",
    "PuzzleSession",
    "SessionController",
    "build_source",
    "create_controller",
]
