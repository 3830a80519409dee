"""Executors for the session's outbound requests.

Requests run wherever the executor decides; their callbacks always run on
the thread that owns the session, so grid mutations stay single-threaded.
"""

from __future__ import annotations

import queue
import threading
from typing import Any, Callable, List, Optional, Protocol, Tuple

Callback = Callable[[Any], None]
ErrorCallback = Callable[[Exception], None]


class RequestExecutor(Protocol):
    """Abstract execution backend for outbound requests."""

    def submit(
        self,
        request: Callable[[], Any],
        on_success: Optional[Callback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        """Schedule ``request`` and route its outcome to the callbacks."""

    def pump(self, *, wait: bool = False, timeout: float | None = None) -> int:
        """Deliver finished callbacks on the caller's thread."""

    def shutdown(self) -> None:
        """Tear down resources allocated by the executor."""


class InlineExecutor:
    """Deterministic executor running each request immediately."""

    def submit(
        self,
        request: Callable[[], Any],
        on_success: Optional[Callback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        try:
            result = request()
        except Exception as exc:  # routed to the caller's error callback
            if on_error is None:
                raise
            on_error(exc)
            return
        if on_success is not None:
            on_success(result)

    def pump(self, *, wait: bool = False, timeout: float | None = None) -> int:
        return 0

    def shutdown(self) -> None:
        return None


class ThreadedExecutor:
    """Runs requests on one worker thread; :meth:`pump` delivers results."""

    _STOP = object()

    def __init__(self) -> None:
        self._jobs: "queue.Queue[Any]" = queue.Queue()
        self._done: "queue.Queue[Tuple[Callable[..., None], Any]]" = queue.Queue()
        self._pending = 0
        self._lock = threading.Lock()
        self._worker = threading.Thread(target=self._run, name="session-requests", daemon=True)
        self._worker.start()

    def submit(
        self,
        request: Callable[[], Any],
        on_success: Optional[Callback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        with self._lock:
            self._pending += 1
        self._jobs.put((request, on_success, on_error))

    def _run(self) -> None:
        while True:
            job = self._jobs.get()
            if job is self._STOP:
                return
            request, on_success, on_error = job
            try:
                result = request()
            except Exception as exc:  # delivered to on_error by pump()
                self._done.put((on_error or _reraise, exc))
            else:
                self._done.put((on_success or _ignore, result))

    @property
    def pending(self) -> int:
        with self._lock:
            return self._pending

    def pump(self, *, wait: bool = False, timeout: float | None = None) -> int:
        """Run finished callbacks; with ``wait`` block until nothing is pending."""

        delivered = 0
        while True:
            if wait and self.pending:
                try:
                    callback, value = self._done.get(timeout=timeout)
                except queue.Empty:
                    return delivered
            else:
                try:
                    callback, value = self._done.get_nowait()
                except queue.Empty:
                    return delivered
            with self._lock:
                self._pending -= 1
            callback(value)
            delivered += 1

    def shutdown(self) -> None:
        self._jobs.put(self._STOP)
        self._worker.join()


def _ignore(_: Any) -> None:
    return None


def _reraise(exc: Exception) -> None:
    raise exc


__all__: List[str] = ["InlineExecutor", "RequestExecutor", "ThreadedExecutor"]
