from __future__ import annotations

import threading

import pytest

from session import InlineExecutor, ThreadedExecutor


def test_inline_executor_runs_immediately():
    seen = []
    executor = InlineExecutor()
    executor.submit(lambda: 41 + 1, on_success=seen.append)
    assert seen == [42]
    assert executor.pump() == 0


def test_inline_executor_routes_errors():
    errors = []
    InlineExecutor().submit(lambda: 1 / 0, on_error=errors.append)
    assert isinstance(errors[0], ZeroDivisionError)
    with pytest.raises(ZeroDivisionError):
        InlineExecutor().submit(lambda: 1 / 0)


def test_threaded_executor_delivers_on_pumping_thread():
    executor = ThreadedExecutor()
    seen = []
    try:
        executor.submit(lambda: threading.current_thread().name, on_success=seen.append)
        executor.submit(lambda: 1 / 0, on_error=lambda exc: seen.append(type(exc).__name__))
        assert seen == []
        delivered = executor.pump(wait=True, timeout=5)
    finally:
        executor.shutdown()
    assert delivered == 2
    assert seen == ["session-requests", "ZeroDivisionError"]
    assert executor.pending == 0
