from __future__ import annotations

import json
from pathlib import Path

import project_config
from session import SessionJournal, journal_from_config
from tools.reports import journal_report


def _write_events(path: Path, events: list[dict]) -> None:
    lines = [json.dumps(event, sort_keys=True) for event in events]
    path.write_text("\n".join(lines), encoding="utf-8")


def test_journal_appends_into_dated_directory(tmp_path):
    journal = SessionJournal(tmp_path)
    path = journal.append("session.view", date="2024-05-01")
    journal.append("session.check", date="2024-05-01", explicit=True)

    assert path.parent.parent == tmp_path
    assert len(path.parent.name) == 8
    events = [json.loads(line) for line in path.read_text("utf-8").splitlines()]
    assert [event["event"] for event in events] == ["session.view", "session.check"]
    assert "ts" in events[0]


def test_journal_rotates_when_file_is_full(tmp_path):
    journal = SessionJournal(tmp_path, max_bytes=10)
    first = journal.append("session.view")
    second = journal.append("session.view")
    assert first != second
    assert second.name == "session_01.jsonl"


def test_journal_disabled_by_default_config():
    project_config.reload()
    assert journal_from_config() is None


def test_aggregate_counts_per_date(tmp_path):
    events = [
        {"event": "session.view", "date": "2024-05-01"},
        {"event": "session.view", "date": "2024-05-01"},
        {"event": "session.check", "date": "2024-05-01", "explicit": True},
        {"event": "session.check", "date": "2024-05-02", "explicit": False},
        {"event": "session.solve", "date": "2024-05-02"},
        {"event": "session.view", "date": None},
        {"event": "other"},
    ]
    log_path = tmp_path / "log.jsonl"
    _write_events(log_path, events)

    summary = journal_report.aggregate([log_path])

    assert summary["dates"]["2024-05-01"] == {"views": 2, "checks": 1, "solves": 0}
    assert summary["dates"]["2024-05-02"] == {"views": 0, "checks": 1, "solves": 1}
    assert summary["dates"]["undated"]["views"] == 1
    assert summary["totals"] == {"views": 3, "checks": 2, "solves": 1}
    assert summary["explicit_checks"] == 1

    canonical = json.loads(summary["canonical"])
    assert canonical["totals"]["views"] == 3
