"""Command line helpers for playing, replaying and administering puzzles."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Iterable, List

from board.state import format_grid
from contracts.errors import AdminInputError, AdminServiceError, PuzzleLoadError
from ports import AdminClient, StaticPuzzleSource
from session import (
    CommandDispatcher,
    RecordingPresenter,
    SessionController,
    command_from_payload,
    create_controller,
    journal_from_config,
)
from session.controller import build_source
from storage import ProgressStore
from tools.reports import journal_report


def _controller(args: argparse.Namespace, presenter: RecordingPresenter) -> SessionController:
    source = None
    if args.file:
        source = StaticPuzzleSource.from_file(args.file)
    elif args.source:
        source = build_source(args.source, preview_date=args.date)
    store = ProgressStore(args.storage) if args.storage else None
    return create_controller(
        args.profile,
        presenter=presenter,
        source=source,
        progress_store=store,
        journal=journal_from_config(),
        threaded=args.threaded,
    )


def _summary(controller: SessionController, presenter: RecordingPresenter) -> dict:
    session = controller.session
    summary: dict = {
        "status": presenter.last_status,
        "dialogs": [list(item) for item in presenter.dialogs],
        "variants": presenter.variant_pills,
    }
    if session is not None:
        summary.update(
            {
                "date_utc": session.date,
                "grid": session.state.to_grid_string(),
                "solved": session.solved,
                "can_undo": session.store.history.can_undo,
                "can_redo": session.store.history.can_redo,
            }
        )
    return summary


def cmd_show(args: argparse.Namespace) -> int:
    presenter = RecordingPresenter()
    try:
        controller = _controller(args, presenter)
    except PuzzleLoadError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    try:
        if not controller.load():
            print(presenter.placeholder or presenter.last_status, file=sys.stderr)
            return 1
        controller.pump(wait=True)
        session = controller.session
        assert session is not None
        print(format_grid(session.state))
        print()
        print(json.dumps(_summary(controller, presenter), indent=2, sort_keys=True))
    finally:
        controller.close()
    return 0


def _iter_commands(path: Path) -> Iterable[Any]:
    for number, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        value = line.strip()
        if not value or value.startswith("#"):
            continue
        try:
            yield command_from_payload(json.loads(value))
        except ValueError as exc:
            raise SystemExit(f"{path}:{number}: {exc}")


def cmd_replay(args: argparse.Namespace) -> int:
    presenter = RecordingPresenter()
    try:
        controller = _controller(args, presenter)
    except PuzzleLoadError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    try:
        if not controller.load():
            print(presenter.placeholder or presenter.last_status, file=sys.stderr)
            return 1
        dispatcher = CommandDispatcher(controller, mac=args.mac)
        commands = list(_iter_commands(Path(args.script)))
        changed = 0
        for command in commands:
            if dispatcher.dispatch(command):
                changed += 1
            controller.pump()
        controller.pump(wait=True)
        summary = _summary(controller, presenter)
    finally:
        controller.close()
    summary["commands"] = len(commands)
    summary["changed"] = changed
    print(json.dumps(summary, indent=2, sort_keys=True))
    return 0


def _admin_call(func, *args: Any, **kwargs: Any) -> Any:
    try:
        return func(*args, **kwargs)
    except AdminInputError as exc:
        for issue in exc.issues:
            print(f"{issue.path}: {issue.msg}", file=sys.stderr)
        raise SystemExit(2)
    except AdminServiceError as exc:
        print(str(exc), file=sys.stderr)
        raise SystemExit(1)


def cmd_stats(args: argparse.Namespace) -> int:
    stats = _admin_call(AdminClient().stats, args.date)
    print(json.dumps(asdict(stats), indent=2, sort_keys=True))
    return 0


def cmd_generate_custom(args: argparse.Namespace) -> int:
    raw = args.constraints
    path = Path(raw)
    if not raw.lstrip().startswith(("[", "{")) and path.is_file():
        raw = path.read_text(encoding="utf-8")
    generated = _admin_call(
        AdminClient().generate_custom,
        raw,
        clue_target=args.clue_target,
        seed=args.seed,
    )
    payload = asdict(generated)
    payload["variants"] = list(generated.variants)
    if args.svg_out:
        Path(args.svg_out).write_text(generated.svg, encoding="utf-8")
        payload.pop("svg")
    print(json.dumps(payload, indent=2, sort_keys=True))
    return 0


def cmd_report_journal(args: argparse.Namespace) -> int:
    base_dir = Path(args.path)
    files = sorted(base_dir.glob("**/*.jsonl"))
    if not files:
        raise SystemExit(f"No JSONL logs found under {base_dir}")
    summary = journal_report.aggregate(files)
    print(json.dumps(summary, indent=2, sort_keys=True))
    return 0


def _add_session_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--profile", default="player", choices=("player", "admin"))
    parser.add_argument("--file", default=None, help="Load a local .svg or JSON document")
    parser.add_argument(
        "--source",
        default=None,
        choices=("today", "random", "preview"),
        help="Override the configured puzzle source",
    )
    parser.add_argument("--date", default=None, help="Puzzle date for --source preview")
    parser.add_argument("--storage", default=None, help="Directory for saved progress")
    parser.add_argument(
        "--threaded",
        action="store_true",
        help="Run service requests on a worker thread",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Daily sudoku session helpers")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log diagnostics to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Load a puzzle and print its grid")
    _add_session_options(show)
    show.set_defaults(func=cmd_show)

    replay = sub.add_parser("replay", help="Apply a JSONL command script to a puzzle")
    replay.add_argument("script")
    _add_session_options(replay)
    replay.add_argument("--mac", action="store_true", help="Treat Meta as the shortcut modifier")
    replay.set_defaults(func=cmd_replay)

    stats = sub.add_parser("stats", help="Show view/check/solve counts for a date")
    stats.add_argument("date")
    stats.set_defaults(func=cmd_stats)

    custom = sub.add_parser("generate-custom", help="Generate a puzzle from constraint JSON")
    custom.add_argument("constraints", help="Constraint JSON text or a path to a JSON file")
    custom.add_argument("--clue-target", default=None)
    custom.add_argument("--seed", default=None)
    custom.add_argument("--svg-out", default=None, help="Write the SVG here instead of stdout")
    custom.set_defaults(func=cmd_generate_custom)

    report = sub.add_parser("report-journal", help="Aggregate session journal statistics")
    report.add_argument("path", help="Directory containing JSONL logs")
    report.set_defaults(func=cmd_report_journal)

    return parser


def main(argv: List[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
