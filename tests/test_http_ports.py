from __future__ import annotations

import json

import pytest
import requests

from contracts.errors import AdminInputError, AdminServiceError, ProgressServiceError, PuzzleLoadError
from ports import (
    AdminClient,
    AdminPreviewSource,
    CheckStatus,
    HttpProgressService,
    HttpPuzzleSource,
    ServiceConfig,
    StaticPuzzleSource,
)

from conftest import SOLUTION, FakeHttp, FakeResponse, build_svg

CONFIG = ServiceConfig(base_url="http://puzzles.test/api/", timeout_s=3.0)


def _document(**extra):
    payload = {"svg": build_svg({0: "5"}), "date_utc": "2024-05-01", "variants": ["killer"]}
    payload.update(extra)
    return payload


def test_today_source_fetches_and_normalises_document():
    http = FakeHttp(FakeResponse(200, _document(solution=[int(ch) for ch in SOLUTION])))
    document = HttpPuzzleSource("today", session=http, config=CONFIG).fetch()

    assert http.calls[0]["method"] == "GET"
    assert http.calls[0]["url"] == "http://puzzles.test/api/puzzle/today"
    assert http.calls[0]["timeout"] == 3.0
    assert document.date_utc == "2024-05-01"
    assert document.solution == SOLUTION
    assert document.variants == ("killer",)


def test_random_source_uses_random_endpoint():
    http = FakeHttp(FakeResponse(200, _document(date_utc=None, solution=[])))
    document = HttpPuzzleSource("random", session=http, config=CONFIG).fetch()
    assert http.calls[0]["url"].endswith("/puzzle/random")
    assert document.solution is None
    assert not document.has_solution


def test_unknown_source_kind_is_rejected():
    with pytest.raises(ValueError):
        HttpPuzzleSource("yesterday", session=FakeHttp(), config=CONFIG)


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(404, raw="no puzzle for today"),
        FakeResponse(200, raw="<html>"),
        FakeResponse(200, {"solution": None}),
        FakeResponse(200, [1, 2]),
        requests.ConnectionError("refused"),
    ],
)
def test_source_failures_raise_load_error(response):
    http = FakeHttp(response)
    with pytest.raises(PuzzleLoadError):
        HttpPuzzleSource(session=http, config=CONFIG).fetch()


def test_load_error_carries_status_code():
    http = FakeHttp(FakeResponse(404, raw="missing"))
    with pytest.raises(PuzzleLoadError) as info:
        HttpPuzzleSource(session=http, config=CONFIG).fetch()
    assert info.value.status_code == 404
    assert str(info.value) == "Server error: 404 missing"


def test_static_source_reads_svg_and_json_files(tmp_path):
    svg_path = tmp_path / "board.svg"
    svg_path.write_text(build_svg(), encoding="utf-8")
    assert StaticPuzzleSource.from_file(svg_path).fetch().date_utc is None

    json_path = tmp_path / "board.json"
    json_path.write_text(json.dumps(_document()), encoding="utf-8")
    assert StaticPuzzleSource.from_file(json_path).fetch().date_utc == "2024-05-01"

    with pytest.raises(PuzzleLoadError):
        StaticPuzzleSource.from_file(tmp_path / "missing.json")


@pytest.mark.parametrize("status", ["complete", "partial", "incorrect"])
def test_check_posts_grid_and_maps_status(status):
    http = FakeHttp(FakeResponse(200, {"status": status}))
    service = HttpProgressService(session=http, config=CONFIG)
    assert service.check(SOLUTION) is CheckStatus(status)
    assert http.calls[0]["json"] == {"grid": SOLUTION}
    assert http.calls[0]["url"].endswith("/puzzle/check")


def test_check_maps_unknown_or_missing_status_to_unavailable():
    http = FakeHttp(FakeResponse(200, {"status": "maybe"}), FakeResponse(200, {}))
    service = HttpProgressService(session=http, config=CONFIG)
    assert service.check("." * 81) is CheckStatus.UNAVAILABLE
    assert service.check("." * 81) is CheckStatus.UNAVAILABLE


def test_check_failure_raises_service_error():
    http = FakeHttp(FakeResponse(500, raw="boom"))
    with pytest.raises(ProgressServiceError):
        HttpProgressService(session=http, config=CONFIG).check("." * 81)


def test_check_rejects_malformed_grid_locally():
    http = FakeHttp()
    with pytest.raises(ValueError):
        HttpProgressService(session=http, config=CONFIG).check("123")
    assert http.calls == []


def test_track_posts_view_event_and_accepts_no_content():
    http = FakeHttp(FakeResponse(204))
    HttpProgressService(session=http, config=CONFIG).track("view")
    assert http.calls[0]["json"] == {"event": "view"}
    with pytest.raises(ValueError):
        HttpProgressService(session=http, config=CONFIG).track("solve")


def _admin_record(**extra):
    record = {
        "date_utc": "2024-05-01",
        "status": "draft",
        "name": "May Day",
        "author": "ed",
        "puzzle_json": json.dumps({"puzzle": "." * 81, "solution": [int(ch) for ch in SOLUTION]}),
        "svg": build_svg(),
        "variants": ["thermo"],
        "difficulty": 3,
        "created_at_utc": "2024-04-01T00:00:00Z",
        "updated_at_utc": "2024-04-01T00:00:00Z",
        "published_at_utc": None,
    }
    record.update(extra)
    return record


def test_generate_custom_validates_before_any_request():
    http = FakeHttp()
    client = AdminClient(session=http, config=CONFIG)
    with pytest.raises(AdminInputError) as info:
        client.generate_custom("[{not json")
    assert info.value.issues[0].path == "constraints"
    with pytest.raises(AdminInputError):
        client.generate_custom([], clue_target="lots")
    assert http.calls == []


def test_generate_custom_posts_normalised_body():
    generated = {"puzzle_json": "{}", "svg": "<svg/>", "variants": ["king"]}
    http = FakeHttp(FakeResponse(200, generated))
    client = AdminClient(session=http, config=CONFIG)
    result = client.generate_custom('{"constraints": [{"type": "king"}]}', clue_target=" 28 ", seed="7")
    call = http.calls[0]
    assert call["url"] == "http://puzzles.test/api/admin/puzzles/generate/custom"
    assert call["json"] == {"constraints": [{"type": "king"}], "clue_target": 28, "seed": 7}
    assert result.variants == ("king",)


def test_create_derives_variants_from_constraints():
    http = FakeHttp(FakeResponse(204))
    puzzle_json = json.dumps(
        {
            "puzzle": "." * 81,
            "constraints": [
                {"type": "knight"},
                {"type": "kropki_white", "a": [0, 0], "b": [0, 1]},
                {"type": "knight"},
            ],
        }
    )
    AdminClient(session=http, config=CONFIG).create("2024-05-01", puzzle_json, name="Knights")
    body = http.calls[0]["json"]
    assert body["variants"] == ["knight", "kropki_white"]
    assert body["status"] == "draft"
    assert body["overwrite"] is True
    assert body["name"] == "Knights"
    assert "author" not in body


def test_create_rejects_bad_date_and_status_locally():
    http = FakeHttp()
    client = AdminClient(session=http, config=CONFIG)
    with pytest.raises(AdminInputError):
        client.create("2024-02-30", json.dumps({"puzzle": "." * 81}))
    with pytest.raises(AdminInputError):
        client.create("2024-02-01", json.dumps({"puzzle": "." * 81}), status="live")
    assert http.calls == []


def test_list_get_publish_archive_and_stats_paths():
    http = FakeHttp(
        FakeResponse(200, [_admin_record()]),
        FakeResponse(200, _admin_record()),
        FakeResponse(204),
        FakeResponse(204),
        FakeResponse(200, {"date_utc": "2024-05-01", "views": 10, "checks": 4, "solves": 2}),
    )
    client = AdminClient(session=http, config=CONFIG)
    assert client.list("draft")[0]["name"] == "May Day"
    assert client.get("2024-05-01")["status"] == "draft"
    client.publish("2024-05-01")
    client.archive("2024-05-01")
    stats = client.stats("2024-05-01")

    urls = [call["url"].replace("http://puzzles.test/api/", "") for call in http.calls]
    assert urls == [
        "admin/puzzles",
        "admin/puzzles/2024-05-01",
        "admin/puzzles/2024-05-01/publish",
        "admin/puzzles/2024-05-01/archive",
        "admin/stats/2024-05-01",
    ]
    assert http.calls[0]["params"] == {"status": "draft"}
    assert (stats.views, stats.checks, stats.solves) == (10, 4, 2)


def test_admin_response_shape_is_validated():
    http = FakeHttp(FakeResponse(200, {"date_utc": "2024-05-01", "views": -1}))
    with pytest.raises(AdminServiceError):
        AdminClient(session=http, config=CONFIG).stats("2024-05-01")


def test_preview_source_builds_document_from_stored_puzzle():
    http = FakeHttp(FakeResponse(200, _admin_record()))
    source = AdminPreviewSource(AdminClient(session=http, config=CONFIG), "2024-05-01")
    document = source.fetch()
    assert document.solution == SOLUTION
    assert document.title == "May Day"
    assert document.variants == ("thermo",)


def test_preview_source_maps_admin_errors_to_load_errors():
    http = FakeHttp(FakeResponse(404, raw="not found"))
    source = AdminPreviewSource(AdminClient(session=http, config=CONFIG), "2024-05-01")
    with pytest.raises(PuzzleLoadError) as info:
        source.fetch()
    assert info.value.status_code == 404


def test_preview_without_date_generates_undated_document():
    generated = {"puzzle_json": json.dumps({"puzzle": "." * 81}), "svg": build_svg(), "variants": []}
    http = FakeHttp(FakeResponse(200, generated))
    document = AdminPreviewSource(AdminClient(session=http, config=CONFIG)).fetch()
    assert document.date_utc is None
    assert document.solution is None
    assert http.calls[0]["url"].endswith("/admin/puzzles/generate")
