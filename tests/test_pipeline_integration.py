from __future__ import annotations

import json
import tempfile
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from planner import config
from planner.models import BuildStatus, PlannerBuild, reset_engine
from planner.pipeline.run import BuildRequest, recent_builds, run_build


def test_build_outputs_expected_artifacts() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        out_dir = Path(temp_dir) / "out"
        config.set_out_dir(out_dir)
        reset_engine()

        build = run_build(BuildRequest(year=2025, theme="earth", title="Focus Planner", total_weeks=6))

        assert build.status == BuildStatus.READY
        assert build.slug == "focus-planner-2025-earth"
        build_dir = out_dir / build.slug
        for name in ("a4.pdf", "letter.pdf", "manifest.json", "preview_1.png", "preview_2.png", "preview_3.png"):
            assert (build_dir / name).exists(), name
        assert not (out_dir / f"{build.slug}.tmp").exists()

        manifest = json.loads((build_dir / "manifest.json").read_text(encoding="utf-8"))
        assert manifest["page_count"] == build.page_count
        assert manifest["theme"] == "earth"
        pages = [entry["page"] for entry in manifest["destinations"]]
        assert pages == list(range(1, build.page_count + 1))
        labels = {entry["key"]: entry["label"] for entry in manifest["destinations"]}
        assert labels["index_2"] == "Index 2 of 2"
        assert manifest["outline"][0]["title"] == "2025"

        history = recent_builds()
        assert [item.slug for item in history] == [build.slug]


def test_failed_build_is_recorded() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        out_dir = Path(temp_dir) / "out"
        config.set_out_dir(out_dir)
        reset_engine()

        build = run_build(BuildRequest(year=2025, recipe="does_not_exist", previews=False))

        assert build.status == BuildStatus.FAILED
        assert build.fail_code == "PIPELINE_ERROR"
        assert "does_not_exist" in build.fail_detail
        error_log = out_dir / build.slug / "error.log"
        assert error_log.exists()
        assert "PIPELINE_ERROR" in error_log.read_text(encoding="utf-8")


def test_declaration_errors_get_their_own_code(monkeypatch) -> None:
    from planner.document.context import PLANNERS

    def broken(ctx, **params) -> None:
        ctx.page("weekly", id="week_1")
        ctx.page("weekly", id="week_1")

    monkeypatch.setitem(PLANNERS, "broken", broken)
    with tempfile.TemporaryDirectory() as temp_dir:
        config.set_out_dir(Path(temp_dir) / "out")
        reset_engine()
        build = run_build(BuildRequest(year=2025, recipe="broken", previews=False))
    assert build.status == BuildStatus.FAILED
    assert build.fail_code == "DECLARATION_ERROR"
    assert "week_1" in build.fail_detail


def test_build_timestamps_carry_timezone() -> None:
    build = PlannerBuild(slug="tz", title="TZ", year=2025)
    assert build.created_at.tzinfo is not None


def test_recording_failure_marks_build_failed(monkeypatch) -> None:
    def broken_record(build, artifacts) -> None:
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr("planner.pipeline.run.record_artifacts", broken_record)
    with tempfile.TemporaryDirectory() as temp_dir:
        out_dir = Path(temp_dir) / "out"
        config.set_out_dir(out_dir)
        reset_engine()

        build = run_build(BuildRequest(year=2025, total_weeks=2, previews=False))

        assert build.status == BuildStatus.FAILED
        assert build.fail_code == "DB_ERROR"
        assert "database is locked" in (out_dir / build.slug / "error.log").read_text(encoding="utf-8")
        history = recent_builds()
        assert [(item.slug, item.status) for item in history] == [(build.slug, BuildStatus.FAILED)]
