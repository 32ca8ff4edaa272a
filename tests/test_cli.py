"""Tests for the command line interface."""

from __future__ import annotations

import re

import pytest
from typer.testing import CliRunner

from takenote import cli, config

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TAKENOTE_DATABASE_PATH", str(tmp_path / "takenote.db"))
    monkeypatch.setenv("TAKENOTE_CACHE_PATH", str(tmp_path / "cache.db"))
    monkeypatch.setenv("TAKENOTE_USER_ID", "cli-user")
    monkeypatch.delenv("TAKENOTE_PRO", raising=False)
    config.reset_settings()
    yield
    config.reset_settings()


def _invoke(*args):
    return runner.invoke(cli.app, list(args))


def test_new_session_then_log_and_list_notes():
    created = _invoke("new", "Harbour day")
    assert created.exit_code == 0, created.output
    assert "Harbour day" in created.output

    logged = _invoke("note", "Slate, take 3", "--at", "10:00:00:00")
    assert logged.exit_code == 0, logged.output
    assert "10:00:00:00  Slate, take 3" in logged.output

    listed = _invoke("notes")
    assert listed.exit_code == 0, listed.output
    assert "Slate, take 3" in listed.output


def test_free_tier_blocks_second_session():
    assert _invoke("new", "First").exit_code == 0

    second = _invoke("new", "Second")

    assert second.exit_code == 2


def test_pro_flag_lifts_session_limit(monkeypatch):
    monkeypatch.setenv("TAKENOTE_PRO", "1")
    config.reset_settings()

    assert _invoke("new", "First").exit_code == 0
    assert _invoke("new", "Second").exit_code == 0

    listed = _invoke("sessions")
    assert "First" in listed.output and "Second" in listed.output


def test_export_csv_to_file_and_gated_formats(tmp_path):
    _invoke("new", "Export day")
    _invoke("note", "Boom in shot")

    target = tmp_path / "notes.csv"
    exported = _invoke("export", "--format", "csv", "--output", str(target))
    assert exported.exit_code == 0, exported.output
    assert "Boom in shot" in target.read_text(encoding="utf-8")

    assert _invoke("export", "--format", "edl").exit_code == 2
    assert _invoke("export", "--format", "pdf").exit_code == 1


def test_set_timecode_changes_offset():
    _invoke("new", "Clocked")

    result = _invoke("set-timecode", "10:00:00:00")
    assert result.exit_code == 0, result.output
    assert "Offset" in result.output

    shown = _invoke("timecode")
    assert re.search(r"\d{2}:\d{2}:\d{2}:\d{2}", shown.output)


def test_set_timecode_rejects_bad_value():
    _invoke("new", "Clocked")

    assert _invoke("set-timecode", "25:00:00:00").exit_code != 0


def test_note_limit_reports_upgrade(monkeypatch):
    monkeypatch.setenv("TAKENOTE_FREE_NOTE_LIMIT", "1")
    config.reset_settings()
    _invoke("new", "Tiny")

    assert _invoke("note", "first").exit_code == 0
    assert _invoke("note", "second").exit_code == 2


def test_config_lists_environment_names():
    result = _invoke("config")

    assert result.exit_code == 0
    assert "TAKENOTE_DEFAULT_FPS=25.0" in result.output


def test_open_shows_summary():
    _invoke("new", "Summary day")
    _invoke("meta-set", "scene", "12A")

    result = _invoke("open")

    assert result.exit_code == 0, result.output
    assert "Summary day" in result.output
    assert "Scene: 12A" in result.output


def test_sync_pushes_offline_notes():
    _invoke("new", "Field day")
    assert _invoke("note", "typed offline", "--offline").exit_code == 0

    result = _invoke("sync")

    assert result.exit_code == 0, result.output
    assert "1 note(s) in the store" in result.output
