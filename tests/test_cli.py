"""Tests for the command-line interface."""

import functools
import logging
import json

import pytest

from webanalyzer import cli
from webanalyzer.database import LocalSqliteDatabase
from webanalyzer.dispatcher import AnalysisDispatcher
from webanalyzer.models import AnalysisStatus


@pytest.fixture(autouse=True)
def restore_logging():
    """main() reconfigures the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'cli.db'}"


def run_cli(db_url, *argv):
    cli.main(["--log-level", "WARNING", "--db", db_url, *argv])


def test_add_and_list(db_url, capsys):
    run_cli(db_url, "add", "https://example.com", "https://other.com", "--owner", "3")
    out = capsys.readouterr().out
    assert "Added #1: https://example.com" in out
    assert "Added #2: https://other.com" in out

    run_cli(db_url, "list", "--sort-by", "id", "--ascending")
    out = capsys.readouterr().out
    assert out.index("https://example.com") < out.index("https://other.com")
    assert "2 of 2 websites" in out


def test_list_json(db_url, capsys, tmp_path):
    run_cli(db_url, "add", "https://a.example", "https://b.example", "https://c.example")
    capsys.readouterr()
    output_file = tmp_path / "list.json"

    run_cli(db_url, "list", "--page-size", "2", "-o", "json", "-f", str(output_file))

    data = json.loads(output_file.read_text())
    assert data["total"] == 3
    assert len(data["websites"]) == 2
    assert data["websites"][0]["status"] == "queued"


def test_list_empty(db_url, capsys):
    run_cli(db_url, "list")
    assert "No websites found" in capsys.readouterr().out


def test_add_invalid_url_exits(db_url, capsys):
    with pytest.raises(SystemExit) as exc_info:
        run_cli(db_url, "add", "ftp://example.com")
    assert exc_info.value.code == 1
    assert "Error: Invalid URL" in capsys.readouterr().out


def test_analyze_and_show(db_url, capsys, monkeypatch, web):
    web.pages["example.com/"] = '<!DOCTYPE html><title>Home</title><h1>x</h1><a href="https://other.com">o</a>'
    web.statuses["other.com/"] = 404
    monkeypatch.setattr(
        cli, "AnalysisDispatcher",
        functools.partial(AnalysisDispatcher, transport=web.transport()),
    )
    run_cli(db_url, "add", "https://example.com")
    capsys.readouterr()

    run_cli(db_url, "analyze", "1", "99")
    out = capsys.readouterr().out
    assert "Skipped #99" in out
    assert "#1 https://example.com: done" in out

    run_cli(db_url, "show", "1")
    out = capsys.readouterr().out
    assert "Title: Home" in out
    assert "Headings: h1=1" in out
    assert "https://other.com [404 Not Found]" in out

    run_cli(db_url, "show", "1", "--output", "json")
    data = json.loads(capsys.readouterr().out)
    assert data["external_links"] == 1
    assert data["broken_links"][0]["status_code"] == 404


def test_analyze_reports_failure(db_url, capsys, monkeypatch, web):
    monkeypatch.setattr(
        cli, "AnalysisDispatcher",
        functools.partial(AnalysisDispatcher, transport=web.transport()),
    )
    run_cli(db_url, "add", "https://example.com/gone")
    capsys.readouterr()

    run_cli(db_url, "analyze", "1")
    assert "#1 https://example.com/gone: error (HTTP status code: 404)" in capsys.readouterr().out


def test_stop(db_url, capsys):
    run_cli(db_url, "add", "https://example.com")
    db = LocalSqliteDatabase(db_url=db_url)
    try:
        db.transition_status(1, AnalysisStatus.RUNNING)
    finally:
        db.close()
    capsys.readouterr()

    run_cli(db_url, "stop", "1")
    assert "Stopped analysis of #1" in capsys.readouterr().out

    with pytest.raises(SystemExit):
        run_cli(db_url, "stop", "1")
    assert "Error: Website is not being analyzed" in capsys.readouterr().out


def test_show_missing(db_url, capsys):
    with pytest.raises(SystemExit):
        run_cli(db_url, "show", "5")
    assert "Error: Website 5 not found" in capsys.readouterr().out


def test_delete(db_url, capsys):
    run_cli(db_url, "add", "https://a.example", "https://b.example")
    capsys.readouterr()

    run_cli(db_url, "delete", "1", "7")
    assert "Deleted 1 website(s)" in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    cli.main(["--log-level", "WARNING"])
    assert "usage:" in capsys.readouterr().out
