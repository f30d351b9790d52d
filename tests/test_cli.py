"""Tests for the command-line interface - temporary database, no internet."""

import json

import pytest
from typer.testing import CliRunner

from coachdir import __version__
from coachdir.cli import app

runner = CliRunner()


@pytest.fixture
def db_env(tmp_path, monkeypatch):
    monkeypatch.setenv("COACHDIR_DATABASE_PATH", str(tmp_path / "cli.db"))
    return tmp_path


class TestCli:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_search_empty_directory(self, db_env):
        export = db_env / "page.json"
        result = runner.invoke(app, ["search", "--export", str(export)])

        assert result.exit_code == 0
        assert "0 matching" in result.output
        assert json.loads(export.read_text(encoding="utf-8"))["count"] == 0

    def test_fetch_without_api_key_fails(self, db_env, monkeypatch):
        monkeypatch.delenv("COACHDIR_HASDATA_API_KEY", raising=False)
        monkeypatch.setenv("COACHDIR_PROVIDER", "hasdata")
        result = runner.invoke(app, ["fetch", "coach_anna"])
        assert result.exit_code == 1
        assert "COACHDIR_HASDATA_API_KEY" in result.output
