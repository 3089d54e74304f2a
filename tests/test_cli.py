"""Tests for the command-line interface."""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from carecompanion.adapters.care_api import AuthenticationError
from carecompanion.cli import main
from carecompanion.config import Config
from carecompanion.core.tasks import Task, TaskStatus


@pytest.fixture
def repo():
    repo = MagicMock()
    repo.fetch_tasks.return_value = []
    repo.fetch_today_medications.return_value = []
    repo.fetch_medications.return_value = []
    repo.materialize.return_value = Task(id="c77", title="Walk", parent_task_id="abc123")
    repo.complete_task.return_value = Task(id="c77", title="Walk", status=TaskStatus.COMPLETED)
    return repo


@pytest.fixture
def run(repo):
    runner = CliRunner()

    def _run(*args, **kwargs):
        with patch("carecompanion.cli.load_config", return_value=Config(timezone="UTC")), patch(
            "carecompanion.cli.CareApiAdapter", return_value=repo
        ):
            return runner.invoke(main, list(args), **kwargs)
    return _run


class TestSchedule:
    def test_empty(self, run):
        result = run("schedule")
        assert result.exit_code == 0
        assert "Nothing scheduled." in result.output

    def test_json(self, run, repo):
        repo.fetch_tasks.return_value = [
            Task(
                id="t1",
                title="Call pharmacy",
                reminder_date=datetime(2020, 1, 1, tzinfo=timezone.utc),
            )
        ]
        result = run("schedule", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [i["id"] for i in data["anytime"]] == ["task-t1"]

    def test_api_failure_exits(self, run, repo):
        repo.fetch_tasks.side_effect = AuthenticationError("No access token")
        result = run("schedule")
        assert result.exit_code == 1
        assert "No access token" in result.output


class TestComplete:
    def test_virtual_id_is_materialized(self, run, repo):
        result = run("complete", "abc123_virtual_2024-01-05")
        assert result.exit_code == 0, result.output
        repo.materialize.assert_called_once()
        repo.complete_task.assert_called_once_with("c77", "Completed via CLI")
        assert "Completed: Walk" in result.output


class TestEdit:
    def test_requires_changes(self, run, repo):
        result = run("edit", "t1")
        assert result.exit_code == 1
        repo.update_task.assert_not_called()

    def test_series(self, run, repo):
        repo.update_series.return_value = Task(id="abc123", title="Long walk")
        result = run("edit", "abc123_virtual_2024-01-05", "--scope", "series", "--title", "Long walk")
        assert result.exit_code == 0, result.output
        repo.update_series.assert_called_once_with("abc123", {"title": "Long walk"})


class TestDose:
    def test_unknown_dose(self, run):
        result = run("dose", "med-m1-1", "--status", "given")
        assert result.exit_code == 1
        assert "No medication dose" in result.output


class TestAuth:
    def test_saves_token(self, run, tmp_path):
        token_file = tmp_path / ".tokens.json"
        with patch("carecompanion.config.TOKEN_FILE", token_file):
            result = run("auth", "--token", "abc")
        assert result.exit_code == 0
        assert json.loads(token_file.read_text()) == {"access_token": "abc"}
