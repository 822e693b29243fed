"""Tests for the nl CLI."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from conftest import TEST_TOKEN, TEST_URL, FakePipeline, make_client

from nextlevel.cli import build_parser, main
from nextlevel.config import NextLevelConfig


@pytest.fixture(autouse=True)
def _restore_logging(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
	root = logging.getLogger()
	logger = logging.getLogger("nextlevel")
	saved = (logger.handlers[:], logger.level, logger.propagate, root.handlers[:], root.level)
	monkeypatch.setenv("NEXTLEVEL_DATABASE_URL", TEST_URL)
	monkeypatch.setenv("NEXTLEVEL_AUTH_TOKEN", TEST_TOKEN)
	yield
	logger.handlers[:] = saved[0]
	logger.setLevel(saved[1])
	logger.propagate = saved[2]
	root.handlers[:] = saved[3]
	root.setLevel(saved[4])


@pytest.fixture()
def pipeline() -> Iterator[FakePipeline]:
	"""Route every client the CLI builds to one fake endpoint."""
	fake = FakePipeline()

	def _client(config: NextLevelConfig) -> object:
		return make_client(fake, url=config.database.url, auth_token=config.database.auth_token)

	with patch("nextlevel.cli._make_client", side_effect=_client):
		yield fake


def _run(tmp_path: Path, *argv: str) -> int:
	return main(["--config", str(tmp_path / "missing.toml"), *argv])


class TestParser:
	def test_commands(self) -> None:
		parser = build_parser()
		args = parser.parse_args(["tasks", "subtask", "3", "Buy paint"])
		assert args.command == "tasks"
		assert args.action == "subtask"
		assert args.parent_id == 3
		assert args.name == "Buy paint"

	def test_paging_defaults(self) -> None:
		args = build_parser().parse_args(["missions", "list"])
		assert (args.skip, args.take, args.filter_text) == (0, 20, None)

	def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
		assert main([]) == 0
		assert "usage" in capsys.readouterr().out


class TestValidateConfig:
	def test_ok(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
		toml = tmp_path / "nextlevel.toml"
		toml.write_text('[database]\nurl = "https://x.test"\nauth_token = "t"\n')
		assert main(["--config", str(toml), "validate-config"]) == 0
		assert "Config OK" in capsys.readouterr().out

	def test_errors(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
		toml = tmp_path / "nextlevel.toml"
		toml.write_text('[database]\nurl = "ftp://x"\nauth_token = "t"\n')
		assert main(["--config", str(toml), "validate-config"]) == 1
		assert "[ERROR]" in capsys.readouterr().out

	def test_bad_toml(self, tmp_path: Path) -> None:
		toml = tmp_path / "nextlevel.toml"
		toml.write_text("[database\n")
		assert main(["--config", str(toml), "validate-config"]) == 1


class TestCommands:
	def test_init_db(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
		fake = FakePipeline(with_schema=False)
		with patch("nextlevel.cli._make_client", side_effect=lambda cfg: make_client(fake)):
			assert _run(tmp_path, "init-db") == 0
		assert "Schema ready" in capsys.readouterr().out
		assert fake.conn.execute("SELECT COUNT(*) FROM Tasks").fetchone() == (0,)

	def test_mission_project_task_flow(
		self, tmp_path: Path, pipeline: FakePipeline, capsys: pytest.CaptureFixture[str],
	) -> None:
		assert _run(tmp_path, "missions", "add", "Home Renovation") == 0
		assert _run(tmp_path, "projects", "add", "1", "Kitchen") == 0
		assert _run(tmp_path, "tasks", "add", "Paint wall", "--project", "1") == 0
		assert _run(tmp_path, "tasks", "subtask", "1", "Buy paint") == 0
		assert _run(tmp_path, "tasks", "complete", "1") == 0
		capsys.readouterr()

		assert _run(tmp_path, "tasks", "subtasks", "1") == 0
		out = capsys.readouterr().out
		assert "[x] 2: Buy paint (subtask of 1)" in out
		assert "1 shown, 1 total" in out

	def test_mission_delete_guard(
		self, tmp_path: Path, pipeline: FakePipeline, capsys: pytest.CaptureFixture[str],
	) -> None:
		_run(tmp_path, "missions", "add", "Home")
		_run(tmp_path, "projects", "add", "1", "Kitchen")
		assert _run(tmp_path, "missions", "delete", "1") == 1
		assert "still has projects" in capsys.readouterr().out

	def test_nesting_error_exit_code(
		self, tmp_path: Path, pipeline: FakePipeline, capsys: pytest.CaptureFixture[str],
	) -> None:
		_run(tmp_path, "tasks", "add", "Parent")
		_run(tmp_path, "tasks", "subtask", "1", "Child")
		assert _run(tmp_path, "tasks", "subtask", "2", "Grandchild") == 1
		assert "single-level nesting" in capsys.readouterr().out

	def test_missing_task(self, tmp_path: Path, pipeline: FakePipeline) -> None:
		assert _run(tmp_path, "tasks", "reopen", "99") == 1

	def test_list_filters(
		self, tmp_path: Path, pipeline: FakePipeline, capsys: pytest.CaptureFixture[str],
	) -> None:
		_run(tmp_path, "tasks", "add", "Alpha")
		_run(tmp_path, "tasks", "add", "Beta")
		_run(tmp_path, "tasks", "complete", "2")
		capsys.readouterr()

		assert _run(tmp_path, "tasks", "list", "--open") == 0
		out = capsys.readouterr().out
		assert "Alpha" in out
		assert "Beta" not in out
