"""Tests for config loading."""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest
from conftest import make_config

from nextlevel.config import (
	DEFAULT_RETRY_DELAYS,
	DEFAULT_TIMEOUT,
	AccountConfig,
	DatabaseConfig,
	NextLevelConfig,
	RetryConfig,
	config_from_env,
	load_config,
	validate_config,
)


@pytest.fixture()
def full_config(tmp_path: Path) -> Path:
	toml = tmp_path / "nextlevel.toml"
	toml.write_text("""\
[database]
url = "https://example.turso.io"
auth_token = "secret"
timeout = 12.5

[database.retry]
delays = [0.25, 0.5]

[account]
id = 7

[logging]
level = "DEBUG"
json = true
""")
	return toml


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
	monkeypatch.delenv("NEXTLEVEL_DATABASE_URL", raising=False)
	monkeypatch.delenv("NEXTLEVEL_AUTH_TOKEN", raising=False)


class TestLoadConfig:
	def test_full_config(self, full_config: Path) -> None:
		cfg = load_config(full_config)
		assert cfg.database.url == "https://example.turso.io"
		assert cfg.database.auth_token == "secret"
		assert cfg.database.timeout == 12.5
		assert cfg.database.retry.delays == (0.25, 0.5)
		assert cfg.account.id == 7
		assert cfg.logging.level == "DEBUG"
		assert cfg.logging.json is True

	def test_defaults_for_missing_sections(self, tmp_path: Path) -> None:
		toml = tmp_path / "nextlevel.toml"
		toml.write_text('[database]\nurl = "https://x.test"\n')
		cfg = load_config(toml)
		assert cfg.database.timeout == DEFAULT_TIMEOUT
		assert cfg.database.retry.delays == DEFAULT_RETRY_DELAYS
		assert cfg.account.id == 1
		assert cfg.logging.level == "INFO"

	def test_missing_file(self, tmp_path: Path) -> None:
		with pytest.raises(FileNotFoundError):
			load_config(tmp_path / "nope.toml")

	def test_invalid_toml(self, tmp_path: Path) -> None:
		toml = tmp_path / "nextlevel.toml"
		toml.write_text("[database\n")
		with pytest.raises(tomllib.TOMLDecodeError):
			load_config(toml)

	def test_env_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
		monkeypatch.setenv("NEXTLEVEL_DATABASE_URL", "https://env.test")
		monkeypatch.setenv("NEXTLEVEL_AUTH_TOKEN", "env-token")
		toml = tmp_path / "nextlevel.toml"
		toml.write_text("[account]\nid = 3\n")
		cfg = load_config(toml)
		assert cfg.database.url == "https://env.test"
		assert cfg.database.auth_token == "env-token"

	def test_file_wins_over_env(self, full_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
		monkeypatch.setenv("NEXTLEVEL_DATABASE_URL", "https://env.test")
		assert load_config(full_config).database.url == "https://example.turso.io"

	def test_config_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
		monkeypatch.setenv("NEXTLEVEL_DATABASE_URL", "https://env.test")
		cfg = config_from_env()
		assert cfg.database.url == "https://env.test"
		assert cfg.database.auth_token == ""


class TestValidateConfig:
	def test_valid_config_has_no_issues(self) -> None:
		assert validate_config(make_config()) == []

	def test_missing_url_and_token(self) -> None:
		issues = validate_config(NextLevelConfig())
		messages = [msg for lvl, msg in issues if lvl == "error"]
		assert any("database.url" in m for m in messages)
		assert any("auth_token" in m for m in messages)

	def test_non_http_url(self) -> None:
		cfg = make_config(database=DatabaseConfig(url="libsql://x", auth_token="t"))
		assert ("error", "database.url must be an http(s) URL: libsql://x") in validate_config(cfg)

	def test_timeout_levels(self) -> None:
		low = make_config(database=DatabaseConfig(url="https://x", auth_token="t", timeout=1.0))
		assert [lvl for lvl, _ in validate_config(low)] == ["warning"]
		zero = make_config(database=DatabaseConfig(url="https://x", auth_token="t", timeout=0))
		assert [lvl for lvl, _ in validate_config(zero)] == ["error"]

	def test_retry_delays(self) -> None:
		empty = make_config(database=DatabaseConfig(url="https://x", auth_token="t", retry=RetryConfig(delays=())))
		assert [lvl for lvl, _ in validate_config(empty)] == ["warning"]
		negative = make_config(
			database=DatabaseConfig(url="https://x", auth_token="t", retry=RetryConfig(delays=(-1.0,))),
		)
		assert [lvl for lvl, _ in validate_config(negative)] == ["error"]

	def test_account_id_warning(self) -> None:
		issues = validate_config(make_config(account=AccountConfig(id=0)))
		assert issues == [("warning", "account.id is not positive: 0")]
