"""TOML configuration loader for nextlevel."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_TIMEOUT = 30.0
DEFAULT_RETRY_DELAYS = (0.5, 1.0, 2.0)


@dataclass
class RetryConfig:
	"""Backoff schedule for transient pipeline failures.

	The number of delays is the number of retries after the first attempt.
	"""

	delays: tuple[float, ...] = DEFAULT_RETRY_DELAYS


@dataclass
class DatabaseConfig:
	"""Remote SQL endpoint settings."""

	url: str = ""
	auth_token: str = ""
	timeout: float = DEFAULT_TIMEOUT  # seconds per attempt
	retry: RetryConfig = field(default_factory=RetryConfig)


@dataclass
class AccountConfig:
	"""Tenant used to scope every statement."""

	id: int = 1


@dataclass
class LoggingConfig:
	level: str = "INFO"
	json: bool = False


@dataclass
class NextLevelConfig:
	"""Top-level nextlevel configuration."""

	database: DatabaseConfig = field(default_factory=DatabaseConfig)
	account: AccountConfig = field(default_factory=AccountConfig)
	logging: LoggingConfig = field(default_factory=LoggingConfig)


def _build_retry(data: dict[str, Any]) -> RetryConfig:
	rc = RetryConfig()
	if "delays" in data:
		rc.delays = tuple(float(d) for d in data["delays"])
	return rc


def _build_database(data: dict[str, Any]) -> DatabaseConfig:
	dc = DatabaseConfig()
	if "url" in data:
		dc.url = str(data["url"])
	if "auth_token" in data:
		dc.auth_token = str(data["auth_token"])
	if "timeout" in data:
		dc.timeout = float(data["timeout"])
	if "retry" in data:
		dc.retry = _build_retry(data["retry"])
	return dc


def _build_account(data: dict[str, Any]) -> AccountConfig:
	ac = AccountConfig()
	if "id" in data:
		ac.id = int(data["id"])
	return ac


def _build_logging(data: dict[str, Any]) -> LoggingConfig:
	lc = LoggingConfig()
	if "level" in data:
		lc.level = str(data["level"])
	if "json" in data:
		lc.json = bool(data["json"])
	return lc


def _apply_env_fallbacks(config: NextLevelConfig) -> None:
	db = config.database
	if not db.url:
		db.url = os.environ.get("NEXTLEVEL_DATABASE_URL", "")
	if not db.auth_token:
		db.auth_token = os.environ.get("NEXTLEVEL_AUTH_TOKEN", "")


def load_config(path: str | Path) -> NextLevelConfig:
	"""Load a nextlevel.toml config file.

	Args:
		path: Path to the TOML config file.

	Returns:
		Parsed NextLevelConfig. The database url and token fall back to the
		NEXTLEVEL_DATABASE_URL and NEXTLEVEL_AUTH_TOKEN environment variables.

	Raises:
		FileNotFoundError: If config file doesn't exist.
		tomllib.TOMLDecodeError: If config is invalid TOML.
	"""
	config_path = Path(path)
	if not config_path.exists():
		raise FileNotFoundError(f"Config file not found: {config_path}")

	with open(config_path, "rb") as f:
		data = tomllib.load(f)

	nc = NextLevelConfig()
	if "database" in data:
		nc.database = _build_database(data["database"])
	if "account" in data:
		nc.account = _build_account(data["account"])
	if "logging" in data:
		nc.logging = _build_logging(data["logging"])
	_apply_env_fallbacks(nc)
	return nc


def config_from_env() -> NextLevelConfig:
	"""Build a config purely from environment variables."""
	nc = NextLevelConfig()
	_apply_env_fallbacks(nc)
	return nc


def validate_config(config: NextLevelConfig) -> list[tuple[str, str]]:
	"""Perform semantic validation of a loaded NextLevelConfig.

	Returns a list of (level, message) tuples where level is 'error' or 'warning'.
	"""
	issues: list[tuple[str, str]] = []
	db = config.database

	if not db.url:
		issues.append(("error", "database.url is not set"))
	elif not db.url.startswith(("http://", "https://")):
		issues.append(("error", f"database.url must be an http(s) URL: {db.url}"))

	if not db.auth_token:
		issues.append(("error", "database.auth_token is not set"))

	if db.timeout <= 0:
		issues.append(("error", f"database.timeout must be positive: {db.timeout}"))
	elif db.timeout < 5:
		issues.append(("warning", f"database.timeout is very low: {db.timeout}s"))

	if not db.retry.delays:
		issues.append(("warning", "database.retry.delays is empty; transient failures will not be retried"))
	elif any(d < 0 for d in db.retry.delays):
		issues.append(("error", "database.retry.delays must not contain negative values"))

	if config.account.id <= 0:
		issues.append(("warning", f"account.id is not positive: {config.account.id}"))

	return issues
