"""Request metrics and logging setup for nextlevel."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass


@dataclass
class RequestMetrics:
	"""Counters for pipeline requests issued by one RemoteSqlClient."""

	requests: int = 0
	attempts: int = 0
	retries: int = 0
	failures: int = 0
	statements: int = 0
	total_duration_s: float = 0.0

	@property
	def avg_attempt_duration_s(self) -> float:
		if self.attempts == 0:
			return 0.0
		return self.total_duration_s / self.attempts

	def to_dict(self) -> dict[str, object]:
		return {
			"requests": self.requests,
			"attempts": self.attempts,
			"retries": self.retries,
			"failures": self.failures,
			"statements": self.statements,
			"total_duration_s": round(self.total_duration_s, 3),
			"avg_attempt_duration_s": round(self.avg_attempt_duration_s, 3),
		}

	def to_json(self) -> str:
		return json.dumps(self.to_dict(), indent=2)


class Timer:
	"""Context manager for timing operations."""

	def __init__(self) -> None:
		self._start: float = 0.0
		self.elapsed: float = 0.0

	def __enter__(self) -> "Timer":
		self._start = time.monotonic()
		return self

	def __exit__(self, *args: object) -> None:
		self.elapsed = time.monotonic() - self._start


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
	"""Attach one stream handler to the ``nextlevel`` logger.

	Repeated calls only change the level. Records handled here do not
	propagate to the root logger.
	"""
	pkg_logger = logging.getLogger("nextlevel")
	pkg_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
	if pkg_logger.handlers:
		return

	handler = logging.StreamHandler()
	if json_format:
		handler.setFormatter(_JsonFormatter())
	else:
		handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s", datefmt="%H:%M:%S"))
	pkg_logger.addHandler(handler)
	pkg_logger.propagate = False


class _JsonFormatter(logging.Formatter):
	"""One JSON object per record, with the failing exception type when present."""

	def format(self, record: logging.LogRecord) -> str:
		data: dict[str, object] = {
			"ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
			"level": record.levelname,
			"logger": record.name,
			"func": record.funcName,
			"msg": record.getMessage(),
		}
		if record.exc_info and record.exc_info[1]:
			exc = record.exc_info[1]
			data["exc_type"] = type(exc).__name__
			data["exception"] = str(exc)
		return json.dumps(data)
