"""Client for a remote, stateless SQL pipeline endpoint.

Statements are shipped as a single ``POST {url}/v2/pipeline`` request holding
one ``execute`` step per statement followed by a ``close`` step. Transport
failures and attempt timeouts are retried with a fixed backoff schedule;
errors reported by the server are never retried.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from nextlevel.codec import Value, encode_args
from nextlevel.config import DEFAULT_RETRY_DELAYS, DEFAULT_TIMEOUT, DatabaseConfig
from nextlevel.metrics import RequestMetrics, Timer

logger = logging.getLogger(__name__)

PIPELINE_PATH = "/v2/pipeline"
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

T = TypeVar("T")


class RemoteError(Exception):
	"""Error reported by the remote endpoint, or a request it refused."""

	def __init__(self, message: str) -> None:
		super().__init__(message)
		self.message = message


class ProtocolError(RemoteError):
	"""The endpoint answered with a body that does not follow the protocol."""


class TransportFailure(RemoteError):
	"""Transport kept failing after every retry was used up."""

	def __init__(self, message: str, attempts: int) -> None:
		super().__init__(message)
		self.attempts = attempts


# -- Wire models --


class Column(BaseModel, extra="ignore"):
	name: str | None = None
	decltype: str | None = None


class QueryResult(BaseModel, extra="ignore"):
	cols: list[Column] = []
	rows: list[list[Value]] = []
	affected_row_count: int = 0
	last_insert_rowid: str | None = None


class ExecuteResponse(BaseModel, extra="ignore"):
	type: str = ""
	result: QueryResult | None = None


class ErrorBody(BaseModel, extra="ignore"):
	message: str = ""
	code: str | None = None


class PipelineResult(BaseModel, extra="ignore"):
	type: str
	response: ExecuteResponse | None = None
	error: ErrorBody | None = None


class PipelineResponse(BaseModel, extra="ignore"):
	baton: str | None = None
	base_url: str | None = None
	results: list[PipelineResult] = []


@dataclass(frozen=True)
class Statement:
	"""One SQL statement with positional ``?`` arguments."""

	sql: str
	args: tuple[Any, ...] = ()

	def to_request(self) -> dict[str, Any]:
		return {
			"type": "execute",
			"stmt": {"sql": self.sql, "args": encode_args(self.args)},
		}


@dataclass(frozen=True)
class ExecuteResult:
	"""Decoded result of the first execute step of a pipeline."""

	columns: tuple[str, ...] = ()
	rows: list[list[Value]] = field(default_factory=list)
	affected_row_count: int = 0
	last_insert_rowid: int | None = None

	def scalar_int(self) -> int:
		"""First column of the first row as an int (0 for an empty result)."""
		if not self.rows or not self.rows[0]:
			return 0
		return self.rows[0][0].as_int()

	@classmethod
	def from_wire(cls, result: QueryResult | None) -> ExecuteResult:
		if result is None:
			return cls()
		rowid: int | None = None
		if result.last_insert_rowid is not None:
			try:
				rowid = int(result.last_insert_rowid)
			except ValueError:
				logger.warning("Ignoring unparsable last_insert_rowid %r", result.last_insert_rowid)
		return cls(
			columns=tuple(c.name or "" for c in result.cols),
			rows=result.rows,
			affected_row_count=result.affected_row_count,
			last_insert_rowid=rowid,
		)


def build_pipeline_body(statements: Iterable[Statement]) -> dict[str, Any]:
	"""Build the pipeline request body, closing the stream at the end."""
	requests = [s.to_request() for s in statements]
	requests.append({"type": "close"})
	return {"requests": requests}


def parse_pipeline_response(payload: Any) -> ExecuteResult:
	"""Interpret a pipeline response, returning the first execute result.

	Raises:
		ProtocolError: If the body is malformed or has no results.
		RemoteError: If the first result is an error.
	"""
	try:
		response = PipelineResponse.model_validate(payload)
	except ValidationError as exc:
		raise ProtocolError(f"Malformed pipeline response: {exc}") from exc

	if not response.results:
		raise ProtocolError("No results returned")

	first = response.results[0]
	if first.type == "error":
		message = first.error.message if first.error and first.error.message else "Unknown error"
		raise RemoteError(message)

	return ExecuteResult.from_wire(first.response.result if first.response else None)


def is_transient(exc: BaseException) -> bool:
	"""Whether a failed attempt is worth repeating."""
	if isinstance(exc, (httpx.TransportError, asyncio.TimeoutError)):
		return True
	if isinstance(exc, httpx.HTTPStatusError):
		return exc.response.status_code in RETRYABLE_STATUS_CODES
	return False


@dataclass(frozen=True)
class RetryPolicy:
	"""Fixed-schedule retry wrapper around a single-attempt coroutine.

	``delays[i]`` is the wait before retry ``i + 1``; the number of delays is
	the number of retries.
	"""

	delays: tuple[float, ...] = DEFAULT_RETRY_DELAYS

	@property
	def max_attempts(self) -> int:
		return len(self.delays) + 1

	async def run(
		self,
		attempt: Callable[[], Awaitable[T]],
		is_retryable: Callable[[BaseException], bool] = is_transient,
		on_retry: Callable[[int, BaseException, float], None] | None = None,
	) -> T:
		last_exc: BaseException | None = None
		for index in range(self.max_attempts):
			try:
				return await attempt()
			except Exception as exc:
				if not is_retryable(exc):
					raise
				last_exc = exc
				if index < len(self.delays):
					delay = self.delays[index]
					if on_retry:
						on_retry(index + 1, exc, delay)
					await asyncio.sleep(delay)

		raise TransportFailure(
			f"Failed to execute pipeline request after {self.max_attempts} attempts",
			attempts=self.max_attempts,
		) from last_exc


class RemoteSqlClient:
	"""Executes statements against the remote pipeline endpoint.

	The client holds no connection between calls: every attempt opens its
	own ``httpx.AsyncClient`` and closes it when the exchange is over.
	"""

	def __init__(
		self,
		url: str,
		auth_token: str,
		timeout: float = DEFAULT_TIMEOUT,
		retry: RetryPolicy | None = None,
		transport: httpx.AsyncBaseTransport | None = None,
	) -> None:
		self._url = url.rstrip("/")
		self._auth_token = auth_token
		self._timeout = timeout
		self._retry = retry or RetryPolicy()
		self._transport = transport
		self.metrics = RequestMetrics()

	@classmethod
	def from_config(
		cls,
		config: DatabaseConfig,
		transport: httpx.AsyncBaseTransport | None = None,
	) -> RemoteSqlClient:
		return cls(
			config.url,
			config.auth_token,
			timeout=config.timeout,
			retry=RetryPolicy(delays=tuple(config.retry.delays)),
			transport=transport,
		)

	@property
	def url(self) -> str:
		return self._url

	async def execute(self, sql: str, *args: Any) -> ExecuteResult:
		return await self.execute_batch([Statement(sql, args)])

	async def query(self, sql: str, *args: Any) -> ExecuteResult:
		return await self.execute(sql, *args)

	async def execute_batch(self, statements: Iterable[Statement]) -> ExecuteResult:
		"""Send all statements in one pipeline request.

		Returns the result of the first statement; later results are only
		checked by the server.
		"""
		stmts = list(statements)
		if not stmts:
			raise ValueError("execute_batch requires at least one statement")

		body = build_pipeline_body(stmts)
		self.metrics.requests += 1
		self.metrics.statements += len(stmts)
		for s in stmts:
			logger.debug("SQL: %s args=%r", s.sql, s.args)

		try:
			payload = await self._retry.run(
				lambda: self._send_once(body),
				on_retry=self._log_retry,
			)
		except TransportFailure as exc:
			self.metrics.failures += 1
			logger.error("%s: %s", exc.message, exc.__cause__)
			raise
		except RemoteError:
			self.metrics.failures += 1
			raise

		try:
			return parse_pipeline_response(payload)
		except RemoteError as exc:
			self.metrics.failures += 1
			logger.warning("Pipeline statement failed: %s", exc.message)
			raise

	async def _send_once(self, body: dict[str, Any]) -> Any:
		"""One HTTP exchange bounded by the attempt deadline."""
		self.metrics.attempts += 1
		timer = Timer()
		try:
			with timer:
				return await asyncio.wait_for(self._post(body), timeout=self._timeout)
		finally:
			self.metrics.total_duration_s += timer.elapsed

	async def _post(self, body: dict[str, Any]) -> Any:
		headers = {"Authorization": f"Bearer {self._auth_token}"}
		async with httpx.AsyncClient(
			base_url=self._url,
			headers=headers,
			timeout=self._timeout,
			transport=self._transport,
		) as client:
			response = await client.post(PIPELINE_PATH, json=body)
			if response.status_code in RETRYABLE_STATUS_CODES:
				response.raise_for_status()
			if response.is_error:
				raise RemoteError(f"HTTP {response.status_code}: {response.text[:200]}")
			try:
				return response.json()
			except json.JSONDecodeError as exc:
				raise ProtocolError(f"Response is not JSON: {exc}") from exc

	def _log_retry(self, retry_number: int, exc: BaseException, delay: float) -> None:
		self.metrics.retries += 1
		reason = "timed out" if isinstance(exc, asyncio.TimeoutError) else f"failed: {exc}"
		logger.warning(
			"Pipeline request %s (attempt %d/%d). Retrying in %.0fms...",
			reason, retry_number, self._retry.max_attempts, delay * 1000,
		)
