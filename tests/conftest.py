"""Shared pytest fixtures and factory functions for nextlevel tests."""

from __future__ import annotations

import base64
import json
import sqlite3
from typing import Any

import httpx
import pytest

from nextlevel.account import StaticAccountContext
from nextlevel.codec import Value
from nextlevel.config import DatabaseConfig, NextLevelConfig
from nextlevel.remote import RemoteSqlClient, RetryPolicy
from nextlevel.repositories import RemoteMissionRepository, RemoteProjectRepository, RemoteTaskRepository
from nextlevel.schema import SCHEMA_STATEMENTS
from nextlevel.services import MissionService, ProjectService, TaskService

TEST_URL = "https://db.example.test"
TEST_TOKEN = "test-token"


def _decode_arg(arg: dict[str, Any]) -> Any:
	kind = arg.get("type")
	if kind == "null":
		return None
	if kind == "integer":
		return int(arg["value"])
	if kind == "float":
		return float(arg["value"])
	if kind == "blob":
		return base64.b64decode(arg["base64"])
	return arg.get("value")


def _encode_cell(cell: Any) -> dict[str, Any]:
	if cell is None:
		return {"type": "null"}
	if isinstance(cell, int):
		return {"type": "integer", "value": str(cell)}
	if isinstance(cell, float):
		return {"type": "float", "value": cell}
	if isinstance(cell, bytes):
		return {"type": "blob", "base64": base64.b64encode(cell).decode("ascii")}
	return {"type": "text", "value": cell}


class FakePipeline:
	"""In-process pipeline endpoint that runs statements on in-memory SQLite.

	Use as the handler of an ``httpx.MockTransport``. Every request body and
	its headers are recorded for assertions.
	"""

	def __init__(self, with_schema: bool = True) -> None:
		self.conn = sqlite3.connect(":memory:", isolation_level=None)
		self.requests: list[dict[str, Any]] = []
		self.headers: list[httpx.Headers] = []
		if with_schema:
			for sql in SCHEMA_STATEMENTS:
				self.conn.execute(sql)

	def __call__(self, request: httpx.Request) -> httpx.Response:
		body = json.loads(request.content)
		self.requests.append(body)
		self.headers.append(request.headers)
		results = [self._step(step) for step in body["requests"]]
		return httpx.Response(200, json={"baton": None, "base_url": None, "results": results})

	def _step(self, step: dict[str, Any]) -> dict[str, Any]:
		if step["type"] == "close":
			return {"type": "ok", "response": {"type": "close"}}
		stmt = step["stmt"]
		try:
			cur = self.conn.execute(stmt["sql"], [_decode_arg(a) for a in stmt.get("args", [])])
			rows = cur.fetchall()
		except sqlite3.Error as exc:
			return {"type": "error", "error": {"message": str(exc), "code": "SQLITE_ERROR"}}
		cols = [{"name": d[0], "decltype": None} for d in (cur.description or ())]
		is_insert = stmt["sql"].lstrip().upper().startswith("INSERT")
		return {
			"type": "ok",
			"response": {
				"type": "execute",
				"result": {
					"cols": cols,
					"rows": [[_encode_cell(c) for c in row] for row in rows],
					"affected_row_count": max(cur.rowcount, 0),
					"last_insert_rowid": str(cur.lastrowid) if is_insert else None,
				},
			},
		}

	@property
	def statements(self) -> list[str]:
		return [
			step["stmt"]["sql"]
			for body in self.requests
			for step in body["requests"]
			if step["type"] == "execute"
		]


@pytest.fixture()
def pipeline() -> FakePipeline:
	"""Fake endpoint with the schema already created."""
	return FakePipeline()


def make_client(handler: Any, **overrides: Any) -> RemoteSqlClient:
	"""Create a RemoteSqlClient wired to a MockTransport handler."""
	defaults: dict[str, Any] = {
		"url": TEST_URL,
		"auth_token": TEST_TOKEN,
		"retry": RetryPolicy(),
	}
	defaults.update(overrides)
	return RemoteSqlClient(transport=httpx.MockTransport(handler), **defaults)


@pytest.fixture()
def client(pipeline: FakePipeline) -> RemoteSqlClient:
	return make_client(pipeline)


@pytest.fixture()
def account() -> StaticAccountContext:
	return StaticAccountContext(1)


@pytest.fixture()
def mission_repo(client: RemoteSqlClient, account: StaticAccountContext) -> RemoteMissionRepository:
	return RemoteMissionRepository(client, account)


@pytest.fixture()
def project_repo(client: RemoteSqlClient, account: StaticAccountContext) -> RemoteProjectRepository:
	return RemoteProjectRepository(client, account)


@pytest.fixture()
def task_repo(client: RemoteSqlClient, account: StaticAccountContext) -> RemoteTaskRepository:
	return RemoteTaskRepository(client, account)


@pytest.fixture()
def mission_service(
	mission_repo: RemoteMissionRepository, project_repo: RemoteProjectRepository,
) -> MissionService:
	return MissionService(mission_repo, project_repo)


@pytest.fixture()
def project_service(
	project_repo: RemoteProjectRepository, mission_repo: RemoteMissionRepository,
) -> ProjectService:
	return ProjectService(project_repo, mission_repo)


@pytest.fixture()
def task_service(task_repo: RemoteTaskRepository, project_repo: RemoteProjectRepository) -> TaskService:
	return TaskService(task_repo, project_repo)


def make_config(**overrides: Any) -> NextLevelConfig:
	"""Create a NextLevelConfig with a usable database section."""
	cfg = NextLevelConfig()
	cfg.database = DatabaseConfig(url=TEST_URL, auth_token=TEST_TOKEN)
	for key, value in overrides.items():
		setattr(cfg, key, value)
	return cfg


def make_value(**overrides: Any) -> Value:
	"""Create a wire Value, defaulting to a text cell."""
	defaults: dict[str, Any] = {"type": "text", "value": "hello"}
	defaults.update(overrides)
	return Value(**defaults)
