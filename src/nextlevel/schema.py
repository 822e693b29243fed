"""Table definitions for the remote database."""

from __future__ import annotations

import logging

from nextlevel.remote import RemoteSqlClient, Statement

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS: tuple[str, ...] = (
	"""CREATE TABLE IF NOT EXISTS Missions (
	Id INTEGER PRIMARY KEY AUTOINCREMENT,
	AccountId INTEGER NOT NULL,
	Title TEXT NOT NULL,
	Description TEXT NOT NULL DEFAULT '',
	IsCompleted INTEGER NOT NULL DEFAULT 0
)""",
	"""CREATE TABLE IF NOT EXISTS Projects (
	Id INTEGER PRIMARY KEY AUTOINCREMENT,
	AccountId INTEGER NOT NULL,
	Name TEXT NOT NULL,
	Description TEXT NOT NULL DEFAULT '',
	MissionId INTEGER NOT NULL,
	IsCompleted INTEGER NOT NULL DEFAULT 0
)""",
	"""CREATE TABLE IF NOT EXISTS Tasks (
	Id INTEGER PRIMARY KEY AUTOINCREMENT,
	AccountId INTEGER NOT NULL,
	Name TEXT NOT NULL,
	Description TEXT NOT NULL DEFAULT '',
	IsCompleted INTEGER NOT NULL DEFAULT 0,
	ProjectId INTEGER,
	ParentTaskId INTEGER
)""",
	"CREATE INDEX IF NOT EXISTS idx_missions_account ON Missions(AccountId, Title)",
	"CREATE INDEX IF NOT EXISTS idx_projects_mission ON Projects(AccountId, MissionId)",
	"CREATE INDEX IF NOT EXISTS idx_tasks_project ON Tasks(AccountId, ProjectId)",
	"CREATE INDEX IF NOT EXISTS idx_tasks_parent ON Tasks(AccountId, ParentTaskId)",
)


async def ensure_schema(client: RemoteSqlClient) -> None:
	"""Create missing tables and indexes in one pipeline request (idempotent)."""
	await client.execute_batch(Statement(sql) for sql in SCHEMA_STATEMENTS)
	logger.info("Schema ensured (%d statements)", len(SCHEMA_STATEMENTS))
