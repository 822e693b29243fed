"""Row to entity mapping.

Each query selects a fixed column list, so rows are read by ordinal position.
The column names the server reports are checked once per result set instead
of being looked up for every cell.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

from nextlevel.codec import Value
from nextlevel.models import EligibleProject, Mission, Project, Task
from nextlevel.remote import ExecuteResult, ProtocolError

T = TypeVar("T")

Row = Sequence[Value]

MISSION_COLUMNS = ("Id", "AccountId", "Title", "Description", "IsCompleted")
PROJECT_COLUMNS = ("Id", "AccountId", "Name", "Description", "MissionId", "IsCompleted")
TASK_COLUMNS = ("Id", "AccountId", "Name", "Description", "IsCompleted", "ProjectId", "ParentTaskId")
ELIGIBLE_PROJECT_COLUMNS = PROJECT_COLUMNS + ("MissionTitle",)


def select_list(columns: Sequence[str], alias: str = "") -> str:
	"""Render a column list, optionally qualified with a table alias."""
	prefix = f"{alias}." if alias else ""
	return ", ".join(f"{prefix}{c}" for c in columns)


def check_columns(result: ExecuteResult, expected: Sequence[str]) -> None:
	if not result.rows:
		return
	actual = result.columns[:len(expected)]
	if len(actual) != len(expected) or any(a.lower() != e.lower() for a, e in zip(actual, expected)):
		raise ProtocolError(f"Unexpected result columns {list(result.columns)}, expected {list(expected)}")


def row_to_mission(row: Row) -> Mission:
	return Mission(
		id=row[0].as_int(),
		account_id=row[1].as_int(),
		title=row[2].as_str(),
		description=row[3].as_str(),
		is_completed=row[4].as_bool(),
	)


def row_to_project(row: Row) -> Project:
	return Project(
		id=row[0].as_int(),
		account_id=row[1].as_int(),
		name=row[2].as_str(),
		description=row[3].as_str(),
		mission_id=row[4].as_int(),
		is_completed=row[5].as_bool(),
	)


def row_to_eligible_project(row: Row) -> EligibleProject:
	return EligibleProject(project=row_to_project(row), mission_title=row[6].as_str())


def row_to_task(row: Row) -> Task:
	return Task(
		id=row[0].as_int(),
		account_id=row[1].as_int(),
		name=row[2].as_str(),
		description=row[3].as_str(),
		is_completed=row[4].as_bool(),
		project_id=row[5].as_optional_int(),
		parent_task_id=row[6].as_optional_int(),
	)


def map_rows(result: ExecuteResult, columns: Sequence[str], mapper: Callable[[Row], T]) -> list[T]:
	check_columns(result, columns)
	return [mapper(row) for row in result.rows]
