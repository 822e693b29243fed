"""Repository interfaces and the shared remote repository plumbing."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from nextlevel.account import AccountContext
from nextlevel.mappers import Row, map_rows
from nextlevel.models import EligibleProject, Mission, PagedResult, Project, Task, require_paging
from nextlevel.remote import RemoteSqlClient

T = TypeVar("T")


class MissionRepository(ABC):
	"""Storage contract for missions."""

	@abstractmethod
	async def get_by_id(self, mission_id: int) -> Mission | None:
		"""Fetch a mission, or None if absent for this account."""

	@abstractmethod
	async def list(self, skip: int, take: int, filter_text: str | None = None) -> PagedResult[Mission]:
		"""Page through missions ordered by title, optionally filtered by title."""

	@abstractmethod
	async def create(self, title: str, description: str = "") -> Mission:
		"""Insert a mission and return it with its server-assigned id."""

	@abstractmethod
	async def update(self, mission_id: int, title: str, description: str = "") -> Mission | None:
		"""Rename/describe a mission and return the re-read row."""

	@abstractmethod
	async def delete(self, mission_id: int) -> bool:
		"""Delete a mission. True when a row was removed."""

	@abstractmethod
	async def complete(self, mission_id: int) -> bool:
		"""Mark a mission completed."""

	@abstractmethod
	async def reset(self, mission_id: int) -> bool:
		"""Mark a mission not completed."""

	@abstractmethod
	async def list_projects(
		self, mission_id: int, skip: int, take: int, filter_text: str | None = None,
	) -> PagedResult[Project]:
		"""Page through the projects owned by a mission."""

	@abstractmethod
	async def list_eligible_projects(
		self, mission_id: int, skip: int, take: int, filter_text: str | None = None,
	) -> PagedResult[EligibleProject]:
		"""Page through projects owned by other missions, with their mission title."""

	@abstractmethod
	async def list_tasks(
		self, mission_id: int, skip: int, take: int, filter_text: str | None = None,
	) -> PagedResult[Task]:
		"""Page through tasks belonging to the mission's projects."""

	@abstractmethod
	async def move_project(self, mission_id: int, project_id: int) -> bool:
		"""Reassign a project to a mission."""


class ProjectRepository(ABC):
	"""Storage contract for projects."""

	@abstractmethod
	async def get_by_id(self, project_id: int) -> Project | None:
		"""Fetch a project, or None if absent for this account."""

	@abstractmethod
	async def list(self, skip: int, take: int, filter_text: str | None = None) -> PagedResult[Project]:
		"""Page through projects ordered by name."""

	@abstractmethod
	async def create(self, name: str, description: str, mission_id: int) -> Project:
		"""Insert a project under a mission."""

	@abstractmethod
	async def update(self, project_id: int, name: str, description: str = "") -> Project | None:
		"""Rename/describe a project and return the re-read row."""

	@abstractmethod
	async def delete(self, project_id: int) -> bool:
		"""Delete a project; its tasks become ungrouped."""

	@abstractmethod
	async def complete(self, project_id: int) -> bool:
		"""Mark a project completed."""

	@abstractmethod
	async def reset(self, project_id: int) -> bool:
		"""Mark a project not completed."""


class TaskRepository(ABC):
	"""Storage contract for tasks and subtasks."""

	@abstractmethod
	async def get_by_id(self, task_id: int) -> Task | None:
		"""Fetch a task, or None if absent for this account."""

	@abstractmethod
	async def list(
		self, skip: int, take: int, is_completed: bool | None = None, filter_text: str | None = None,
	) -> PagedResult[Task]:
		"""Page through all tasks."""

	@abstractmethod
	async def create(
		self,
		name: str,
		description: str = "",
		project_id: int | None = None,
		parent_task_id: int | None = None,
	) -> Task:
		"""Insert a task (or subtask when parent_task_id is given)."""

	@abstractmethod
	async def update(self, task_id: int, name: str, description: str = "") -> Task | None:
		"""Rename/describe a task and return the re-read row."""

	@abstractmethod
	async def delete(self, task_id: int) -> bool:
		"""Delete a task together with its direct subtasks."""

	@abstractmethod
	async def complete(self, task_id: int) -> bool:
		"""Mark a task completed."""

	@abstractmethod
	async def reopen(self, task_id: int) -> bool:
		"""Mark a task not completed."""

	@abstractmethod
	async def assign_to_project(self, task_id: int, project_id: int | None) -> bool:
		"""Set or clear a task's project."""

	@abstractmethod
	async def list_by_project(
		self,
		project_id: int,
		skip: int,
		take: int,
		is_completed: bool | None = None,
		filter_text: str | None = None,
	) -> PagedResult[Task]:
		"""Page through the tasks of one project."""

	@abstractmethod
	async def list_ungrouped(self, skip: int, take: int, filter_text: str | None = None) -> PagedResult[Task]:
		"""Page through top-level tasks without a project."""

	@abstractmethod
	async def list_subtasks(self, parent_task_id: int, skip: int, take: int) -> PagedResult[Task]:
		"""Page through the subtasks of a task."""

	@abstractmethod
	async def list_by_project_ids(self, project_ids: Sequence[int]) -> Sequence[Task]:
		"""All tasks belonging to any of the given projects."""

	@abstractmethod
	async def complete_subtasks(self, parent_task_id: int) -> int:
		"""Complete every open subtask of a task, returning how many changed."""


class RemoteRepository:
	"""Shared helpers for repositories backed by RemoteSqlClient."""

	def __init__(self, client: RemoteSqlClient, account: AccountContext) -> None:
		self._client = client
		self._account = account

	@property
	def account_id(self) -> int:
		return self._account.get_current_account_id()

	async def _page(
		self,
		select: str,
		source: str,
		params: Sequence[Any],
		order_by: str,
		skip: int,
		take: int,
		columns: Sequence[str],
		mapper: Callable[[Row], T],
		filter_column: str | None = None,
		filter_text: str | None = None,
	) -> PagedResult[T]:
		"""Run the count and data queries for one page.

		``source`` is the ``FROM ... WHERE ...`` part shared by both queries so
		the filter applies to the total and to the page alike.
		"""
		require_paging(skip, take)
		args = list(params)
		if filter_column and filter_text and filter_text.strip():
			source = f"{source} AND {filter_column} LIKE ?"
			args.append(f"%{filter_text}%")

		count = await self._client.query(f"SELECT COUNT(*) AS TotalCount {source}", *args)
		data = await self._client.query(
			f"SELECT {select} {source} ORDER BY {order_by} LIMIT ? OFFSET ?",
			*args, take, skip,
		)
		return PagedResult(items=map_rows(data, columns, mapper), total_count=count.scalar_int())

	async def _fetch_one(
		self, sql: str, args: Sequence[Any], columns: Sequence[str], mapper: Callable[[Row], T],
	) -> T | None:
		result = await self._client.query(sql, *args)
		items = map_rows(result, columns, mapper)
		return items[0] if items else None

	async def _affects_rows(self, sql: str, *args: Any) -> bool:
		result = await self._client.execute(sql, *args)
		return result.affected_row_count > 0
