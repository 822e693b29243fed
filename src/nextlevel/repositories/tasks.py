"""Task repository backed by the remote SQL endpoint."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from nextlevel.mappers import TASK_COLUMNS, map_rows, row_to_task, select_list
from nextlevel.models import PagedResult, Task, require_paging
from nextlevel.remote import ProtocolError, Statement
from nextlevel.repositories.base import RemoteRepository, TaskRepository

logger = logging.getLogger(__name__)

_TASK_SELECT = select_list(TASK_COLUMNS)


class RemoteTaskRepository(RemoteRepository, TaskRepository):
	"""Tasks table access, always scoped to the current account."""

	async def get_by_id(self, task_id: int) -> Task | None:
		return await self._fetch_one(
			f"SELECT {_TASK_SELECT} FROM Tasks WHERE Id = ? AND AccountId = ?",
			(task_id, self.account_id),
			TASK_COLUMNS,
			row_to_task,
		)

	async def _page_tasks(
		self,
		where: str,
		params: Sequence[Any],
		skip: int,
		take: int,
		is_completed: bool | None = None,
		filter_text: str | None = None,
	) -> PagedResult[Task]:
		source = f"FROM Tasks WHERE {where}"
		args = list(params)
		if is_completed is not None:
			source += " AND IsCompleted = ?"
			args.append(is_completed)
		return await self._page(
			select=_TASK_SELECT,
			source=source,
			params=args,
			order_by="Name, Id",
			skip=skip,
			take=take,
			columns=TASK_COLUMNS,
			mapper=row_to_task,
			filter_column="Name",
			filter_text=filter_text,
		)

	async def list(
		self, skip: int, take: int, is_completed: bool | None = None, filter_text: str | None = None,
	) -> PagedResult[Task]:
		return await self._page_tasks("AccountId = ?", (self.account_id,), skip, take, is_completed, filter_text)

	async def list_by_project(
		self,
		project_id: int,
		skip: int,
		take: int,
		is_completed: bool | None = None,
		filter_text: str | None = None,
	) -> PagedResult[Task]:
		return await self._page_tasks(
			"ProjectId = ? AND AccountId = ?", (project_id, self.account_id),
			skip, take, is_completed, filter_text,
		)

	async def list_ungrouped(self, skip: int, take: int, filter_text: str | None = None) -> PagedResult[Task]:
		return await self._page_tasks(
			"ProjectId IS NULL AND ParentTaskId IS NULL AND AccountId = ?", (self.account_id,),
			skip, take, filter_text=filter_text,
		)

	async def list_subtasks(self, parent_task_id: int, skip: int, take: int) -> PagedResult[Task]:
		return await self._page_tasks(
			"ParentTaskId = ? AND AccountId = ?", (parent_task_id, self.account_id), skip, take,
		)

	async def list_by_project_ids(self, project_ids: Sequence[int]) -> Sequence[Task]:
		ids = [int(i) for i in project_ids]
		if not ids:
			return []
		placeholders = ", ".join("?" for _ in ids)
		result = await self._client.query(
			f"SELECT {_TASK_SELECT} FROM Tasks WHERE AccountId = ? AND ProjectId IN ({placeholders}) "
			"ORDER BY Name, Id",
			self.account_id, *ids,
		)
		return map_rows(result, TASK_COLUMNS, row_to_task)

	async def create(
		self,
		name: str,
		description: str = "",
		project_id: int | None = None,
		parent_task_id: int | None = None,
	) -> Task:
		account_id = self.account_id
		draft = Task(
			id=0,
			account_id=account_id,
			name=name,
			description=description,
			project_id=project_id,
			parent_task_id=parent_task_id,
		)
		result = await self._client.execute(
			"INSERT INTO Tasks (AccountId, Name, Description, IsCompleted, ProjectId, ParentTaskId) "
			"VALUES (?, ?, ?, 0, ?, ?)",
			account_id, draft.name, draft.description, project_id, parent_task_id,
		)
		if result.last_insert_rowid is None:
			raise ProtocolError("Insert into Tasks returned no last_insert_rowid")
		logger.info("Created task %d (%s)", result.last_insert_rowid, draft.name)
		return Task(
			id=result.last_insert_rowid,
			account_id=account_id,
			name=draft.name,
			description=draft.description,
			project_id=project_id,
			parent_task_id=parent_task_id,
		)

	async def update(self, task_id: int, name: str, description: str = "") -> Task | None:
		draft = Task(id=task_id, account_id=self.account_id, name=name, description=description)
		await self._client.execute(
			"UPDATE Tasks SET Name = ?, Description = ? WHERE Id = ? AND AccountId = ?",
			draft.name, draft.description, task_id, self.account_id,
		)
		return await self.get_by_id(task_id)

	async def delete(self, task_id: int) -> bool:
		account_id = self.account_id
		result = await self._client.execute_batch([
			Statement("DELETE FROM Tasks WHERE Id = ? AND AccountId = ?", (task_id, account_id)),
			Statement("DELETE FROM Tasks WHERE ParentTaskId = ? AND AccountId = ?", (task_id, account_id)),
		])
		return result.affected_row_count > 0

	async def complete(self, task_id: int) -> bool:
		return await self._affects_rows(
			"UPDATE Tasks SET IsCompleted = 1 WHERE Id = ? AND AccountId = ?",
			task_id, self.account_id,
		)

	async def reopen(self, task_id: int) -> bool:
		return await self._affects_rows(
			"UPDATE Tasks SET IsCompleted = 0 WHERE Id = ? AND AccountId = ?",
			task_id, self.account_id,
		)

	async def assign_to_project(self, task_id: int, project_id: int | None) -> bool:
		return await self._affects_rows(
			"UPDATE Tasks SET ProjectId = ? WHERE Id = ? AND AccountId = ?",
			project_id, task_id, self.account_id,
		)

	async def complete_subtasks(self, parent_task_id: int) -> int:
		result = await self._client.execute(
			"UPDATE Tasks SET IsCompleted = 1 WHERE ParentTaskId = ? AND AccountId = ? AND IsCompleted = 0",
			parent_task_id, self.account_id,
		)
		if result.affected_row_count:
			logger.info("Completed %d subtasks of task %d", result.affected_row_count, parent_task_id)
		return result.affected_row_count
