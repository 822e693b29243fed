"""Task service: cascade rules and subtask nesting."""

from __future__ import annotations

import logging

from nextlevel.models import (
	CreateSubtaskRequest,
	CreateTaskRequest,
	NotFoundError,
	PagedResult,
	SubtaskNestingError,
	TaskDto,
	UpdateTaskRequest,
	require_paging,
)
from nextlevel.repositories import ProjectRepository, TaskRepository

logger = logging.getLogger(__name__)


class TaskService:
	"""Orchestrates task and project repositories.

	Completing a task completes its subtasks. Reopening a subtask reopens its
	parent when the parent is completed. Siblings are never touched.
	"""

	def __init__(self, tasks: TaskRepository, projects: ProjectRepository) -> None:
		self._tasks = tasks
		self._projects = projects

	async def get_by_id(self, task_id: int) -> TaskDto | None:
		task = await self._tasks.get_by_id(task_id)
		return TaskDto.from_entity(task) if task else None

	async def list(
		self, skip: int, take: int, is_completed: bool | None = None, filter_text: str | None = None,
	) -> PagedResult[TaskDto]:
		require_paging(skip, take)
		page = await self._tasks.list(skip, take, is_completed, filter_text)
		return page.map(TaskDto.from_entity)

	async def list_by_project(
		self,
		project_id: int,
		skip: int,
		take: int,
		is_completed: bool | None = None,
		filter_text: str | None = None,
	) -> PagedResult[TaskDto]:
		require_paging(skip, take)
		page = await self._tasks.list_by_project(project_id, skip, take, is_completed, filter_text)
		return page.map(TaskDto.from_entity)

	async def list_ungrouped(self, skip: int, take: int, filter_text: str | None = None) -> PagedResult[TaskDto]:
		require_paging(skip, take)
		page = await self._tasks.list_ungrouped(skip, take, filter_text)
		return page.map(TaskDto.from_entity)

	async def list_subtasks(self, parent_task_id: int, skip: int, take: int) -> PagedResult[TaskDto]:
		require_paging(skip, take)
		page = await self._tasks.list_subtasks(parent_task_id, skip, take)
		return page.map(TaskDto.from_entity)

	async def create(self, request: CreateTaskRequest) -> int:
		if request.project_id is not None and await self._projects.get_by_id(request.project_id) is None:
			raise NotFoundError(f"Project {request.project_id} not found")
		task = await self._tasks.create(request.name, request.description, project_id=request.project_id)
		return task.id

	async def create_subtask(self, request: CreateSubtaskRequest) -> int:
		"""Create a subtask under a top-level task.

		Subtasks belong to their parent, not to a project, so project_id stays
		null.

		Raises:
			NotFoundError: If the parent task does not exist.
			SubtaskNestingError: If the parent is itself a subtask.
		"""
		parent = await self._tasks.get_by_id(request.parent_task_id)
		if parent is None:
			raise NotFoundError("Parent task not found")
		if parent.parent_task_id is not None:
			raise SubtaskNestingError(
				"Cannot create subtask under another subtask. Only single-level nesting is supported."
			)
		subtask = await self._tasks.create(request.name, request.description, parent_task_id=parent.id)
		return subtask.id

	async def update(self, task_id: int, request: UpdateTaskRequest) -> bool:
		updated = await self._tasks.update(task_id, request.name, request.description)
		return updated is not None

	async def delete(self, task_id: int) -> bool:
		return await self._tasks.delete(task_id)

	async def complete(self, task_id: int) -> bool:
		if not await self._tasks.complete(task_id):
			return False
		changed = await self._tasks.complete_subtasks(task_id)
		logger.debug("Task %d completed (%d subtasks cascaded)", task_id, changed)
		return True

	async def reopen(self, task_id: int) -> bool:
		task = await self._tasks.get_by_id(task_id)
		if task is None:
			return False

		reopened = await self._tasks.reopen(task_id)

		if task.parent_task_id is not None:
			parent = await self._tasks.get_by_id(task.parent_task_id)
			if parent is not None and parent.is_completed:
				await self._tasks.reopen(parent.id)
				logger.debug("Reopened parent task %d of subtask %d", parent.id, task_id)

		return reopened

	async def reset(self, task_id: int) -> bool:
		return await self.reopen(task_id)

	async def assign(self, task_id: int, project_id: int) -> bool:
		if await self._projects.get_by_id(project_id) is None:
			return False
		return await self._tasks.assign_to_project(task_id, project_id)

	async def move(self, task_id: int, project_id: int | None) -> bool:
		"""Move a task to another project, or ungroup it with None."""
		if project_id is None:
			return await self._tasks.assign_to_project(task_id, None)
		return await self.assign(task_id, project_id)
