"""Mission service."""

from __future__ import annotations

import logging

from nextlevel.models import (
	CreateMissionRequest,
	EligibleProjectDto,
	MissionDto,
	PagedResult,
	ProjectDto,
	TaskDto,
	UpdateMissionRequest,
	require_paging,
)
from nextlevel.repositories import MissionRepository, ProjectRepository

logger = logging.getLogger(__name__)


class MissionService:
	def __init__(self, missions: MissionRepository, projects: ProjectRepository) -> None:
		self._missions = missions
		self._projects = projects

	async def get_by_id(self, mission_id: int) -> MissionDto | None:
		mission = await self._missions.get_by_id(mission_id)
		return MissionDto.from_entity(mission) if mission else None

	async def list(self, skip: int, take: int, filter_text: str | None = None) -> PagedResult[MissionDto]:
		require_paging(skip, take)
		page = await self._missions.list(skip, take, filter_text)
		return page.map(MissionDto.from_entity)

	async def create(self, request: CreateMissionRequest) -> MissionDto:
		mission = await self._missions.create(request.title, request.description)
		return MissionDto.from_entity(mission)

	async def update(self, request: UpdateMissionRequest) -> MissionDto | None:
		mission = await self._missions.update(request.id, request.title, request.description)
		return MissionDto.from_entity(mission) if mission else None

	async def delete(self, mission_id: int) -> bool:
		"""Delete a mission that owns no projects.

		The store has no foreign-key cascade, so a mission with projects is
		left in place and False is returned.
		"""
		projects = await self._missions.list_projects(mission_id, 0, 1)
		if projects.total_count > 0:
			logger.info(
				"Refusing to delete mission %d: it owns %d project(s)",
				mission_id, projects.total_count,
			)
			return False
		return await self._missions.delete(mission_id)

	async def complete(self, mission_id: int) -> bool:
		return await self._missions.complete(mission_id)

	async def reset(self, mission_id: int) -> bool:
		return await self._missions.reset(mission_id)

	async def list_projects(
		self, mission_id: int, skip: int, take: int, filter_text: str | None = None,
	) -> PagedResult[ProjectDto]:
		require_paging(skip, take)
		page = await self._missions.list_projects(mission_id, skip, take, filter_text)
		return page.map(ProjectDto.from_entity)

	async def list_eligible_projects(
		self, mission_id: int, skip: int, take: int, filter_text: str | None = None,
	) -> PagedResult[EligibleProjectDto]:
		require_paging(skip, take)
		page = await self._missions.list_eligible_projects(mission_id, skip, take, filter_text)
		return page.map(EligibleProjectDto.from_entity)

	async def list_tasks(
		self, mission_id: int, skip: int, take: int, filter_text: str | None = None,
	) -> PagedResult[TaskDto]:
		require_paging(skip, take)
		page = await self._missions.list_tasks(mission_id, skip, take, filter_text)
		return page.map(TaskDto.from_entity)

	async def move_project(self, mission_id: int, project_id: int) -> bool:
		if await self._missions.get_by_id(mission_id) is None:
			return False
		if await self._projects.get_by_id(project_id) is None:
			return False
		return await self._missions.move_project(mission_id, project_id)
