"""Project service."""

from __future__ import annotations

from nextlevel.models import (
	CreateProjectRequest,
	NotFoundError,
	PagedResult,
	ProjectDto,
	UpdateProjectRequest,
	require_paging,
)
from nextlevel.repositories import MissionRepository, ProjectRepository


class ProjectService:
	def __init__(self, projects: ProjectRepository, missions: MissionRepository) -> None:
		self._projects = projects
		self._missions = missions

	async def get_by_id(self, project_id: int) -> ProjectDto | None:
		project = await self._projects.get_by_id(project_id)
		return ProjectDto.from_entity(project) if project else None

	async def list(self, skip: int, take: int, filter_text: str | None = None) -> PagedResult[ProjectDto]:
		require_paging(skip, take)
		page = await self._projects.list(skip, take, filter_text)
		return page.map(ProjectDto.from_entity)

	async def create(self, request: CreateProjectRequest) -> ProjectDto:
		if await self._missions.get_by_id(request.mission_id) is None:
			raise NotFoundError(f"Mission {request.mission_id} not found")
		project = await self._projects.create(request.name, request.description, request.mission_id)
		return ProjectDto.from_entity(project)

	async def update(self, project_id: int, request: UpdateProjectRequest) -> ProjectDto | None:
		project = await self._projects.update(project_id, request.name, request.description)
		return ProjectDto.from_entity(project) if project else None

	async def delete(self, project_id: int) -> bool:
		return await self._projects.delete(project_id)

	async def complete(self, project_id: int) -> bool:
		return await self._projects.complete(project_id)

	async def reset(self, project_id: int) -> bool:
		return await self._projects.reset(project_id)
