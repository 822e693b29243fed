"""Project repository backed by the remote SQL endpoint."""

from __future__ import annotations

import logging

from nextlevel.mappers import PROJECT_COLUMNS, row_to_project, select_list
from nextlevel.models import PagedResult, Project
from nextlevel.remote import ProtocolError, Statement
from nextlevel.repositories.base import ProjectRepository, RemoteRepository

logger = logging.getLogger(__name__)

_PROJECT_SELECT = select_list(PROJECT_COLUMNS)


class RemoteProjectRepository(RemoteRepository, ProjectRepository):
	"""Projects table access, always scoped to the current account."""

	async def get_by_id(self, project_id: int) -> Project | None:
		return await self._fetch_one(
			f"SELECT {_PROJECT_SELECT} FROM Projects WHERE Id = ? AND AccountId = ?",
			(project_id, self.account_id),
			PROJECT_COLUMNS,
			row_to_project,
		)

	async def list(self, skip: int, take: int, filter_text: str | None = None) -> PagedResult[Project]:
		return await self._page(
			select=_PROJECT_SELECT,
			source="FROM Projects WHERE AccountId = ?",
			params=(self.account_id,),
			order_by="Name, Id",
			skip=skip,
			take=take,
			columns=PROJECT_COLUMNS,
			mapper=row_to_project,
			filter_column="Name",
			filter_text=filter_text,
		)

	async def create(self, name: str, description: str, mission_id: int) -> Project:
		account_id = self.account_id
		draft = Project(id=0, account_id=account_id, name=name, description=description, mission_id=mission_id)
		result = await self._client.execute(
			"INSERT INTO Projects (AccountId, Name, Description, MissionId, IsCompleted) VALUES (?, ?, ?, ?, 0)",
			account_id, draft.name, draft.description, mission_id,
		)
		if result.last_insert_rowid is None:
			raise ProtocolError("Insert into Projects returned no last_insert_rowid")
		logger.info("Created project %d (%s) in mission %d", result.last_insert_rowid, draft.name, mission_id)
		return Project(
			id=result.last_insert_rowid,
			account_id=account_id,
			name=draft.name,
			description=draft.description,
			mission_id=mission_id,
		)

	async def update(self, project_id: int, name: str, description: str = "") -> Project | None:
		draft = Project(id=project_id, account_id=self.account_id, name=name, description=description)
		await self._client.execute(
			"UPDATE Projects SET Name = ?, Description = ? WHERE Id = ? AND AccountId = ?",
			draft.name, draft.description, project_id, self.account_id,
		)
		return await self.get_by_id(project_id)

	async def delete(self, project_id: int) -> bool:
		account_id = self.account_id
		result = await self._client.execute_batch([
			Statement("DELETE FROM Projects WHERE Id = ? AND AccountId = ?", (project_id, account_id)),
			Statement(
				"UPDATE Tasks SET ProjectId = NULL WHERE ProjectId = ? AND AccountId = ?",
				(project_id, account_id),
			),
		])
		return result.affected_row_count > 0

	async def complete(self, project_id: int) -> bool:
		return await self._affects_rows(
			"UPDATE Projects SET IsCompleted = 1 WHERE Id = ? AND AccountId = ?",
			project_id, self.account_id,
		)

	async def reset(self, project_id: int) -> bool:
		return await self._affects_rows(
			"UPDATE Projects SET IsCompleted = 0 WHERE Id = ? AND AccountId = ?",
			project_id, self.account_id,
		)
