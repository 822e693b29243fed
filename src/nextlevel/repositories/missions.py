"""Mission repository backed by the remote SQL endpoint."""

from __future__ import annotations

import logging

from nextlevel.mappers import (
	ELIGIBLE_PROJECT_COLUMNS,
	MISSION_COLUMNS,
	PROJECT_COLUMNS,
	TASK_COLUMNS,
	row_to_eligible_project,
	row_to_mission,
	row_to_project,
	row_to_task,
	select_list,
)
from nextlevel.models import EligibleProject, Mission, PagedResult, Project, Task
from nextlevel.remote import ProtocolError
from nextlevel.repositories.base import MissionRepository, RemoteRepository

logger = logging.getLogger(__name__)

_MISSION_SELECT = select_list(MISSION_COLUMNS)
_PROJECT_SELECT = select_list(PROJECT_COLUMNS)


class RemoteMissionRepository(RemoteRepository, MissionRepository):
	"""Missions table access, always scoped to the current account."""

	async def get_by_id(self, mission_id: int) -> Mission | None:
		return await self._fetch_one(
			f"SELECT {_MISSION_SELECT} FROM Missions WHERE Id = ? AND AccountId = ?",
			(mission_id, self.account_id),
			MISSION_COLUMNS,
			row_to_mission,
		)

	async def list(self, skip: int, take: int, filter_text: str | None = None) -> PagedResult[Mission]:
		return await self._page(
			select=_MISSION_SELECT,
			source="FROM Missions WHERE AccountId = ?",
			params=(self.account_id,),
			order_by="Title, Id",
			skip=skip,
			take=take,
			columns=MISSION_COLUMNS,
			mapper=row_to_mission,
			filter_column="Title",
			filter_text=filter_text,
		)

	async def create(self, title: str, description: str = "") -> Mission:
		account_id = self.account_id
		# validates and trims before anything is sent
		draft = Mission(id=0, account_id=account_id, title=title, description=description)
		result = await self._client.execute(
			"INSERT INTO Missions (AccountId, Title, Description, IsCompleted) VALUES (?, ?, ?, 0)",
			account_id, draft.title, draft.description,
		)
		if result.last_insert_rowid is None:
			raise ProtocolError("Insert into Missions returned no last_insert_rowid")
		logger.info("Created mission %d (%s)", result.last_insert_rowid, draft.title)
		return Mission(
			id=result.last_insert_rowid,
			account_id=account_id,
			title=draft.title,
			description=draft.description,
		)

	async def update(self, mission_id: int, title: str, description: str = "") -> Mission | None:
		draft = Mission(id=mission_id, account_id=self.account_id, title=title, description=description)
		await self._client.execute(
			"UPDATE Missions SET Title = ?, Description = ? WHERE Id = ? AND AccountId = ?",
			draft.title, draft.description, mission_id, self.account_id,
		)
		return await self.get_by_id(mission_id)

	async def delete(self, mission_id: int) -> bool:
		return await self._affects_rows(
			"DELETE FROM Missions WHERE Id = ? AND AccountId = ?",
			mission_id, self.account_id,
		)

	async def complete(self, mission_id: int) -> bool:
		return await self._affects_rows(
			"UPDATE Missions SET IsCompleted = 1 WHERE Id = ? AND AccountId = ?",
			mission_id, self.account_id,
		)

	async def reset(self, mission_id: int) -> bool:
		return await self._affects_rows(
			"UPDATE Missions SET IsCompleted = 0 WHERE Id = ? AND AccountId = ?",
			mission_id, self.account_id,
		)

	async def list_projects(
		self, mission_id: int, skip: int, take: int, filter_text: str | None = None,
	) -> PagedResult[Project]:
		return await self._page(
			select=_PROJECT_SELECT,
			source="FROM Projects WHERE MissionId = ? AND AccountId = ?",
			params=(mission_id, self.account_id),
			order_by="Name, Id",
			skip=skip,
			take=take,
			columns=PROJECT_COLUMNS,
			mapper=row_to_project,
			filter_column="Name",
			filter_text=filter_text,
		)

	async def list_eligible_projects(
		self, mission_id: int, skip: int, take: int, filter_text: str | None = None,
	) -> PagedResult[EligibleProject]:
		return await self._page(
			select=f"{select_list(PROJECT_COLUMNS, 'p')}, m.Title AS MissionTitle",
			source=(
				"FROM Projects p JOIN Missions m ON m.Id = p.MissionId AND m.AccountId = p.AccountId "
				"WHERE p.AccountId = ? AND p.MissionId <> ?"
			),
			params=(self.account_id, mission_id),
			order_by="p.Name, p.Id",
			skip=skip,
			take=take,
			columns=ELIGIBLE_PROJECT_COLUMNS,
			mapper=row_to_eligible_project,
			filter_column="p.Name",
			filter_text=filter_text,
		)

	async def list_tasks(
		self, mission_id: int, skip: int, take: int, filter_text: str | None = None,
	) -> PagedResult[Task]:
		return await self._page(
			select=select_list(TASK_COLUMNS, "t"),
			source=(
				"FROM Tasks t JOIN Projects p ON p.Id = t.ProjectId AND p.AccountId = t.AccountId "
				"WHERE p.MissionId = ? AND t.AccountId = ?"
			),
			params=(mission_id, self.account_id),
			order_by="t.Name, t.Id",
			skip=skip,
			take=take,
			columns=TASK_COLUMNS,
			mapper=row_to_task,
			filter_column="t.Name",
			filter_text=filter_text,
		)

	async def move_project(self, mission_id: int, project_id: int) -> bool:
		moved = await self._affects_rows(
			"UPDATE Projects SET MissionId = ? WHERE Id = ? AND AccountId = ?",
			mission_id, project_id, self.account_id,
		)
		if moved:
			logger.info("Moved project %d to mission %d", project_id, mission_id)
		return moved
