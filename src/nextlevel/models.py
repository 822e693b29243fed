"""Domain entities, DTOs and domain errors for nextlevel."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")
U = TypeVar("U")


# -- Errors --


class DomainError(Exception):
	"""A domain rule rejected the operation."""


class ValidationError(DomainError, ValueError):
	"""Invalid input, rejected before any statement is sent."""


class NotFoundError(DomainError):
	"""A referenced entity does not exist for the current account."""


class SubtaskNestingError(DomainError):
	"""Attempt to create a subtask under another subtask."""


def _require_text(value: str | None, what: str) -> str:
	text = (value or "").strip()
	if not text:
		raise ValidationError(f"{what} cannot be empty")
	return text


def _clean(value: str | None) -> str:
	return (value or "").strip()


def require_paging(skip: int, take: int) -> None:
	if skip < 0:
		raise ValidationError(f"skip must be non-negative, got {skip}")
	if take < 0:
		raise ValidationError(f"take must be non-negative, got {take}")


# -- Entities --


@dataclass(frozen=True)
class Mission:
	"""Top-level grouping that owns projects."""

	id: int
	account_id: int
	title: str
	description: str = ""
	is_completed: bool = False

	def __post_init__(self) -> None:
		object.__setattr__(self, "title", _require_text(self.title, "Mission title"))
		object.__setattr__(self, "description", _clean(self.description))


@dataclass(frozen=True)
class Project:
	"""A project owned by exactly one mission."""

	id: int
	account_id: int
	name: str
	description: str = ""
	mission_id: int = 0
	is_completed: bool = False

	def __post_init__(self) -> None:
		object.__setattr__(self, "name", _require_text(self.name, "Project name"))
		object.__setattr__(self, "description", _clean(self.description))


@dataclass(frozen=True)
class Task:
	"""A unit of work; a subtask when parent_task_id is set."""

	id: int
	account_id: int
	name: str
	description: str = ""
	is_completed: bool = False
	project_id: int | None = None
	parent_task_id: int | None = None

	def __post_init__(self) -> None:
		object.__setattr__(self, "name", _require_text(self.name, "Task name"))
		object.__setattr__(self, "description", _clean(self.description))

	@property
	def is_subtask(self) -> bool:
		return self.parent_task_id is not None


@dataclass(frozen=True)
class EligibleProject:
	"""A project of another mission, with its current mission's title."""

	project: Project
	mission_title: str


@dataclass
class PagedResult(Generic[T]):
	"""One page of a listing plus the size of the whole filtered set."""

	items: list[T] = field(default_factory=list)
	total_count: int = 0

	def map(self, fn: Callable[[T], U]) -> PagedResult[U]:
		return PagedResult(items=[fn(item) for item in self.items], total_count=self.total_count)


# -- DTOs --


class MissionDto(BaseModel):
	id: int
	title: str
	description: str = ""
	is_completed: bool = False

	@classmethod
	def from_entity(cls, mission: Mission) -> MissionDto:
		return cls(
			id=mission.id,
			title=mission.title,
			description=mission.description,
			is_completed=mission.is_completed,
		)


class ProjectDto(BaseModel):
	id: int
	account_id: int
	name: str
	description: str = ""
	mission_id: int
	is_completed: bool = False

	@classmethod
	def from_entity(cls, project: Project) -> ProjectDto:
		return cls(
			id=project.id,
			account_id=project.account_id,
			name=project.name,
			description=project.description,
			mission_id=project.mission_id,
			is_completed=project.is_completed,
		)


class EligibleProjectDto(BaseModel):
	id: int
	name: str
	description: str = ""
	mission_id: int
	mission_title: str

	@classmethod
	def from_entity(cls, eligible: EligibleProject) -> EligibleProjectDto:
		p = eligible.project
		return cls(
			id=p.id,
			name=p.name,
			description=p.description,
			mission_id=p.mission_id,
			mission_title=eligible.mission_title,
		)


class TaskDto(BaseModel):
	id: int
	account_id: int
	name: str
	description: str = ""
	is_completed: bool = False
	project_id: int | None = None
	parent_task_id: int | None = None

	@classmethod
	def from_entity(cls, task: Task) -> TaskDto:
		return cls(
			id=task.id,
			account_id=task.account_id,
			name=task.name,
			description=task.description,
			is_completed=task.is_completed,
			project_id=task.project_id,
			parent_task_id=task.parent_task_id,
		)


# -- Requests --


class CreateMissionRequest(BaseModel):
	title: str
	description: str = ""


class UpdateMissionRequest(BaseModel):
	id: int
	title: str
	description: str = ""


class CreateProjectRequest(BaseModel):
	name: str
	description: str = ""
	mission_id: int


class UpdateProjectRequest(BaseModel):
	name: str
	description: str = ""


class CreateTaskRequest(BaseModel):
	name: str
	description: str = ""
	project_id: int | None = None


class CreateSubtaskRequest(BaseModel):
	name: str
	description: str = ""
	parent_task_id: int


class UpdateTaskRequest(BaseModel):
	name: str
	description: str = ""
