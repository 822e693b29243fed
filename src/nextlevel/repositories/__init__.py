"""Repository interfaces and remote implementations for nextlevel."""

from __future__ import annotations

from nextlevel.repositories.base import MissionRepository, ProjectRepository, RemoteRepository, TaskRepository
from nextlevel.repositories.missions import RemoteMissionRepository
from nextlevel.repositories.projects import RemoteProjectRepository
from nextlevel.repositories.tasks import RemoteTaskRepository

__all__ = [
	"MissionRepository",
	"ProjectRepository",
	"RemoteMissionRepository",
	"RemoteProjectRepository",
	"RemoteRepository",
	"RemoteTaskRepository",
	"TaskRepository",
]
