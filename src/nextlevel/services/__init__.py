"""Domain services for nextlevel."""

from __future__ import annotations

from nextlevel.services.missions import MissionService
from nextlevel.services.projects import ProjectService
from nextlevel.services.tasks import TaskService

__all__ = [
	"MissionService",
	"ProjectService",
	"TaskService",
]
