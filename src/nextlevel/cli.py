"""CLI interface for nextlevel."""

from __future__ import annotations

import argparse
import asyncio
import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable

from nextlevel.account import StaticAccountContext
from nextlevel.config import NextLevelConfig, config_from_env, load_config, validate_config
from nextlevel.metrics import setup_logging
from nextlevel.models import (
	CreateMissionRequest,
	CreateProjectRequest,
	CreateSubtaskRequest,
	CreateTaskRequest,
	DomainError,
	PagedResult,
)
from nextlevel.remote import RemoteError, RemoteSqlClient
from nextlevel.repositories import RemoteMissionRepository, RemoteProjectRepository, RemoteTaskRepository
from nextlevel.schema import ensure_schema
from nextlevel.services import MissionService, ProjectService, TaskService

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = "nextlevel.toml"
DEFAULT_PAGE_SIZE = 20


@dataclass
class Services:
	client: RemoteSqlClient
	missions: MissionService
	projects: ProjectService
	tasks: TaskService


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog="nl",
		description="NextLevel - missions, projects and tasks over a remote SQL store",
	)
	parser.add_argument("--config", default=DEFAULT_CONFIG, help="Config file path")
	sub = parser.add_subparsers(dest="command")

	# nl init-db
	sub.add_parser("init-db", help="Create tables and indexes if missing")

	# nl validate-config
	sub.add_parser("validate-config", help="Validate config file semantically")

	# nl missions ...
	missions = sub.add_parser("missions", help="Manage missions")
	m_sub = missions.add_subparsers(dest="action", required=True)
	m_list = m_sub.add_parser("list", help="List missions")
	_add_paging(m_list)
	m_add = m_sub.add_parser("add", help="Create a mission")
	m_add.add_argument("title")
	m_add.add_argument("--description", default="")
	for action in ("complete", "reset", "delete"):
		m_sub.add_parser(action, help=f"{action.capitalize()} a mission").add_argument("id", type=int)

	# nl projects ...
	projects = sub.add_parser("projects", help="Manage projects")
	p_sub = projects.add_subparsers(dest="action", required=True)
	p_list = p_sub.add_parser("list", help="List projects")
	p_list.add_argument("--mission", type=int, default=None, help="Only projects of this mission")
	_add_paging(p_list)
	p_add = p_sub.add_parser("add", help="Create a project under a mission")
	p_add.add_argument("mission_id", type=int)
	p_add.add_argument("name")
	p_add.add_argument("--description", default="")

	# nl tasks ...
	tasks = sub.add_parser("tasks", help="Manage tasks and subtasks")
	t_sub = tasks.add_subparsers(dest="action", required=True)
	t_list = t_sub.add_parser("list", help="List tasks")
	t_list.add_argument("--project", type=int, default=None, help="Only tasks of this project")
	t_list.add_argument("--ungrouped", action="store_true", help="Only top-level tasks without a project")
	state = t_list.add_mutually_exclusive_group()
	state.add_argument("--open", action="store_true", help="Only tasks not completed")
	state.add_argument("--done", action="store_true", help="Only completed tasks")
	_add_paging(t_list)
	t_add = t_sub.add_parser("add", help="Create a task")
	t_add.add_argument("name")
	t_add.add_argument("--description", default="")
	t_add.add_argument("--project", type=int, default=None)
	t_subtask = t_sub.add_parser("subtask", help="Create a subtask under a task")
	t_subtask.add_argument("parent_id", type=int)
	t_subtask.add_argument("name")
	t_subtask.add_argument("--description", default="")
	for action in ("complete", "reopen"):
		t_sub.add_parser(action, help=f"{action.capitalize()} a task").add_argument("id", type=int)
	t_subtasks = t_sub.add_parser("subtasks", help="List the subtasks of a task")
	t_subtasks.add_argument("parent_id", type=int)
	_add_paging(t_subtasks)

	return parser


def _add_paging(parser: argparse.ArgumentParser) -> None:
	parser.add_argument("--skip", type=int, default=0)
	parser.add_argument("--take", type=int, default=DEFAULT_PAGE_SIZE)
	parser.add_argument("--filter", dest="filter_text", default=None, help="Substring match on name/title")


def _load(config_path: str) -> NextLevelConfig:
	"""Load the config file, or fall back to the environment when it is absent."""
	if Path(config_path).exists():
		return load_config(config_path)
	logger.debug("Config %s not found, using environment", config_path)
	return config_from_env()


def _make_client(config: NextLevelConfig) -> RemoteSqlClient:
	return RemoteSqlClient.from_config(config.database)


def build_services(config: NextLevelConfig, client: RemoteSqlClient | None = None) -> Services:
	client = client or _make_client(config)
	account = StaticAccountContext(config.account.id)
	mission_repo = RemoteMissionRepository(client, account)
	project_repo = RemoteProjectRepository(client, account)
	task_repo = RemoteTaskRepository(client, account)
	return Services(
		client=client,
		missions=MissionService(mission_repo, project_repo),
		projects=ProjectService(project_repo, mission_repo),
		tasks=TaskService(task_repo, project_repo),
	)


def _print_page(page: PagedResult[Any], render: Callable[[Any], str]) -> None:
	for item in page.items:
		print(render(item))
	print(f"\n{len(page.items)} shown, {page.total_count} total")


def _mark(done: bool) -> str:
	return "x" if done else " "


def _run(args: argparse.Namespace, action: Callable[[Services], Awaitable[int]]) -> int:
	services = build_services(_load(args.config))
	return asyncio.run(action(services))


def cmd_init_db(args: argparse.Namespace) -> int:
	"""Create the schema on the remote database."""

	async def _go(services: Services) -> int:
		await ensure_schema(services.client)
		print(f"Schema ready at {services.client.url}")
		return 0

	return _run(args, _go)


def cmd_validate_config(args: argparse.Namespace) -> int:
	"""Validate config file semantically."""
	config = _load(args.config)
	issues = validate_config(config)

	errors = [(lvl, msg) for lvl, msg in issues if lvl == "error"]
	warnings = [(lvl, msg) for lvl, msg in issues if lvl == "warning"]

	for level, msg in issues:
		print(f"[{level.upper()}] {msg}")

	if not issues:
		print("Config OK")

	print(f"\n{len(errors)} error(s), {len(warnings)} warning(s)")
	return 1 if errors else 0


def cmd_missions(args: argparse.Namespace) -> int:
	"""List, create, complete, reset or delete missions."""

	async def _go(services: Services) -> int:
		svc = services.missions
		if args.action == "list":
			page = await svc.list(args.skip, args.take, args.filter_text)
			_print_page(page, lambda m: f"[{_mark(m.is_completed)}] {m.id}: {m.title}")
			return 0
		if args.action == "add":
			mission = await svc.create(CreateMissionRequest(title=args.title, description=args.description))
			print(f"Created mission {mission.id}: {mission.title}")
			return 0

		handlers = {"complete": svc.complete, "reset": svc.reset, "delete": svc.delete}
		if await handlers[args.action](args.id):
			print(f"Mission {args.id}: {args.action} ok")
			return 0
		if args.action == "delete":
			print(f"Mission {args.id} not deleted (missing, or it still has projects)")
		else:
			print(f"Mission {args.id} not found")
		return 1

	return _run(args, _go)


def cmd_projects(args: argparse.Namespace) -> int:
	"""List or create projects."""

	async def _go(services: Services) -> int:
		if args.action == "list":
			if args.mission is not None:
				page = await services.missions.list_projects(args.mission, args.skip, args.take, args.filter_text)
			else:
				page = await services.projects.list(args.skip, args.take, args.filter_text)
			_print_page(page, lambda p: f"[{_mark(p.is_completed)}] {p.id}: {p.name} (mission {p.mission_id})")
			return 0

		project = await services.projects.create(CreateProjectRequest(
			name=args.name, description=args.description, mission_id=args.mission_id,
		))
		print(f"Created project {project.id}: {project.name}")
		return 0

	return _run(args, _go)


def _render_task(task: Any) -> str:
	parent = f" (subtask of {task.parent_task_id})" if task.parent_task_id is not None else ""
	return f"[{_mark(task.is_completed)}] {task.id}: {task.name}{parent}"


def cmd_tasks(args: argparse.Namespace) -> int:
	"""List, create, complete or reopen tasks and subtasks."""

	async def _go(services: Services) -> int:
		svc = services.tasks
		if args.action == "list":
			is_completed = True if args.done else False if args.open else None
			if args.ungrouped:
				page = await svc.list_ungrouped(args.skip, args.take, args.filter_text)
			elif args.project is not None:
				page = await svc.list_by_project(args.project, args.skip, args.take, is_completed, args.filter_text)
			else:
				page = await svc.list(args.skip, args.take, is_completed, args.filter_text)
			_print_page(page, _render_task)
			return 0
		if args.action == "subtasks":
			page = await svc.list_subtasks(args.parent_id, args.skip, args.take)
			_print_page(page, _render_task)
			return 0
		if args.action == "add":
			task_id = await svc.create(CreateTaskRequest(
				name=args.name, description=args.description, project_id=args.project,
			))
			print(f"Created task {task_id}")
			return 0
		if args.action == "subtask":
			task_id = await svc.create_subtask(CreateSubtaskRequest(
				name=args.name, description=args.description, parent_task_id=args.parent_id,
			))
			print(f"Created subtask {task_id} under {args.parent_id}")
			return 0

		handlers = {"complete": svc.complete, "reopen": svc.reopen}
		if await handlers[args.action](args.id):
			print(f"Task {args.id}: {args.action} ok")
			return 0
		print(f"Task {args.id} not found")
		return 1

	return _run(args, _go)


COMMANDS = {
	"init-db": cmd_init_db,
	"validate-config": cmd_validate_config,
	"missions": cmd_missions,
	"projects": cmd_projects,
	"tasks": cmd_tasks,
}


def main(argv: list[str] | None = None) -> int:
	logging.basicConfig(
		level=logging.INFO,
		format="%(asctime)s %(levelname)s %(name)s: %(message)s",
		datefmt="%H:%M:%S",
		force=True,
	)
	parser = build_parser()
	args = parser.parse_args(argv)

	if args.command is None:
		parser.print_help()
		return 0

	if Path(args.config).exists():
		try:
			cfg = load_config(args.config)
		except (OSError, tomllib.TOMLDecodeError) as e:
			print(f"Error: {e}")
			return 1
		setup_logging(cfg.logging.level, cfg.logging.json)

	handler = COMMANDS.get(args.command)
	if handler is None:
		print(f"Unknown command: {args.command}")
		return 1

	try:
		return handler(args)
	except (DomainError, RemoteError) as e:
		logger.debug("Command %s failed", args.command, exc_info=True)
		print(f"Error: {e}")
		return 1
