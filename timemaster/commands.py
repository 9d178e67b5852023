"""Command bridge between the task service and the surrounding shell.

Commands take and return plain JSON-ready values using the camelCase
transfer shape (``repeatRule``, ``dateRange``, ...).
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable

from timemaster.domain.entities import NewTask, UpdateTask
from timemaster.domain.errors import InvalidInputError
from timemaster.services.task_service import TaskService

logger = logging.getLogger(__name__)


def _task_id(payload: Any) -> str:
    if not isinstance(payload, dict) or not isinstance(payload.get("id"), str):
        raise InvalidInputError("id is required")
    return payload["id"]


def _payload(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise InvalidInputError("payload must be an object")
    return payload


class TaskCommands:
    def __init__(self, service: TaskService) -> None:
        self.service = service
        self._handlers: dict[str, Callable[..., Any]] = {
            "list_tasks": self.list_tasks,
            "create_task": self.create_task,
            "update_task": self.update_task,
            "delete_task": self.delete_task,
            "increase_task_progress": self.increase_task_progress,
            "archive_task": self.archive_task,
            "reopen_task": self.reopen_task,
            "task_stats": self.task_stats,
            "import_tasks": self.import_tasks,
        }

    def invoke(self, command: str, args: dict[str, Any] | None = None) -> Any:
        handler = self._handlers.get(command)
        if handler is None:
            raise InvalidInputError(f"unknown command: {command}")
        if args is not None and not isinstance(args, dict):
            raise InvalidInputError("args must be an object")
        try:
            bound = inspect.signature(handler).bind(**(args or {}))
        except TypeError as exc:
            raise InvalidInputError(f"bad arguments for {command}: {exc}") from exc
        return handler(*bound.args, **bound.kwargs)

    def list_tasks(self, status: str | None = None) -> list[dict[str, Any]]:
        return [task.to_payload() for task in self.service.list_tasks(status)]

    def create_task(self, payload: Any) -> dict[str, Any]:
        return self.service.create_task(NewTask.from_payload(_payload(payload))).to_payload()

    def update_task(self, payload: Any) -> dict[str, Any]:
        return self.service.update_task(UpdateTask.from_payload(_payload(payload))).to_payload()

    def delete_task(self, payload: Any) -> None:
        self.service.delete_task(_task_id(payload))

    def increase_task_progress(self, payload: Any) -> dict[str, Any]:
        return self.service.increment_progress(_task_id(payload)).to_payload()

    def archive_task(self, payload: Any) -> dict[str, Any]:
        return self.service.archive_task(_task_id(payload)).to_payload()

    def reopen_task(self, payload: Any) -> dict[str, Any]:
        return self.service.reopen_task(_task_id(payload)).to_payload()

    def task_stats(self) -> dict[str, int]:
        stats = self.service.get_stats()
        return {
            "active": stats["active"],
            "completed": stats["completed"],
            "archived": stats["archived"],
            "completionRate": stats["completion_rate"],
        }

    def import_tasks(self, payload: Any) -> list[dict[str, Any]]:
        if not isinstance(payload, list):
            raise InvalidInputError("import payload must be a list of tasks")
        items = []
        for raw in payload:
            try:
                items.append(NewTask.from_payload(_payload(raw)))
            except InvalidInputError as exc:
                logger.warning("Skipping task import %r: %s", raw, exc)
        return [task.to_payload() for task in self.service.import_tasks(items)]
