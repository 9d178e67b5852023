from __future__ import annotations

import logging
import math
from typing import Iterable

from timemaster.domain.entities import NewTask, TaskEntity, UpdateTask, parse_status
from timemaster.domain.enums import TaskStatus, TaskType
from timemaster.domain.errors import InvalidInputError, TaskStoreError
from timemaster.domain.lifecycle import advance_progress
from timemaster.infra.repository import TaskRepository

logger = logging.getLogger(__name__)

SEED_TASKS = (
    NewTask(
        name="Product launch checklist",
        description="Walk through the final checks before release.",
        task_type=TaskType.SIMPLE,
        target=5,
    ),
    NewTask(
        name="Weekly meeting prep",
        description="Collect project progress and draft the agenda.",
        task_type=TaskType.CYCLE,
        target=1,
        repeat="weekly",
    ),
    NewTask(
        name="English study plan",
        description="Build vocabulary and practise speaking.",
        task_type=TaskType.LONG_TERM,
        target=30,
        date_range=("2025-01-01", "2025-06-30"),
    ),
)


class TaskService:
    def __init__(self, repo: TaskRepository) -> None:
        self._repo = repo

    def list_tasks(self, status: TaskStatus | str | None = None) -> list[TaskEntity]:
        if status is not None:
            status = parse_status(status)
        return self._repo.list_tasks(status)

    def get_task(self, task_id: str) -> TaskEntity:
        return self._repo.get_task(task_id)

    def create_task(self, new_task: NewTask) -> TaskEntity:
        return self._repo.create_task(new_task)

    def update_task(self, payload: UpdateTask) -> TaskEntity:
        return self._repo.update_task(payload)

    def delete_task(self, task_id: str) -> None:
        self._repo.delete_task(task_id)

    def increment_progress(self, task_id: str) -> TaskEntity:
        def advance(task: TaskEntity) -> dict:
            if task.status == TaskStatus.ARCHIVED:
                raise InvalidInputError("cannot update archived task")
            progress, status = advance_progress(task.progress, task.target, task.status)
            return {"progress": progress, "status": status}

        task = self._repo.modify_task(task_id, advance)
        logger.debug("Task progress id=%s %s/%s status=%s", task.id, task.progress, task.target, task.status)
        return task

    def archive_task(self, task_id: str) -> TaskEntity:
        task = self._repo.modify_task(task_id, lambda _: {"status": TaskStatus.ARCHIVED})
        logger.info("Task archived id=%s", task_id)
        return task

    def reopen_task(self, task_id: str) -> TaskEntity:
        task = self._repo.modify_task(task_id, lambda _: {"status": TaskStatus.ACTIVE})
        if task.task_type == TaskType.CYCLE:
            # a recurring task starts a fresh cycle
            task = self._repo.modify_task(task_id, lambda _: {"progress": 0})
        logger.info("Task reopened id=%s type=%s progress=%s", task_id, task.task_type, task.progress)
        return task

    def get_stats(self) -> dict[str, int]:
        counts = self._repo.count_by_status()
        active = counts.get(TaskStatus.ACTIVE, 0)
        completed = counts.get(TaskStatus.COMPLETED, 0)
        visible = active + completed
        return {
            "active": active,
            "completed": completed,
            "archived": counts.get(TaskStatus.ARCHIVED, 0),
            "completion_rate": math.floor(completed * 100 / visible + 0.5) if visible else 0,
        }

    def import_tasks(self, items: Iterable[NewTask]) -> list[TaskEntity]:
        created = []
        for item in items:
            try:
                created.append(self._repo.create_task(item))
            except TaskStoreError as exc:
                logger.warning("Skipping task import name=%r: %s", item.name, exc)
        logger.info("Imported tasks: %s", len(created))
        return created

    def ensure_seed_data(self) -> list[TaskEntity]:
        if self._repo.list_tasks():
            return []
        return self.import_tasks(SEED_TASKS)
