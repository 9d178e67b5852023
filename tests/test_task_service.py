from __future__ import annotations

from dataclasses import replace

import pytest

from timemaster.domain.entities import NewTask, TaskEntity, UpdateTask
from timemaster.domain.enums import TaskStatus, TaskType
from timemaster.domain.errors import InvalidInputError, TaskNotFoundError
from timemaster.services.task_service import SEED_TASKS, TaskService


class FakeRepo:
    def __init__(self) -> None:
        self.tasks: dict[str, TaskEntity] = {}
        self.writes: list[tuple[str, dict]] = []
        self._id = 1
        self._clock = 0

    def _stamp(self) -> str:
        self._clock += 1
        return f"2026-01-01T00:00:{self._clock:02d}.000000+00:00"

    def list_tasks(self, status=None) -> list[TaskEntity]:
        tasks = [t for t in self.tasks.values() if status is None or t.status == status]
        return sorted(tasks, key=lambda t: t.updated_at, reverse=True)

    def get_task(self, task_id: str) -> TaskEntity:
        if task_id not in self.tasks:
            raise TaskNotFoundError(task_id)
        return self.tasks[task_id]

    def create_task(self, new_task: NewTask) -> TaskEntity:
        if new_task.task_type == TaskType.LONG_TERM and len(new_task.date_range or []) != 2:
            raise InvalidInputError("long term task requires start and end date")
        now = self._stamp()
        task = TaskEntity(
            id=new_task.id or f"task-{self._id}",
            name=new_task.name,
            description=new_task.description or "",
            task_type=new_task.task_type,
            progress=0,
            target=max(new_task.target or 1, 1),
            repeat_rule=new_task.repeat if new_task.task_type == TaskType.CYCLE else None,
            start_date=None,
            end_date=None,
            status=TaskStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
        self._id += 1
        self.tasks[task.id] = task
        return task

    def update_task(self, payload: UpdateTask) -> TaskEntity:
        return self.modify_task(payload.id, lambda _: {"name": payload.name})

    def modify_task(self, task_id: str, change) -> TaskEntity:
        current = self.get_task(task_id)
        changes = dict(change(current))
        self.writes.append((task_id, changes))
        updated = replace(current, updated_at=self._stamp(), **changes)
        self.tasks[task_id] = updated
        return updated

    def delete_task(self, task_id: str) -> None:
        self.tasks.pop(task_id, None)

    def count_by_status(self) -> dict[TaskStatus, int]:
        counts = {status: 0 for status in TaskStatus}
        for task in self.tasks.values():
            counts[task.status] += 1
        return counts


@pytest.fixture()
def fake_repo() -> FakeRepo:
    return FakeRepo()


@pytest.fixture()
def fake_service(fake_repo: FakeRepo) -> TaskService:
    return TaskService(fake_repo)


def test_increment_stops_at_target_and_completes(fake_repo: FakeRepo, fake_service: TaskService) -> None:
    task = fake_repo.create_task(NewTask(name="Run", task_type=TaskType.SIMPLE, target=2))

    first = fake_service.increment_progress(task.id)
    assert (first.progress, first.status) == (1, TaskStatus.ACTIVE)

    second = fake_service.increment_progress(task.id)
    assert (second.progress, second.status) == (2, TaskStatus.COMPLETED)

    third = fake_service.increment_progress(task.id)
    assert (third.progress, third.status) == (2, TaskStatus.COMPLETED)


def test_increment_archived_task_is_rejected(fake_repo: FakeRepo, fake_service: TaskService) -> None:
    task = fake_repo.create_task(NewTask(name="Run", task_type=TaskType.SIMPLE, target=3))
    archived = fake_service.archive_task(task.id)

    with pytest.raises(InvalidInputError, match="cannot update archived task"):
        fake_service.increment_progress(task.id)

    assert fake_repo.get_task(task.id) == archived


def test_archive_keeps_progress_from_any_status(fake_repo: FakeRepo, fake_service: TaskService) -> None:
    task = fake_repo.create_task(NewTask(name="Run", task_type=TaskType.SIMPLE, target=1))
    fake_service.increment_progress(task.id)

    archived = fake_service.archive_task(task.id)

    assert archived.status == TaskStatus.ARCHIVED
    assert archived.progress == 1
    assert fake_service.archive_task(task.id).status == TaskStatus.ARCHIVED


def test_reopen_cycle_resets_progress_in_second_write(fake_repo: FakeRepo, fake_service: TaskService) -> None:
    task = fake_repo.create_task(NewTask(name="Water plants", task_type=TaskType.CYCLE, target=1, repeat="daily"))
    fake_service.increment_progress(task.id)
    fake_repo.writes.clear()

    reopened = fake_service.reopen_task(task.id)

    assert (reopened.status, reopened.progress) == (TaskStatus.ACTIVE, 0)
    assert fake_repo.writes == [
        (task.id, {"status": TaskStatus.ACTIVE}),
        (task.id, {"progress": 0}),
    ]


@pytest.mark.parametrize("task_type", [TaskType.SIMPLE, TaskType.LONG_TERM])
def test_reopen_non_cycle_keeps_progress(fake_repo: FakeRepo, fake_service: TaskService, task_type) -> None:
    new_task = NewTask(name="Study", task_type=task_type, target=1, date_range=("2024-01-01", "2024-02-01"))
    task = fake_repo.create_task(new_task)
    fake_service.increment_progress(task.id)

    reopened = fake_service.reopen_task(task.id)

    assert (reopened.status, reopened.progress) == (TaskStatus.ACTIVE, 1)


def test_missing_task_raises_not_found(fake_service: TaskService) -> None:
    with pytest.raises(TaskNotFoundError):
        fake_service.increment_progress("missing")
    with pytest.raises(TaskNotFoundError):
        fake_service.archive_task("missing")
    with pytest.raises(TaskNotFoundError):
        fake_service.reopen_task("missing")


def test_list_tasks_accepts_status_strings(fake_repo: FakeRepo, fake_service: TaskService) -> None:
    task = fake_repo.create_task(NewTask(name="Run", task_type=TaskType.SIMPLE))
    fake_service.archive_task(task.id)

    assert fake_service.list_tasks("archived")[0].id == task.id
    assert fake_service.list_tasks("active") == []
    with pytest.raises(InvalidInputError):
        fake_service.list_tasks("done")


def test_stats_count_statuses_and_completion_rate(fake_repo: FakeRepo, fake_service: TaskService) -> None:
    assert fake_service.get_stats() == {"active": 0, "completed": 0, "archived": 0, "completion_rate": 0}

    tasks = [fake_repo.create_task(NewTask(name=f"t{i}", task_type=TaskType.SIMPLE)) for i in range(4)]
    fake_service.increment_progress(tasks[0].id)
    fake_service.archive_task(tasks[1].id)

    assert fake_service.get_stats() == {"active": 2, "completed": 1, "archived": 1, "completion_rate": 33}


def test_completion_rate_rounds_half_up(fake_repo: FakeRepo, fake_service: TaskService) -> None:
    tasks = [fake_repo.create_task(NewTask(name=f"t{i}", task_type=TaskType.SIMPLE)) for i in range(8)]
    fake_service.increment_progress(tasks[0].id)

    assert fake_service.get_stats()["completion_rate"] == 13


def test_import_skips_invalid_items(fake_repo: FakeRepo, fake_service: TaskService, caplog) -> None:
    items = [
        NewTask(name="ok", task_type=TaskType.SIMPLE),
        NewTask(name="broken", task_type=TaskType.LONG_TERM, date_range=["2024-01-01"]),
        NewTask(name="also ok", task_type=TaskType.CYCLE, repeat="weekly"),
    ]

    created = fake_service.import_tasks(items)

    assert [task.name for task in created] == ["ok", "also ok"]
    assert "broken" in caplog.text


def test_seed_data_only_fills_an_empty_store(fake_repo: FakeRepo, fake_service: TaskService) -> None:
    seeded = fake_service.ensure_seed_data()

    assert len(seeded) == len(SEED_TASKS)
    assert {task.task_type for task in seeded} == set(TaskType)
    assert fake_service.ensure_seed_data() == []
    assert len(fake_repo.tasks) == len(SEED_TASKS)


def test_read_book_walkthrough(service: TaskService) -> None:
    task = service.create_task(NewTask(name="Read book", task_type=TaskType.CYCLE, target=5, repeat="daily"))
    assert (task.progress, task.status, task.repeat_rule) == (0, TaskStatus.ACTIVE, "daily")

    statuses = [service.increment_progress(task.id).status for _ in range(5)]
    assert statuses == [TaskStatus.ACTIVE] * 4 + [TaskStatus.COMPLETED]

    archived = service.archive_task(task.id)
    assert (archived.status, archived.progress) == (TaskStatus.ARCHIVED, 5)

    with pytest.raises(InvalidInputError):
        service.increment_progress(task.id)

    reopened = service.reopen_task(task.id)
    assert (reopened.status, reopened.progress) == (TaskStatus.ACTIVE, 0)
    assert reopened.updated_at > archived.updated_at


def test_reopened_long_term_task_keeps_progress_on_disk(service: TaskService) -> None:
    task = service.create_task(
        NewTask(name="Learn", task_type=TaskType.LONG_TERM, target=1, date_range=["2025-01-01", "2025-06-30"])
    )
    service.increment_progress(task.id)

    reopened = service.reopen_task(task.id)

    assert (reopened.status, reopened.progress) == (TaskStatus.ACTIVE, 1)
    assert service.get_task(task.id) == reopened


def test_update_archived_task_stays_archived(service: TaskService) -> None:
    task = service.create_task(NewTask(name="Read", task_type=TaskType.SIMPLE, target=3))
    service.increment_progress(task.id)
    service.archive_task(task.id)

    updated = service.update_task(UpdateTask(id=task.id, name="Read", task_type=TaskType.SIMPLE, target=1))

    assert updated.status == TaskStatus.ARCHIVED
    assert updated.progress == 1


def test_seed_data_on_real_store(service: TaskService) -> None:
    seeded = service.ensure_seed_data()

    assert len(service.list_tasks()) == len(seeded) == 3
    long_term = next(task for task in seeded if task.task_type == TaskType.LONG_TERM)
    assert (long_term.start_date, long_term.end_date) == ("2025-01-01", "2025-06-30")
