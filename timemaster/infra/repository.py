from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Callable, Iterator, Mapping, Optional
from uuid import uuid4

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from timemaster.domain.entities import NewTask, TaskEntity, UpdateTask, parse_status, parse_task_type
from timemaster.domain.enums import TaskStatus
from timemaster.domain.errors import ConcurrentModificationError, StorageError, TaskNotFoundError
from timemaster.domain.lifecycle import clamp_target, status_after_edit
from timemaster.domain.schedule import normalize_schedule

from .db import Database
from .models import TaskModel, next_timestamp, utcnow

logger = logging.getLogger(__name__)

TaskChange = Callable[[TaskEntity], Mapping[str, Any]]


def _to_entity(model: TaskModel) -> TaskEntity:
    return TaskEntity(
        id=model.id,
        name=model.name,
        description=model.description or "",
        task_type=parse_task_type(model.task_type),
        progress=model.progress,
        target=model.target,
        repeat_rule=model.repeat_rule,
        start_date=model.start_date,
        end_date=model.end_date,
        status=parse_status(model.status),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _to_columns(changes: Mapping[str, Any]) -> dict[str, Any]:
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in changes.items()
    }


class TaskRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self._db.SessionLocal() as session:
                yield session
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    def list_tasks(self, status: Optional[TaskStatus] = None) -> list[TaskEntity]:
        with self._session() as session:
            stmt = select(TaskModel)
            if status is not None:
                stmt = stmt.where(TaskModel.status == parse_status(status).value)
            stmt = stmt.order_by(TaskModel.updated_at.desc())
            return [_to_entity(task) for task in session.scalars(stmt)]

    def get_task(self, task_id: str) -> TaskEntity:
        with self._session() as session:
            return _to_entity(self._fetch(session, task_id))

    def create_task(self, new_task: NewTask) -> TaskEntity:
        repeat_rule, start_date, end_date = normalize_schedule(
            new_task.task_type, new_task.repeat, new_task.date_range
        )
        now = utcnow()
        task = TaskModel(
            id=new_task.id or str(uuid4()),
            name=new_task.name.strip(),
            description=(new_task.description or "").strip(),
            task_type=new_task.task_type.value,
            progress=0,
            target=clamp_target(new_task.target),
            repeat_rule=repeat_rule,
            start_date=start_date,
            end_date=end_date,
            status=TaskStatus.ACTIVE.value,
            created_at=now,
            updated_at=now,
        )
        with self._session() as session:
            session.add(task)
            session.commit()
            session.refresh(task)
            logger.info("Task created id=%s type=%s target=%s", task.id, task.task_type, task.target)
            return _to_entity(task)

    def update_task(self, payload: UpdateTask) -> TaskEntity:
        def edit(current: TaskEntity) -> dict[str, Any]:
            repeat_rule, start_date, end_date = normalize_schedule(
                payload.task_type, payload.repeat, payload.date_range
            )
            target = clamp_target(payload.target, default=current.target)
            progress = min(current.progress, target)
            return {
                "name": payload.name.strip(),
                "description": (payload.description or "").strip(),
                "task_type": payload.task_type,
                "target": target,
                "repeat_rule": repeat_rule,
                "start_date": start_date,
                "end_date": end_date,
                "progress": progress,
                "status": status_after_edit(current.status, progress, target),
            }

        return self.modify_task(payload.id, edit)

    def modify_task(self, task_id: str, change: TaskChange) -> TaskEntity:
        """Apply ``change`` to the current row as one fetch-modify-write.

        ``change`` receives a snapshot and returns the columns to overwrite.
        The write only lands if ``updated_at`` still holds the value that was
        read; otherwise :class:`ConcurrentModificationError` is raised and
        nothing is written.
        """
        with self._session() as session:
            task = self._fetch(session, task_id)
            current = _to_entity(task)
            values = _to_columns(change(current))
            values["updated_at"] = next_timestamp(current.updated_at)

            result = session.execute(
                update(TaskModel)
                .where(TaskModel.id == task_id, TaskModel.updated_at == current.updated_at)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                session.rollback()
                raise ConcurrentModificationError(task_id)
            session.commit()
            session.refresh(task)
            logger.debug("Task modified id=%s fields=%s", task_id, sorted(values))
            return _to_entity(task)

    def delete_task(self, task_id: str) -> None:
        with self._session() as session:
            result = session.execute(delete(TaskModel).where(TaskModel.id == task_id))
            session.commit()
            logger.info("Task deleted id=%s removed=%s", task_id, result.rowcount)

    def count_by_status(self) -> dict[TaskStatus, int]:
        with self._session() as session:
            rows = session.execute(
                select(TaskModel.status, func.count()).group_by(TaskModel.status)
            ).all()
        counts = {status: 0 for status in TaskStatus}
        for status, count in rows:
            counts[parse_status(status)] = count
        return counts

    @staticmethod
    def _fetch(session: Session, task_id: str) -> TaskModel:
        task = session.get(TaskModel, task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task
