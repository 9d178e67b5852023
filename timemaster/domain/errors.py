"""Errors raised by the task store and the lifecycle controller.

Every public store operation either returns its value or raises one of
these. The boundary layer renders them with ``str(exc)``.
"""

from __future__ import annotations


class TaskStoreError(Exception):
    """Base exception for task store errors."""


class InitializationError(TaskStoreError):
    """Raised when the store cannot be opened (data dir, schema, pool)."""


class InvalidInputError(TaskStoreError, ValueError):
    """Raised when a request breaks a task rule."""


class TaskNotFoundError(InvalidInputError):
    """Raised when no task matches the requested id."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"task {task_id} not found")
        self.task_id = task_id


class StorageError(TaskStoreError):
    """Raised when the storage engine fails (I/O, constraints, pool timeout)."""


class ConcurrentModificationError(StorageError):
    """Raised when another caller changed the task between read and write."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"task {task_id} was modified concurrently, re-fetch and retry")
        self.task_id = task_id
