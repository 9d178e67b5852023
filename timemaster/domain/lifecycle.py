from __future__ import annotations

from .enums import TaskStatus


def clamp_target(target: int | None, default: int = 1) -> int:
    return max(default if target is None else target, 1)


def status_after_edit(status: TaskStatus, progress: int, target: int) -> TaskStatus:
    if status == TaskStatus.ARCHIVED:
        return status
    return TaskStatus.COMPLETED if progress >= target else TaskStatus.ACTIVE


def advance_progress(progress: int, target: int, status: TaskStatus) -> tuple[int, TaskStatus]:
    if progress < target:
        progress += 1
    if progress >= target:
        status = TaskStatus.COMPLETED
    return progress, status
