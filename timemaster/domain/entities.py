from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from .enums import TaskStatus, TaskType
from .errors import InvalidInputError

SQLITE_INT_MAX = 2**63 - 1


@dataclass(frozen=True)
class TaskEntity:
    id: str
    name: str
    description: str
    task_type: TaskType
    progress: int
    target: int
    repeat_rule: Optional[str]
    start_date: Optional[str]
    end_date: Optional[str]
    status: TaskStatus
    created_at: str
    updated_at: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.task_type.value,
            "progress": self.progress,
            "target": self.target,
            "repeatRule": self.repeat_rule,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "status": self.status.value,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass(frozen=True)
class NewTask:
    name: str
    task_type: TaskType
    description: str | None = None
    target: int | None = None
    repeat: str | None = None
    date_range: Sequence[str] | None = None
    id: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> NewTask:
        return cls(
            id=_optional_str(payload, "id") or None,
            name=_require_str(payload, "name"),
            description=_optional_str(payload, "description"),
            task_type=parse_task_type(payload.get("type")),
            target=_optional_int(payload.get("target"), "target"),
            repeat=_optional_str(payload, "repeat"),
            date_range=_optional_date_range(payload.get("dateRange")),
        )


@dataclass(frozen=True)
class UpdateTask:
    id: str
    name: str
    task_type: TaskType
    description: str | None = None
    target: int | None = None
    repeat: str | None = None
    date_range: Sequence[str] | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> UpdateTask:
        return cls(
            id=_require_str(payload, "id"),
            name=_require_str(payload, "name"),
            description=_optional_str(payload, "description"),
            task_type=parse_task_type(payload.get("type")),
            target=_optional_int(payload.get("target"), "target"),
            repeat=_optional_str(payload, "repeat"),
            date_range=_optional_date_range(payload.get("dateRange")),
        )


def parse_task_type(value: Any) -> TaskType:
    try:
        return TaskType(value)
    except ValueError:
        raise InvalidInputError(f"unknown task type: {value!r}") from None


def parse_status(value: Any) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        raise InvalidInputError(f"unknown task status: {value!r}") from None


def _require_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise InvalidInputError(f"{key} is required")
    return value


def _optional_int(value: Any, key: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidInputError(f"{key} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidInputError(f"{key} must be an integer") from None
    if not -SQLITE_INT_MAX - 1 <= number <= SQLITE_INT_MAX:
        raise InvalidInputError(f"{key} is out of range")
    return number


def _optional_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise InvalidInputError(f"{key} must be a string")
    return value


def _optional_date_range(value: Any) -> tuple[str, ...] | None:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise InvalidInputError("dateRange must be a list of date strings")
    return tuple(value)
