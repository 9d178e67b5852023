from __future__ import annotations

from enum import StrEnum


class TaskType(StrEnum):
    SIMPLE = "simple"
    CYCLE = "cycle"
    LONG_TERM = "long_term"

    @classmethod
    def _missing_(cls, value: object) -> TaskType | None:
        # older front-ends label one-shot tasks "once"
        if value == "once":
            return cls.SIMPLE
        return None


class TaskStatus(StrEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"
