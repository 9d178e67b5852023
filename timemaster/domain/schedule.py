from __future__ import annotations

from typing import Optional, Sequence

from .enums import TaskType
from .errors import InvalidInputError

Schedule = tuple[Optional[str], Optional[str], Optional[str]]


def normalize_schedule(
    task_type: TaskType,
    repeat: str | None,
    date_range: Sequence[str] | None,
) -> Schedule:
    """Return the canonical ``(repeat_rule, start_date, end_date)`` for a task type.

    Cycle tasks keep a non-empty repeat rule and never carry dates. Long-term
    tasks need exactly two dates. Simple tasks carry no schedule at all.
    """
    if task_type == TaskType.CYCLE:
        return (repeat or None, None, None)
    if task_type == TaskType.LONG_TERM:
        dates = [] if date_range is None or isinstance(date_range, str) else list(date_range)
        if len(dates) != 2:
            raise InvalidInputError("long term task requires start and end date")
        return (None, dates[0], dates[1])
    return (None, None, None)
