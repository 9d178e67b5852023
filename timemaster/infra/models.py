from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import Column, Index, Integer, String, Text

from .db import Base


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def next_timestamp(previous: str | None) -> str:
    """Return a fresh ``updated_at`` that sorts strictly after ``previous``."""
    stamp = utcnow()
    if previous is None or stamp > previous:
        return stamp
    try:
        bumped = datetime.fromisoformat(previous) + timedelta(microseconds=1)
    except ValueError:
        return stamp
    return bumped.isoformat(timespec="microseconds")


class TaskModel(Base):
    __tablename__ = "tasks"
    __table_args__ = (Index("idx_tasks_status", "status"),)

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True, default="")
    task_type = Column(Text, nullable=False)
    progress = Column(Integer, nullable=False, default=0)
    target = Column(Integer, nullable=False, default=1)
    repeat_rule = Column(Text, nullable=True)
    start_date = Column(Text, nullable=True)
    end_date = Column(Text, nullable=True)
    status = Column(String(20), nullable=False)
    created_at = Column(Text, nullable=False, default=utcnow)
    updated_at = Column(Text, nullable=False, default=utcnow)
