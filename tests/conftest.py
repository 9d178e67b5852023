from __future__ import annotations

import pytest

from timemaster.config import Settings
from timemaster.infra.db import Database, open_database
from timemaster.infra.repository import TaskRepository
from timemaster.services.task_service import TaskService


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        data_dir=tmp_path,
        database_path=tmp_path / "storage" / "timemaster.db",
        pool_size=8,
        pool_timeout=5.0,
        seed_on_start=False,
    )


@pytest.fixture()
def db(settings: Settings) -> Database:
    database = open_database(settings)
    yield database
    database.dispose()


@pytest.fixture()
def repo(db: Database) -> TaskRepository:
    return TaskRepository(db)


@pytest.fixture()
def service(repo: TaskRepository) -> TaskService:
    return TaskService(repo)
