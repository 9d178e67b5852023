from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool

from timemaster.config import SETTINGS, Settings
from timemaster.domain.errors import InitializationError

logger = logging.getLogger(__name__)

Base = declarative_base()


def _apply_pragmas(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


class Database:
    """Owned handle over a bounded SQLite connection pool.

    Every repository call checks out one connection through ``SessionLocal``
    and gives it back when its ``with`` block exits.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    def dispose(self) -> None:
        self.engine.dispose()


def create_sqlite_engine(path: Path, pool_size: int = 8, pool_timeout: float = 30.0) -> Engine:
    engine = create_engine(
        f"sqlite:///{path}",
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=0,
        pool_timeout=pool_timeout,
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _apply_pragmas)
    return engine


def init_db(engine: Engine) -> None:
    """Create the tasks table and its status index when missing. Never alters data."""
    from . import models  # noqa: F401  registers TaskModel on Base.metadata

    with engine.begin() as connection:
        Base.metadata.create_all(connection, checkfirst=True)


def open_database(settings: Settings = SETTINGS) -> Database:
    path = settings.database_path
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise InitializationError(
            f"failed to access application data directory: {path.parent}: {exc}"
        ) from exc

    try:
        engine = create_sqlite_engine(path, settings.pool_size, settings.pool_timeout)
        init_db(engine)
    except SQLAlchemyError as exc:
        raise InitializationError(f"failed to initialize task database at {path}: {exc}") from exc

    logger.info("Task database ready path=%s pool_size=%s", path, settings.pool_size)
    return Database(engine)
