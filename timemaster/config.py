from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

def _resolve_project_root() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]


PROJECT_ROOT = _resolve_project_root()


def load_env() -> None:
    env_name = os.getenv("APP_ENV", "development")
    candidates = [Path.cwd(), PROJECT_ROOT]
    for base in candidates:
        env_path = base / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            break

    for base in candidates:
        env_specific = base / f".env.{env_name}"
        if env_specific.exists():
            load_dotenv(env_specific, override=True)
            break


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    database_path: Path
    pool_size: int = 8
    pool_timeout: float = 30.0
    seed_on_start: bool = True
    log_level: str = "INFO"
    log_dir: str = "logs"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from None


def _flag_env(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw not in {"0", "false", "no", "off"}


def load_settings() -> Settings:
    data_dir = Path(
        os.getenv("TIMEMASTER_DATA_DIR", "").strip() or Path.home() / ".timemaster"
    ).expanduser()
    db_path = os.getenv("TIMEMASTER_DB_PATH", "").strip()
    database_path = (
        Path(db_path).expanduser() if db_path else data_dir / "storage" / "timemaster.db"
    )

    pool_size = _int_env("TIMEMASTER_POOL_SIZE", 8)
    if pool_size < 1:
        raise RuntimeError("TIMEMASTER_POOL_SIZE must be at least 1.")

    return Settings(
        data_dir=data_dir,
        database_path=database_path,
        pool_size=pool_size,
        pool_timeout=float(_int_env("TIMEMASTER_POOL_TIMEOUT", 30)),
        seed_on_start=_flag_env("TIMEMASTER_SEED", True),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_dir=os.getenv("LOG_DIR", "logs"),
    )


load_env()

SETTINGS = load_settings()
