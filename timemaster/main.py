from __future__ import annotations

import json
import logging
import sys
from typing import Any, TextIO

from timemaster.commands import TaskCommands
from timemaster.config import SETTINGS, Settings
from timemaster.domain.errors import InitializationError, TaskStoreError
from timemaster.infra.db import open_database
from timemaster.infra.logging import setup_logging
from timemaster.infra.repository import TaskRepository
from timemaster.services.task_service import TaskService

logger = logging.getLogger(__name__)


def handle_line(commands: TaskCommands, line: str) -> dict[str, Any]:
    try:
        request = json.loads(line)
    except json.JSONDecodeError as exc:
        return {"ok": False, "error": f"invalid request: {exc}"}
    if not isinstance(request, dict) or not isinstance(request.get("command"), str):
        return {"ok": False, "error": "invalid request: command is required"}

    try:
        data = commands.invoke(request["command"], request.get("args"))
    except TaskStoreError as exc:
        logger.warning("Command %s failed: %s", request["command"], exc)
        return {"ok": False, "error": str(exc)}
    return {"ok": True, "data": data}


def serve(commands: TaskCommands, stdin: TextIO, stdout: TextIO) -> None:
    for line in stdin:
        if not line.strip():
            continue
        response = handle_line(commands, line)
        stdout.write(json.dumps(response, ensure_ascii=False) + "\n")
        stdout.flush()


def main(settings: Settings = SETTINGS) -> int:
    setup_logging(settings)
    try:
        db = open_database(settings)
    except InitializationError as exc:
        logger.critical("Task store unavailable: %s", exc)
        return 1

    service = TaskService(TaskRepository(db))
    try:
        if settings.seed_on_start:
            service.ensure_seed_data()
        serve(TaskCommands(service), sys.stdin, sys.stdout)
    finally:
        db.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
