from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler

from timemaster.config import SETTINGS, Settings


def setup_logging(settings: Settings = SETTINGS) -> None:
    log_dir = settings.data_dir / settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "timemaster.log"

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = RotatingFileHandler(log_file, maxBytes=2_000_000, backupCount=3)
    file_handler.setFormatter(formatter)

    # stdout carries command responses
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)

    logging.basicConfig(
        level=settings.log_level.upper(),
        handlers=[file_handler, console_handler],
    )
