"""
Logging setup for the installer.

Every module logs through a child of the ``geode_installer`` logger, so
configuring that one logger covers the whole application.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

__all__ = ["logger", "setup_logging"]

logger = logging.getLogger("geode_installer")

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: int = logging.INFO, log_file: Path | None = None) -> None:
    """
    Sends installer log records to stdout and, optionally, to a file.

    Calling it again replaces the handlers installed by the previous call,
    so the level or log file can be changed after startup.

    Args:
        level (int): Threshold for console output.
        log_file (Path | None): File that receives every record at DEBUG level.
    """
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(_FORMAT, datefmt="%H:%M:%S")

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file is None:
        logger.setLevel(level)
        return

    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
    logger.setLevel(logging.DEBUG)
