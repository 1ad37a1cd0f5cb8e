"""Logging for amazoncf.

The driver logs through loguru and stays silent until the host tool
calls setup_logging(). Debug output shows every poll attempt, so a
stack that takes minutes to come up is visible while it happens.

Example:
    handler_ids = setup_logging(debug=True, file=Path("create-web-1.log"))
    try:
        driver.create()
    finally:
        teardown_logging(handler_ids)
"""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

logger.disable("amazoncf")

STDERR_FORMAT = "<level>{level: <7}</level> <cyan>{name}</cyan> {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} {level: <7} {name}:{function}:{line} {message}"


def setup_logging(*, debug: bool = False, file: Path | None = None) -> list[int]:
    """Route amazoncf logs to stderr and, optionally, a file.

    Stderr gets warnings and above, or everything when ``debug`` is set.
    The file always receives debug output.

    Returns:
        Handler IDs to pass to teardown_logging().
    """
    logger.enable("amazoncf")
    handler_ids = [
        logger.add(
            sys.stderr,
            level="DEBUG" if debug else "WARNING",
            format=STDERR_FORMAT,
            filter="amazoncf",
        )
    ]

    if file is not None:
        file.parent.mkdir(parents=True, exist_ok=True)
        handler_ids.append(
            logger.add(
                file,
                level="DEBUG",
                format=FILE_FORMAT,
                diagnose=False,  # tracebacks may carry credentials
                filter="amazoncf",
            )
        )

    return handler_ids


def teardown_logging(handler_ids: list[int]) -> None:
    for hid in handler_ids:
        logger.remove(hid)
    logger.disable("amazoncf")
