"""Logging setup shared by the API entrypoint and scripts."""
from __future__ import annotations

import logging


def configure_logging(level: int | str = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger with a terse format.

    `level` accepts a logging constant or a level name such as "DEBUG".
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        force=force,
    )


__all__ = ["configure_logging"]
