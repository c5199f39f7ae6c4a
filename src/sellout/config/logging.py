"""Logging setup for the sellout command line."""

from __future__ import annotations

import logging
import os
from typing import Final

from .errors import ConfigurationError

LOG_LEVEL_ENV: Final[str] = "SELLOUT_LOG_LEVEL"
DEFAULT_LOG_LEVEL: Final[int] = logging.INFO
LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_log_level() -> int:
    """Return the level named by ``SELLOUT_LOG_LEVEL`` (INFO when unset)."""

    raw = os.getenv(LOG_LEVEL_ENV)
    if raw is None or not raw.strip():
        return DEFAULT_LOG_LEVEL
    name = raw.strip().upper()
    levels = logging.getLevelNamesMapping()
    if name not in levels:
        raise ConfigurationError(
            f"{LOG_LEVEL_ENV} must be one of {', '.join(sorted(levels))}, got {raw!r}"
        )
    return levels[name]


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger for a run.

    Chunk progress goes to stderr so the JSON report on stdout stays parseable.
    """

    logging.basicConfig(
        level=get_log_level() if level is None else level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        force=force,
    )
