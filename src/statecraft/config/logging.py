"""Root logger setup for the command line."""

from __future__ import annotations

import logging
from typing import Final

from .env import optional_env_var
from .errors import ConfigurationError

LOG_LEVEL_ENV: Final[str] = "STATECRAFT_LOG_LEVEL"


def configure_logging(*, level: int | str | None = None, force: bool = False) -> None:
    """Configure the root logger for CLI output.

    ``level`` wins over ``STATECRAFT_LOG_LEVEL``; both fall back to INFO.
    """

    resolved = resolve_log_level(level if level is not None else optional_env_var(LOG_LEVEL_ENV))
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )


def resolve_log_level(value: int | str | None) -> int:
    if value is None:
        return logging.INFO
    if isinstance(value, int):
        return value
    resolved = logging.getLevelNamesMapping().get(value.upper())
    if resolved is None:
        raise ConfigurationError(f"Unknown log level: {value!r}", setting=LOG_LEVEL_ENV)
    return resolved
