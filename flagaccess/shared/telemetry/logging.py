"""Logging configuration for flagaccess."""

import logging
import sys

from flagaccess.core.config import Settings, get_settings

# Per-statement debug chatter from the SQLite driver thread.
_NOISY_LOGGERS = ("aiosqlite",)


def setup_logging(settings: Settings | None = None) -> None:
    """Configure process-wide logging.

    Level is DEBUG when settings.debug is True, otherwise settings.log_level.
    Output goes to stdout. Activity lines are emitted on the
    ``flagaccess.activity`` logger and follow the same level.
    """
    settings = settings or get_settings()
    log_level = logging.DEBUG if settings.debug else settings.log_level
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name.

    Args:
        name: Usually __name__ of the calling module.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
