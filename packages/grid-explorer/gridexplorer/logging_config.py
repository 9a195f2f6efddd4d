"""Logging configuration for the Grid Explorer package.

Outside pytest every session writes to ``logs/grid_explorer_<UTC stamp>.log``
in the working directory. Under pytest only warnings reach stderr.
"""

import logging
import os
import sys
from datetime import UTC, datetime
from pathlib import Path

LOGGER_NAME = "gridexplorer"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(module)s - %(message)s"
LOG_LEVEL_CHOICES = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "NONE"]

_is_testing = (
    "PYTEST_CURRENT_TEST" in os.environ
    or os.environ.get("TESTING") == "1"
    or "pytest" in sys.modules
    or (sys.argv and sys.argv[0].endswith("pytest"))
)


def session_log_path(log_dir: Path, now: datetime | None = None) -> Path:
    """Return the log file path for a session starting at ``now`` (UTC)."""
    now = now or datetime.now(UTC)
    return log_dir / f"grid_explorer_{now.strftime('%Y%m%d_%H%M%S')}.log"


if not _is_testing:
    log_dir = Path.cwd() / "logs"
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(session_log_path(log_dir))
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.basicConfig(format=LOG_FORMAT, handlers=[file_handler])
    except OSError as exc:
        logging.basicConfig(format=LOG_FORMAT, level=logging.WARNING)
        logging.getLogger(LOGGER_NAME).warning(
            "Failed to initialize session log in %s: %s. Falling back to stderr logging.",
            log_dir,
            exc,
        )
else:
    logging.basicConfig(format=LOG_FORMAT, level=logging.WARNING)

logger = logging.getLogger(LOGGER_NAME)


def set_log_level(level: str) -> None:
    """
    Apply a CLI log level to the package logger and the session log file.

    Parameters
    ----------
    level : str
        One of ``LOG_LEVEL_CHOICES``, case-insensitive. ``NONE`` silences
        the package logger.

    Raises
    ------
    ValueError
        If ``level`` is not a known choice.
    """
    level = level.upper()
    if level not in LOG_LEVEL_CHOICES:
        error_message = f"Unknown log level '{level}'. Choose from {', '.join(LOG_LEVEL_CHOICES)}."
        logger.error(error_message)
        raise ValueError(error_message)

    if level == "NONE":
        logger.disabled = True
        return

    logger.disabled = False
    logger.setLevel(level)
    for handler in logging.getLogger().handlers:
        if isinstance(handler, logging.FileHandler):
            handler.setLevel(level)
