"""
Logging configuration using loguru.

Every reverie module logs through ``loguru.logger`` directly. Call
``setup_logging()`` once at process start to choose the level and an optional
log file; without it loguru's default stderr sink is used.
"""

import sys

from loguru import logger

_CONSOLE_FORMAT = "<level>[{level.name}]</level> <cyan>{name}</cyan> {message}"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Configure loguru with a stderr sink and an optional rotating file sink.

    Stdout is left alone: tool hosts may use it as their transport.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Path to log file. If None, only logs to stderr.
        rotation: Log file rotation size.
        retention: How long to keep rotated logs.
    """
    level = level.upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT)

    if log_file:
        logger.add(log_file, level=level, format=_FILE_FORMAT, rotation=rotation, retention=retention)
    logger.debug(f"Logging configured at {level}" + (f", file={log_file}" if log_file else ""))


def setup_logging_from_config(config) -> None:
    """Apply ``logging.level`` / ``logging.file`` from a Config."""
    setup_logging(
        level=config.get("logging.level", "WARNING") or "WARNING",
        log_file=config.get("logging.file") or None,
    )
