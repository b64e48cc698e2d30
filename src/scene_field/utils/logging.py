"""
Logging configuration for scene composition scripts.

The engine modules only create ``logging.getLogger(__name__)`` loggers;
scripts and host applications call :func:`setup_logging` once at startup.
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

LOG_FORMATS = {
    "simple": "%(levelname)s: %(message)s",
    "detailed": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "json": '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}',
}

# Preview rendering pulls these in; their DEBUG output drowns placement logs
NOISY_LIBRARIES = ("PIL", "matplotlib")


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    format_style: str = "detailed",
    quiet_libraries: Iterable[str] = NOISY_LIBRARIES,
) -> logging.Logger:
    """
    Configure the root logger for a script run.

    Console output goes to stderr, so a script can print its layout JSON
    to stdout. The named third-party loggers are held at WARNING or above
    regardless of ``level``.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        format_style: Log format style (simple, detailed, json)
        quiet_libraries: Logger names capped at WARNING

    Returns:
        Configured root logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMATS.get(format_style, LOG_FORMATS["detailed"]))

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    for name in quiet_libraries:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    return logging.getLogger()
