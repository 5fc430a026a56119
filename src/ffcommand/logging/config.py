"""Handler setup for applications and the ffcommand CLI.

The library itself only logs through module loggers; configure_logging()
is for programs that want ffcommand's own output format.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from ffcommand.logging.context import JobContextFilter
from ffcommand.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from ffcommand.config.models import LoggingConfig

# job_tag is "[J0001] " inside a job and empty otherwise
TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(job_tag)s%(name)s: %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

# Marks handlers installed here so reconfiguring replaces only those
_HANDLER_MARK = "_ffcommand_handler"


def _formatter(config: LoggingConfig) -> logging.Formatter:
    if config.format.casefold() == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)


def _file_handler(config: LoggingConfig) -> logging.Handler | None:
    if not config.file:
        return None
    path = Path(config.file).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"ffcommand: cannot open log file {path}: {e}\n")
        return None


def installed_handlers(logger: logging.Logger | None = None) -> list[logging.Handler]:
    """Return the handlers configure_logging() installed on `logger`."""
    logger = logger or logging.getLogger()
    return [h for h in logger.handlers if getattr(h, _HANDLER_MARK, False)]


def configure_logging(config: LoggingConfig) -> None:
    """Install ffcommand's handlers on the root logger.

    Logs go to the configured file, to stderr, or both. When the file
    cannot be opened, stderr is used instead. Handlers from an earlier call
    are removed and closed; handlers installed by others are left alone.

    Args:
        config: Logging configuration.
    """
    level = logging.getLevelName(config.level.upper())
    root = logging.getLogger()
    root.setLevel(level)

    for handler in installed_handlers(root):
        root.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = []
    file_handler = _file_handler(config)
    if file_handler is not None:
        handlers.append(file_handler)
    if config.include_stderr or file_handler is None:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter = _formatter(config)
    context_filter = JobContextFilter()
    for handler in handlers:
        setattr(handler, _HANDLER_MARK, True)
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root.addHandler(handler)
