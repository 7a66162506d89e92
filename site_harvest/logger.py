# === FILE: site_harvest/logger.py ===
"""Logging setup for **SiteHarvest**.

Every module logs through one named logger, ``"SiteHarvest"``::

      from site_harvest.logger import logger
      logger.info("Crawl started: %s", url)

Console output goes to stdout by default; a rotating log file can be added.
The CLI calls :func:`init_logging` once its options are parsed, and
:func:`redirect_console` when stdout is reserved for the JSON result.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Optional, TextIO, Union

_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "SiteHarvest"

#: rotate the log file at 5 MiB, keep three old files
_MAX_LOG_BYTES: Final[int] = 5 * 1024 * 1024
_LOG_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


def _console_handler(stream: TextIO, fmt: str) -> logging.StreamHandler:
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _file_handler(file: Path | str, fmt: str) -> RotatingFileHandler:
    path = Path(file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=_MAX_LOG_BYTES,
        backupCount=_LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
    replace_handlers: bool = True,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """(Re)configure the project logger and return it.

    Parameters
    ----------
    level
        Numeric or textual logging level (e.g. ``"DEBUG"``).
    log_file
        Optional log file, rotated at 5 MiB. *None* means console only.
    log_format
        Format string for :class:`logging.Formatter`.
    replace_handlers
        Drop the handlers installed by an earlier call.
    stream
        Console stream; stdout when omitted.
    """
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)
    if replace_handlers:
        for old in lg.handlers:
            old.close()
        lg.handlers.clear()

    lg.addHandler(_console_handler(stream or sys.stdout, log_format))
    if log_file is not None:
        lg.addHandler(_file_handler(log_file, log_format))

    # records never reach the root logger, so pytest/app handlers stay quiet
    lg.propagate = False
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
) -> logging.Logger:
    """Entry point used by the CLI: fresh handlers with *level*, *log_file* and *log_format*."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


def redirect_console(stream: TextIO) -> None:
    """Point the console handler at *stream*, e.g. stderr while stdout carries a JSON document."""
    for handler in logging.getLogger(LOGGER_NAME).handlers:
        # RotatingFileHandler is a StreamHandler too; leave it alone
        if type(handler) is logging.StreamHandler:
            handler.setStream(stream)


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging", "redirect_console", "LOGGER_NAME"]
