# File: bookstack_backup/logger.py
"""Logging for **bookstack_backup**.

One project logger, ``BookStackBackup``, writes to stdout and optionally to a
rotating file.  Code that works on behalf of a configured instance logs through
:func:`for_instance`, which prefixes every message with ``[<instance name>]``::

    log = for_instance("wiki")
    log.info("Crawling book ID %s", book_id)   # -> "[wiki] Crawling book ID 3"
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Final, MutableMapping, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "BookStackBackup"
LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
LOG_FILE_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


class InstanceLogAdapter(logging.LoggerAdapter):
    """Prefixes messages with the instance name; the name is also set as ``record.instance``."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs.setdefault("extra", {}).setdefault("instance", self.extra["instance"])
        return f"[{self.extra['instance']}] {msg}", kwargs


def for_instance(name: str) -> InstanceLogAdapter:
    return InstanceLogAdapter(logging.getLogger(LOGGER_NAME), {"instance": name})


def _log_file_handler(file: Path | str, fmt: str) -> RotatingFileHandler:
    Path(file).parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(file),
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """(Re)configure the project logger.

    Parameters
    ----------
    level
        Numeric or textual logging level (e.g. ``"DEBUG"``).
    log_file
        Optional logfile; stdout is always written.
    log_format
        Format string for :class:`logging.Formatter`.
    replace_handlers
        Close and drop previously installed handlers first.
    """
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)

    if replace_handlers:
        for handler in list(lg.handlers):
            lg.removeHandler(handler)
            handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter(log_format))
    lg.addHandler(console)
    if log_file is not None:
        lg.addHandler(_log_file_handler(log_file, log_format))

    lg.propagate = False
    return lg


logger: logging.Logger = configure()

__all__ = [
    "logger",
    "configure",
    "for_instance",
    "InstanceLogAdapter",
    "DEFAULT_FORMAT",
    "LOGGER_NAME",
]
