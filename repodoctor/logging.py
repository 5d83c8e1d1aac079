"""Logging utilities for repodoctor commands.

Reports (text, JSON, bare scores) are the only thing repodoctor writes to
stdout, so every log record goes to stderr or the optional log file. This
keeps ``repodoctor check --json | jq`` and ``--score`` gates parseable even
with ``--verbose``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

_LOGGER_NAME = "repodoctor"
_BRIEF_FORMAT = "[repodoctor] %(levelname)s %(message)s"
# Rule checks may run on a worker pool; verbose output names the thread.
_VERBOSE_FORMAT = "[repodoctor] %(levelname)s [%(threadName)s] %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s]: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the repodoctor hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Send run logs to stderr (or ``stream``) and an optional log file.

    Without ``verbose`` only warnings surface (invalid config, crashing rules,
    unmatched ``--project`` filters); ``verbose`` adds per-run progress and
    full tracebacks for rule faults.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file is not None else level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(stream if stream is not None else sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_VERBOSE_FORMAT if verbose else _BRIEF_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        # The file always receives the full debug trail, whatever the console level.
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
