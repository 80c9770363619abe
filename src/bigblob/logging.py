"""Logging utilities for bigblob.

Standard library logging under the ``bigblob`` logger; records are forwarded
to the active reporter so library diagnostics and progress output share one
stream.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from .reporting import get_reporter, get_verbosity

_LOGGER_NAME = "bigblob"
_STEP_PREFIX = "  ->"

__all__ = [
    "get_logger",
    "configure_logging",
    "section",
    "step",
]


def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)


class _ReporterHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            rep = get_reporter()
            msg = self.format(record)
            lvl = record.levelno
            if lvl >= logging.ERROR:
                rep.error(msg)
            elif lvl >= logging.WARNING:
                rep.warning(msg)
            elif lvl >= logging.INFO:
                rep.status(msg)
            else:
                rep.verbose(msg)
        except Exception:  # pragma: no cover
            self.handleError(record)


def configure_logging(verbosity: int = 0) -> None:
    """Attach the reporter handler; ``verbosity`` >= 1 enables DEBUG."""
    logger = get_logger()
    logger.setLevel(logging.DEBUG if verbosity >= 1 else logging.INFO)
    for h in list(logger.handlers):
        if isinstance(h, _ReporterHandler):
            logger.removeHandler(h)
    handler = _ReporterHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def step(message: str) -> None:
    get_reporter().status(f"{_STEP_PREFIX} {message}")


@contextmanager
def section(title: str) -> Iterator[logging.Logger]:
    logger = get_logger()
    get_reporter().section(title)
    try:
        yield logger
    finally:
        if get_verbosity() >= 1:
            logger.debug("end section: %s", title)
