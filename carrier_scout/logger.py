"""Logging for **CarrierScout**.

Every record carries two context fields filled in by :class:`CarrierContextFilter`:

* ``batch`` is the batch index set once per run with :func:`bind_batch`;
* ``identifier`` is the carrier currently being processed, set with
  :func:`identifier_context`. It lives in a :class:`contextvars.ContextVar`,
  so concurrent pipeline tasks of one slice each log their own identifier.

Usage::

    from carrier_scout.logger import logger, identifier_context

    with identifier_context("MC-123456"):
        logger.info("SAVED")
"""
from __future__ import annotations

import contextlib
import contextvars
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Iterator, Optional, Union

LOGGER_NAME: Final[str] = "CarrierScout"
DEFAULT_FORMAT: Final[str] = (
    "%(asctime)s | %(levelname)-8s | batch %(batch)s | %(identifier)s | %(message)s"
)
NO_IDENTIFIER: Final[str] = "-"

_LevelT = Union[int, str]

_current_identifier: contextvars.ContextVar[str] = contextvars.ContextVar(
    "carrier_scout_identifier", default=NO_IDENTIFIER
)


class CarrierContextFilter(logging.Filter):
    """Stamps ``batch`` and ``identifier`` onto each record passing a handler."""

    def __init__(self, batch_index: Optional[int] = None) -> None:
        super().__init__()
        self.batch_index = batch_index

    def filter(self, record: logging.LogRecord) -> bool:
        record.batch = "-" if self.batch_index is None else self.batch_index
        record.identifier = _current_identifier.get()
        return True


_context_filter = CarrierContextFilter()


@contextlib.contextmanager
def identifier_context(identifier: str) -> Iterator[None]:
    token = _current_identifier.set(identifier or NO_IDENTIFIER)
    try:
        yield
    finally:
        _current_identifier.reset(token)


def bind_batch(batch_index: Optional[int]) -> None:
    """Batch index shown in every subsequent record."""
    _context_filter.batch_index = batch_index


def batch_log_file(log_file: Union[str, Path], batch_index: int) -> Path:
    """Expand a ``{batch}`` placeholder, so parallel batch runs write separate logs."""
    return Path(str(log_file).format(batch=batch_index))


def _handler(handler: logging.Handler, fmt: str) -> logging.Handler:
    handler.setFormatter(logging.Formatter(fmt))
    handler.addFilter(_context_filter)
    return handler


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: Union[str, Path, None] = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Replace the handlers of the project logger.

    Output always goes to stdout; with *log_file* it is also written to a
    rotating file (5 MB, three backups).
    """
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)
    for old in list(lg.handlers):
        lg.removeHandler(old)
        old.close()

    lg.addHandler(_handler(logging.StreamHandler(sys.stdout), log_format))
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(log_file), maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
        lg.addHandler(_handler(file_handler, log_format))

    lg.propagate = False
    return lg


logger: logging.Logger = configure()

__all__ = [
    "DEFAULT_FORMAT",
    "CarrierContextFilter",
    "batch_log_file",
    "bind_batch",
    "configure",
    "identifier_context",
    "logger",
]
