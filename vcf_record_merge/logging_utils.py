"""Shared logging helpers and error types for VCF record merging.

The module wires the ``vcf_record_merge`` logger to emit timestamped messages to
the console. Importing the module triggers :func:`configure_logging` with
console output only, so library callers never get a log file they did not ask
for. Long-running pipelines can call :func:`configure_logging` again with
``log_file`` to keep a persistent trail; repeated invocations clear previous
handlers so no duplicate outputs are accumulated.

For error handling the module defines :class:`MergeVCFError` and two
specialised subclasses. :class:`RecordConsistencyError` signals that an
upstream invariant was broken (records with different reference spans grouped
together, FORMAT columns that disagree with the sample count) and should never
be swallowed. :class:`VcfFormatError` signals inconsistent input data, such as
two records disagreeing on the reference bases at one locus or a malformed
genotype, and is meant to be caught and reported per record by callers.
:func:`handle_critical_error` logs such failures at ``ERROR`` and ``CRITICAL``
level before raising them, while :func:`handle_non_critical_error` records
recoverable conditions as warnings.
"""
from __future__ import annotations

import logging
import os
from typing import Iterable

LOGGER_NAME = "vcf_record_merge"
LOG_FORMAT = "%(asctime)s : %(levelname)s : %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(LOGGER_NAME)
logger.propagate = False


def _normalize_level(level: int | str) -> int:
    """Return a numeric logging level for *level*."""
    if isinstance(level, str):
        name = level.upper()
        numeric = logging.getLevelName(name)
        if not isinstance(numeric, int):
            raise ValueError(f"Unknown log level: {level}")
        return numeric
    return int(level)


def _clear_handlers(existing: Iterable[logging.Handler]) -> None:
    for h in list(existing):
        try:
            h.close()
        finally:
            logger.removeHandler(h)


def configure_logging(
    *,
    log_level: int | str = logging.INFO,
    log_file: str | os.PathLike[str] | None = None,
    enable_file_logging: bool = True,
    enable_console: bool = True,
    create_dirs: bool = True,
) -> None:
    """Idempotent logger setup for the record merger.

    A file handler is only attached when *log_file* is given and
    *enable_file_logging* is true.
    """
    level = _normalize_level(log_level)
    _clear_handlers(logger.handlers)
    logger.setLevel(level)

    fmt = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    if enable_file_logging and log_file:
        path = os.fspath(log_file)
        if create_dirs:
            d = os.path.dirname(path)
            if d:
                os.makedirs(d, exist_ok=True)
        fh = logging.FileHandler(path)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    if enable_console:
        sh = logging.StreamHandler()
        sh.setFormatter(fmt)
        logger.addHandler(sh)


class MergeVCFError(RuntimeError):
    """Base exception for errors raised while building or merging records."""


class RecordConsistencyError(MergeVCFError):
    """Raised when an internal invariant of a record or merge group is broken."""


class VcfFormatError(MergeVCFError):
    """Raised when record contents are inconsistent or malformed."""


def log_message(
    message: str,
    level: int = logging.INFO,
    *,
    exc_info: BaseException | bool | None = None,
) -> None:
    """Log *message* on the package logger at the requested level."""

    logger.log(level, message, exc_info=exc_info)


def handle_critical_error(
    message: str,
    exc_cls=None,
    *,
    exc_info: BaseException | bool | None = None,
) -> None:
    """Log and raise an error that must not be swallowed."""

    log_message(message, level=logging.ERROR)
    logger.critical(message, exc_info=exc_info)
    exception_class = exc_cls or MergeVCFError
    if isinstance(exc_info, BaseException):
        raise exception_class(message) from exc_info
    raise exception_class(message)


def handle_non_critical_error(message: str) -> None:
    """Log a recoverable condition as a warning."""

    log_message(message, level=logging.WARNING)


__all__ = [
    "LOGGER_NAME",
    "configure_logging",
    "logger",
    "log_message",
    "handle_critical_error",
    "handle_non_critical_error",
    "MergeVCFError",
    "RecordConsistencyError",
    "VcfFormatError",
]

# Default configuration: console only at INFO level.
configure_logging()
