"""Diagnostics shared by merge calls.

Merging records that were produced against overlapping sample headers can find
more than one input record for a sample. Each occurrence is counted on a
:class:`MergeDiagnostics` session and reported through its ``warn``
collaborator until ``warning_cap`` occurrences have been seen; the count keeps
growing after that so callers can still report the total. Increments are
serialized with a lock so one session can be shared by merges running on
several threads.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .config import DUPLICATE_WARNINGS_TO_PRINT
from .logging_utils import log_message

WarnCallback = Callable[[str], None]


def _log_warning(message: str) -> None:
    log_message(message, level=logging.WARNING)


class MergeDiagnostics:
    """Duplicate-sample counter with a capped warning channel."""

    def __init__(
        self,
        warn: Optional[WarnCallback] = None,
        warning_cap: int = DUPLICATE_WARNINGS_TO_PRINT,
    ):
        self._warn = warn or _log_warning
        self.warning_cap = warning_cap
        self._lock = threading.Lock()
        self._multiple_records_for_sample = 0

    @property
    def multiple_records_for_sample_count(self) -> int:
        with self._lock:
            return self._multiple_records_for_sample

    def record_duplicate_sample(self, sequence_name: str, one_based_pos: int, sample: str) -> int:
        """Count one duplicate record for *sample* and warn while under the cap."""
        with self._lock:
            self._multiple_records_for_sample += 1
            count = self._multiple_records_for_sample
        if count <= self.warning_cap:
            self._warn(
                f"Multiple records found at position: {sequence_name}:{one_based_pos} "
                f"for sample: {sample}. Keeping first."
            )
        return count

    def reset(self) -> None:
        with self._lock:
            self._multiple_records_for_sample = 0


_default_diagnostics = MergeDiagnostics()


def default_diagnostics() -> MergeDiagnostics:
    """Return the session used by merges that are not given one explicitly."""
    return _default_diagnostics


def get_multiple_records_for_sample_count() -> int:
    return _default_diagnostics.multiple_records_for_sample_count


def reset_multiple_records_for_sample_count() -> None:
    _default_diagnostics.reset()


__all__ = [
    "MergeDiagnostics",
    "default_diagnostics",
    "get_multiple_records_for_sample_count",
    "reset_multiple_records_for_sample_count",
]
