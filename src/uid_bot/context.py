"""Process-wide state shared by concurrent ``/uid`` requests.

The only shared mutable value is the archive sequence used to give
delivered archives distinct, human-friendly file names. It lives for the
process lifetime and is not persisted.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field


class ArchiveSequence:
    """Monotonically increasing counter, safe to bump from any thread."""

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()
        self._last = start - 1

    def next(self) -> int:
        with self._lock:
            self._last = next(self._counter)
            return self._last

    @property
    def last(self) -> int:
        """Most recently issued number (``start - 1`` before first use)."""
        with self._lock:
            return self._last


@dataclass(frozen=True)
class BotContext:
    """Container for process-lifetime collaborators.

    Built once at startup and passed to every pipeline instance.
    """

    archive_sequence: ArchiveSequence = field(default_factory=ArchiveSequence)

    def next_archive_number(self) -> int:
        return self.archive_sequence.next()
