"""In-memory circuit breaker for sources that keep failing."""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


class AttemptThrottle:
    """Counts failed resolutions per (source, target file name).

    Counts live for the lifetime of the process and are never persisted.
    Once a key has failed ``max_attempts`` times it is blocked until
    :meth:`reset` is called for it or the process restarts.
    """

    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self._counts: dict[tuple[str, str], int] = {}
        self._lock = threading.Lock()

    def attempts(self, source: str, target: str) -> int:
        with self._lock:
            return self._counts.get((source, target), 0)

    def is_blocked(self, source: str, target: str) -> bool:
        """Return True when ``source`` already failed ``max_attempts`` times."""
        return self.attempts(source, target) >= self.max_attempts

    def record_failure(self, source: str, target: str) -> int:
        """Atomically add one failure and return the new count."""
        key = (source, target)
        with self._lock:
            count = self._counts.get(key, 0) + 1
            self._counts[key] = count
        if count >= self.max_attempts:
            logger.info("Giving up on %r after %d failed attempts", source, count)
        return count

    def reset(self, source: str, target: str) -> None:
        with self._lock:
            self._counts.pop((source, target), None)

    def clear(self) -> None:
        with self._lock:
            self._counts.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)
