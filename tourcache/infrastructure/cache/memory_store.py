"""
In-Memory Fallback Store

Process-local key → (value, expiry) table used whenever the shared backend
is unavailable or fails mid-operation.

STAGE-2.1: Memory fallback

Expiry is lazy: an expired entry is removed when it is read, and the whole
table is swept once its size crosses the cleanup threshold. There is no
timer task.

Values are stored as the same serialized JSON text that would have been
written to the backend, so reads from either store go through one
deserialization path.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

from tourcache.core.config.constants import MEMORY_CLEANUP_THRESHOLD, Stage
from tourcache.core.logging.logger import get_logger
from tourcache.infrastructure.cache.validators import glob_to_regex

logger = get_logger(__name__)


@dataclass(slots=True)
class MemoryEntry:
    """A cached value with an absolute expiry timestamp."""

    value: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now


class MemoryStore:
    """
    Dict-backed store with lazy TTL expiry.

    Single event loop: no lock is needed because no method suspends.

    Args:
        cleanup_threshold: Size above which an insert triggers a full sweep
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(
        self,
        cleanup_threshold: int = MEMORY_CLEANUP_THRESHOLD,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._entries: dict[str, MemoryEntry] = {}
        self._cleanup_threshold = cleanup_threshold
        self._clock = clock

    def get(self, key: str) -> str | None:
        """
        Return the stored text, or None if absent or expired.

        An expired entry is deleted as a side effect.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None

        return entry.value

    def set(self, key: str, value: str, ttl: int) -> None:
        """Store ``value`` expiring ``ttl`` seconds from now."""
        self._entries[key] = MemoryEntry(value=value, expires_at=self._clock() + ttl)

        if len(self._entries) > self._cleanup_threshold:
            self.sweep_expired()

    def delete(self, key: str) -> bool:
        """Returns True if the key was present."""
        return self._entries.pop(key, None) is not None

    def delete_matching(self, pattern: str) -> int:
        """
        Delete every key matching a deletion glob.

        Returns:
            Number of entries removed
        """
        regex = glob_to_regex(pattern)
        # Collect first, the dict cannot change size while iterating
        matched = [key for key in self._entries if regex.match(key)]
        for key in matched:
            del self._entries[key]
        return len(matched)

    def sweep_expired(self) -> int:
        """
        Remove all expired entries.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.debug(
                "Swept expired memory entries", stage=Stage.CACHE_SWEEP.value, removed=len(expired)
            )
        return len(expired)

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def keys(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
