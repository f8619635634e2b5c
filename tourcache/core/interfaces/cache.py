"""
Cache Backend Protocol

This module defines the protocol every shared-cache backend implements,
enabling dependency injection and testability.

Architectural Decision: Protocol-based abstraction
- The CacheManager is written against this protocol only
- "Is a backend configured?" is decided once, when the backend is built
  (RedisClient vs NullBackend), not re-checked by every call site
- Tests substitute in-memory fakes without inheritance

Author: System Architect
Date: 2026-02-11
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheBackend(Protocol):
    """
    Protocol defining the interface for shared cache backends.

    Implementations:
    - RedisClient: Production Redis-backed store
    - NullBackend: In-memory-only mode (no backend configured)

    Contract:
    - ``ping`` never raises; it reports reachability as a bool
    - every other coroutine raises CacheConnectionError (unreachable or
      timed out) or CacheOperationError (command failed)
    - values are UTF-8 JSON text, TTLs are whole seconds
    """

    @property
    def is_configured(self) -> bool:
        """Whether a real backend exists behind this adapter."""
        ...

    async def connect(self) -> None:
        """
        Establish connection to the backend.

        Raises:
            CacheConnectionError: If connection fails after retries
        """
        ...

    async def disconnect(self) -> None:
        """Close connection to the backend."""
        ...

    async def ping(self) -> bool:
        """
        Probe backend reachability.

        Returns:
            bool: True if healthy, False otherwise
        """
        ...

    async def get(self, key: str) -> str | None:
        """
        Get raw value.

        Returns:
            The stored text, or None if the key does not exist
        """
        ...

    async def setex(self, key: str, ttl: int, value: str) -> None:
        """Store ``value`` under ``key`` expiring after ``ttl`` seconds."""
        ...

    async def delete(self, *keys: str) -> int:
        """
        Delete keys.

        Returns:
            int: Number of keys deleted
        """
        ...

    async def scan(self, cursor: int, match: str, count: int) -> tuple[int, list[str]]:
        """
        One incremental SCAN step.

        Returns:
            (next_cursor, keys); a next_cursor of 0 ends the iteration
        """
        ...

    async def flushdb(self) -> None:
        """Remove every key in the backend's database."""
        ...

    async def health_check(self) -> dict[str, Any]:
        """
        Perform health check.

        Returns:
            Dict with health status and metrics
        """
        ...
