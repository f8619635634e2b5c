"""
Cache-Related Exceptions

Infrastructure failures of the shared backend. None of these escape the
CacheManager's public operations; they are caught at the operation boundary
and turned into a fallback to the in-memory store.

Author: System Architect
Date: 2026-02-11
"""

from tourcache.core.exceptions.base import TourCacheError


class CacheError(TourCacheError):
    """Base exception for cache-related errors."""
    pass


class CacheConnectionError(CacheError):
    """
    Raised when the backend cannot be reached.

    Common causes:
    - Redis server is down
    - Network connectivity issues
    - Backend not configured (in-memory-only mode)
    - Retries exhausted during connect
    """
    pass


class CacheTimeoutError(CacheConnectionError):
    """Raised when a single backend command exceeds its time budget."""
    pass


class CacheOperationError(CacheError):
    """
    Raised when a specific backend command fails on a reachable backend.

    Common causes:
    - Server-side error reply
    - Memory limit exceeded
    - Connection dropped mid-command
    """
    pass


class CacheCorruptionError(CacheError):
    """Raised when a stored value cannot be deserialized."""
    pass


class CacheFlushNotAllowedError(CacheError):
    """
    Raised when a full backend flush is requested without confirmation
    in a production environment.
    """
    pass
