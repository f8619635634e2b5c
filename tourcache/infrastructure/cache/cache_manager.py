"""
Cache Manager with Backend Health Tracking and In-Memory Fallback

Architecture:
    CacheManager (Public API)
        ├── CacheBackend (RedisClient or NullBackend, chosen once)
        ├── MemoryStore (Fallback when the backend is unavailable)
        ├── RequestCoalescer (One computation per key for cached())
        └── CacheObserver (Statistics & logging)

Routing:
    - Backend availability is probed with PING at most once per
      health_check_interval; the result is cached between probes
    - Healthy backend → backend; any backend error marks it unhealthy and
      the same operation completes against the memory store
    - Unhealthy or unconfigured backend → memory store only

Failure Semantics:
    - Backend errors never escape get/set/delete/delete_pattern/cached
    - Validation errors (key, pattern, TTL, payload) always do
    - Keys and values never appear in logs; the key namespace may

Author: System Architect
Date: 2026-02-11
"""

import inspect
import time
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timezone
from typing import Any, Union

import orjson

from tourcache.core.config.constants import (
    DEFAULT_TTL,
    DELETE_BATCH_SIZE,
    HEALTH_CHECK_INTERVAL,
    MAX_VALUE_SIZE_BYTES,
    MEMORY_CLEANUP_THRESHOLD,
    SCAN_COUNT,
    BackendStatus,
    Stage,
)
from tourcache.core.config.settings import Settings, get_settings
from tourcache.core.exceptions import (
    CacheCorruptionError,
    CacheError,
    InvalidTTLError,
    PayloadTooLargeError,
    SerializationError,
)
from tourcache.core.interfaces.cache import CacheBackend
from tourcache.core.logging.logger import get_logger, log_stage
from tourcache.infrastructure.cache.backends import create_backend
from tourcache.infrastructure.cache.coalescer import RequestCoalescer
from tourcache.infrastructure.cache.memory_store import MemoryStore
from tourcache.infrastructure.cache.validators import (
    namespace_of,
    validate_key,
    validate_pattern,
)

logger = get_logger(__name__)

JSONValue = Union[dict[str, Any], list[Any], str, int, float, bool, None]


class _Miss:
    """Marker returned by ``get`` when nothing usable is cached."""

    _instance: "_Miss | None" = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISS"


MISS = _Miss()


# =============================================================================
# OBSERVABILITY
# Tracks hit/miss counters and logs cache events
# =============================================================================


class CacheObserver:
    """
    Tracks cache performance counters and logs operations.

    Metrics Tracked:
    - Hits per source (backend, memory) and misses
    - Writes that landed in memory because the backend was unavailable
    - Backend errors recovered by falling back to memory
    """

    def __init__(self, logger_instance=None):
        self._logger = logger_instance or logger

        self._hits_backend = 0
        self._hits_memory = 0
        self._misses = 0
        self._memory_fallbacks = 0
        self._backend_errors = 0

    def record_hit(self, source: str, key: str) -> None:
        if source == "backend":
            self._hits_backend += 1
        else:
            self._hits_memory += 1
        log_stage(
            self._logger, Stage.CACHE_GET, "Cache hit", level="debug",
            source=source, namespace=namespace_of(key),
        )

    def record_miss(self, source: str, key: str) -> None:
        self._misses += 1
        log_stage(
            self._logger, Stage.CACHE_GET, "Cache miss", level="debug",
            source=source, namespace=namespace_of(key),
        )

    def record_memory_fallback(self) -> None:
        self._memory_fallbacks += 1

    def record_backend_error(self, command: str, key: str, error: CacheError) -> None:
        self._backend_errors += 1
        log_stage(
            self._logger,
            Stage.CACHE_HEALTH,
            "Cache backend operation failed, falling back to memory",
            level="warning",
            command=command,
            namespace=namespace_of(key),
            error_type=type(error).__name__,
        )

    def get_stats(self) -> dict[str, Any]:
        """
        Get cache performance statistics.

        Returns:
            Dict with hit/miss counters and hit rate
        """
        hits = self._hits_backend + self._hits_memory
        total = hits + self._misses

        return {
            "backend_hits": self._hits_backend,
            "memory_hits": self._hits_memory,
            "misses": self._misses,
            "total_requests": total,
            "hit_rate": round(hits / total, 3) if total > 0 else 0.0,
            "memory_fallbacks": self._memory_fallbacks,
            "backend_errors": self._backend_errors,
        }


# =============================================================================
# PUBLIC API
# =============================================================================


class CacheManager:
    """
    Cache manager over a shared backend with an in-memory fallback.

    Usage:
        cache = CacheManager(create_backend(settings))

        await cache.set("student:42:profile", {"name": "Ana"}, ttl=CacheTTL.DASHBOARD)
        profile = await cache.get("student:42:profile")
        if profile is MISS:
            ...

        # Cache-aside with request coalescing
        profile = await cache.cached("student:42:profile", load_profile)

        # Bulk invalidation inside one namespace
        await cache.delete_pattern("student:42:*")

    A cached ``None`` is returned as ``None``; absence is ``MISS``.
    """

    def __init__(
        self,
        backend: CacheBackend,
        *,
        default_ttl: int = DEFAULT_TTL,
        health_check_interval: float = HEALTH_CHECK_INTERVAL,
        max_value_bytes: int = MAX_VALUE_SIZE_BYTES,
        memory_cleanup_threshold: int = MEMORY_CLEANUP_THRESHOLD,
        delete_batch_size: int = DELETE_BATCH_SIZE,
        environment: str = "development",
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize cache manager.

        STAGE-CACHE.INIT: Cache manager initialization

        Args:
            backend: Shared backend (RedisClient or NullBackend)
            default_ttl: TTL used when ``set``/``cached`` get none
            health_check_interval: Seconds a PING result stays valid
            max_value_bytes: Upper bound on a serialized value
            memory_cleanup_threshold: Memory size that triggers an expiry sweep
            delete_batch_size: Keys per DEL during pattern deletion
            environment: Deployment environment (guards full flushes)
            clock: Monotonic time source (injectable for tests)
        """
        self._backend = backend
        self._default_ttl = self._validate_ttl(default_ttl)
        self._health_check_interval = health_check_interval
        self._max_value_bytes = max_value_bytes
        self._delete_batch_size = delete_batch_size
        self._environment = environment
        self._clock = clock

        self._memory = MemoryStore(cleanup_threshold=memory_cleanup_threshold, clock=clock)
        self._coalescer = RequestCoalescer()
        self._observer = CacheObserver()

        # Backend health state
        self._backend_available: bool | None = None
        self._last_health_check: float | None = None

        log_stage(
            logger,
            Stage.CACHE_INIT,
            "Cache manager initialized",
            backend_configured=backend.is_configured,
            default_ttl=self._default_ttl,
            environment=environment,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, backend: CacheBackend | None = None
    ) -> "CacheManager":
        """Build a manager (and, unless given, its backend) from settings."""
        settings = settings or get_settings()
        return cls(
            backend or create_backend(settings),
            default_ttl=settings.cache.CACHE_DEFAULT_TTL,
            environment=settings.app.ENVIRONMENT,
        )

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    @property
    def environment(self) -> str:
        return self._environment

    @property
    def is_production(self) -> bool:
        return self._environment == "production"

    @property
    def backend_status(self) -> BackendStatus:
        """Last known backend state (no I/O)."""
        if self._backend_available is None:
            return BackendStatus.UNKNOWN
        return BackendStatus.AVAILABLE if self._backend_available else BackendStatus.UNAVAILABLE

    # -------------------------------------------------------------------------
    # Backend Health
    # -------------------------------------------------------------------------

    async def check_backend_health(self) -> bool:
        """
        Report whether the shared backend should be used.

        STAGE-CACHE.HEALTH: Backend availability

        A result younger than ``health_check_interval`` is returned without
        I/O. Otherwise the backend is pinged and the result and timestamp are
        stored, whatever the outcome. An unconfigured backend is unavailable
        without any I/O.
        """
        if not self._backend.is_configured:
            self._set_backend_state(False)
            return False

        now = self._clock()
        if (
            self._backend_available is not None
            and self._last_health_check is not None
            and now - self._last_health_check < self._health_check_interval
        ):
            return self._backend_available

        try:
            available = bool(await self._backend.ping())
        except Exception as e:
            # ping() is not supposed to raise; a backend that does is down
            logger.warning(
                "Cache backend ping raised",
                stage=Stage.CACHE_HEALTH.value,
                error_type=type(e).__name__,
            )
            available = False

        self._last_health_check = now
        self._set_backend_state(available)
        return available

    def mark_backend_unhealthy(self) -> None:
        """
        Record a failed backend operation.

        The backend is skipped until the next probe, at most
        ``health_check_interval`` seconds from now.
        """
        self._last_health_check = self._clock()
        self._set_backend_state(False)

    def _set_backend_state(self, available: bool) -> None:
        previous = self._backend_available
        self._backend_available = available

        if previous == available:
            return

        if available:
            log_stage(logger, Stage.CACHE_HEALTH, "Cache backend available")
        elif self._backend.is_configured:
            log_stage(
                logger, Stage.CACHE_HEALTH,
                "Cache backend unavailable, using in-memory fallback", level="warning",
            )
        else:
            log_stage(logger, Stage.CACHE_HEALTH, "No cache backend configured, using memory only")

    def _on_backend_error(self, command: str, key: str, error: CacheError) -> None:
        self._observer.record_backend_error(command, key, error)
        self.mark_backend_unhealthy()

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def _serialize(self, value: Any) -> str:
        """
        Encode ``value`` as JSON text and enforce the size limit.

        Raises:
            SerializationError: If value is not JSON-serializable
            PayloadTooLargeError: If the encoded value exceeds max_value_bytes
        """
        try:
            data = orjson.dumps(value)
        except TypeError as e:  # orjson.JSONEncodeError is a TypeError
            raise SerializationError(
                "Value is not JSON-serializable",
                details={"value_type": type(value).__name__},
            ) from e

        if len(data) > self._max_value_bytes:
            raise PayloadTooLargeError(
                "Serialized value exceeds the cache size limit",
                details={"size_bytes": len(data), "max_bytes": self._max_value_bytes},
            )

        return data.decode("utf-8")

    @staticmethod
    def _deserialize(raw: str) -> Any:
        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise CacheCorruptionError.from_exception(e, message="Cached value is not valid JSON") from e

    @staticmethod
    def _validate_ttl(ttl: Any) -> int:
        # bool is an int subclass; True is not a TTL
        if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl <= 0:
            raise InvalidTTLError(
                "TTL must be a positive integer number of seconds",
                details={"ttl_type": type(ttl).__name__},
            )
        return int(ttl)

    def _resolve_ttl(self, ttl: int | None) -> int:
        return self._default_ttl if ttl is None else self._validate_ttl(ttl)

    # -------------------------------------------------------------------------
    # Core Cache Operations
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> Any:
        """
        Get a cached value.

        STAGE-CACHE.GET: Backend lookup, memory fallback

        Args:
            key: Namespaced cache key

        Returns:
            The cached value (possibly ``None``), or ``MISS``

        Raises:
            InvalidKeyError: If the key is invalid (before any store access)
        """
        validate_key(key)

        if await self.check_backend_health():
            try:
                raw = await self._backend.get(key)
            except CacheCorruptionError:
                await self._discard_corrupt_backend_entry(key)
                self._observer.record_miss("backend", key)
                return MISS
            except CacheError as e:
                self._on_backend_error("GET", key, e)
            else:
                if raw is None:
                    self._observer.record_miss("backend", key)
                    return MISS

                try:
                    value = self._deserialize(raw)
                except CacheCorruptionError:
                    await self._discard_corrupt_backend_entry(key)
                    self._observer.record_miss("backend", key)
                    return MISS

                self._observer.record_hit("backend", key)
                return value

        raw = self._memory.get(key)
        if raw is None:
            self._observer.record_miss("memory", key)
            return MISS

        try:
            value = self._deserialize(raw)
        except CacheCorruptionError:
            self._memory.delete(key)
            self._observer.record_miss("memory", key)
            return MISS

        self._observer.record_hit("memory", key)
        return value

    async def _discard_corrupt_backend_entry(self, key: str) -> None:
        logger.warning(
            "Discarding unparseable cache entry",
            stage=Stage.CACHE_GET.value,
            namespace=namespace_of(key),
        )
        try:
            await self._backend.delete(key)
        except CacheError as e:
            self._on_backend_error("DEL", key, e)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """
        Store a value.

        STAGE-CACHE.SET: Backend write, memory fallback

        The value is serialized and size-checked before any store is
        touched, so a rejected value leaves both stores unchanged.

        Args:
            key: Namespaced cache key
            value: JSON-serializable value (``None`` allowed)
            ttl: Seconds until expiry (default: ``default_ttl``)

        Raises:
            InvalidKeyError, InvalidTTLError, SerializationError,
            PayloadTooLargeError
        """
        validate_key(key)
        ttl = self._resolve_ttl(ttl)
        payload = self._serialize(value)

        if await self.check_backend_health():
            try:
                await self._backend.setex(key, ttl, payload)
                return
            except CacheError as e:
                self._on_backend_error("SETEX", key, e)

        self._memory.set(key, payload, ttl)
        self._observer.record_memory_fallback()
        log_stage(logger, Stage.CACHE_SET, "Cache value stored in memory", level="debug",
                  namespace=namespace_of(key), ttl=ttl)

    async def delete(self, key: str) -> None:
        """
        Remove a key from the backend (best effort) and from memory.

        STAGE-CACHE.DELETE: Cache invalidation
        """
        validate_key(key)

        if await self.check_backend_health():
            try:
                await self._backend.delete(key)
            except CacheError as e:
                self._on_backend_error("DEL", key, e)

        self._memory.delete(key)
        log_stage(logger, Stage.CACHE_DELETE, "Cache key deleted", level="debug",
                  namespace=namespace_of(key))

    async def delete_pattern(self, pattern: str) -> None:
        """
        Delete every key matching a namespaced glob.

        STAGE-CACHE.DELETE_PATTERN: Bulk invalidation

        The backend is walked with SCAN (never KEYS) and matches are removed
        in DEL batches; the memory store is always purged as well, even when
        the backend side fails.

        Raises:
            InvalidPatternError: If the pattern is not namespace-bounded
        """
        validate_pattern(pattern)

        backend_deleted = 0
        if await self.check_backend_health():
            try:
                backend_deleted = await self._delete_backend_matching(pattern)
            except CacheError as e:
                self._on_backend_error("SCAN", pattern, e)

        memory_deleted = self._memory.delete_matching(pattern)

        log_stage(
            logger,
            Stage.CACHE_DELETE_PATTERN,
            "Cache pattern invalidated",
            namespace=namespace_of(pattern),
            backend_deleted=backend_deleted,
            memory_deleted=memory_deleted,
        )

    async def _delete_backend_matching(self, pattern: str) -> int:
        deleted = 0
        batch: list[str] = []
        cursor = 0

        while True:
            cursor, keys = await self._backend.scan(cursor, match=pattern, count=SCAN_COUNT)
            batch.extend(keys)

            while len(batch) >= self._delete_batch_size:
                chunk, batch = batch[: self._delete_batch_size], batch[self._delete_batch_size:]
                deleted += await self._backend.delete(*chunk)

            if cursor == 0:
                break

        if batch:
            deleted += await self._backend.delete(*batch)

        return deleted

    # -------------------------------------------------------------------------
    # Cache-Aside
    # -------------------------------------------------------------------------

    async def cached(
        self,
        key: str,
        compute_fn: Callable[[], Awaitable[Any] | Any],
        ttl: int | None = None,
    ) -> Any:
        """
        Get from cache or compute, store and return the value.

        STAGE-CACHE.COMPUTE: Cache-aside with request coalescing

        Concurrent callers that miss on the same key share a single
        ``compute_fn`` invocation and all receive its result, or all receive
        its exception. Nothing is cached when ``compute_fn`` raises.

        Args:
            key: Namespaced cache key
            compute_fn: Async or plain callable producing the value
            ttl: Seconds until expiry (default: ``default_ttl``)
        """
        validate_key(key)
        ttl = self._resolve_ttl(ttl)

        value = await self.get(key)
        if value is not MISS:
            return value

        async def compute_and_store() -> Any:
            result = compute_fn()
            if inspect.isawaitable(result):
                result = await result
            await self.set(key, result, ttl)
            return result

        return await self._coalescer.run(key, compute_and_store)

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def clear_memory(self) -> None:
        """
        Drop every in-memory entry and pending computation tracker.

        STAGE-CACHE.CLEAR: The backend is not touched
        """
        entries = self._memory.clear()
        pending = self._coalescer.clear()
        log_stage(logger, Stage.CACHE_CLEAR, "In-memory cache cleared",
                  entries=entries, pending=pending)

    async def flush_backend(self) -> None:
        """
        Remove every key in the backend's database.

        Raises:
            CacheError: If the backend is unavailable or the flush fails
        """
        await self._backend.flushdb()

    async def close(self) -> None:
        """Disconnect the backend and drop local state."""
        await self._backend.disconnect()
        self._memory.clear()
        self._coalescer.clear()
        self._backend_available = None
        self._last_health_check = None
        log_stage(logger, Stage.CACHE_INIT, "Cache manager closed")

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    def stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dict with counters, memory size and pending computations
        """
        coalescer_stats = self._coalescer.get_stats()
        return {
            **self._observer.get_stats(),
            "coalesced": coalescer_stats["coalesced"],
            "pending_computations": coalescer_stats["active_requests"],
            "memory_entries": len(self._memory),
            "backend_configured": self._backend.is_configured,
            "backend_status": self.backend_status.value,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }

    async def health_check(self) -> dict[str, Any]:
        """
        Perform health check on the cache.

        Status is ``healthy`` while the shared backend is serving and
        ``degraded`` while the cache runs on the memory fallback.
        """
        available = await self.check_backend_health()

        if not self._backend.is_configured:
            backend_report: dict[str, Any] = {"status": "not_configured"}
        elif available:
            backend_report = await self._backend.health_check()
        else:
            backend_report = {"status": "unavailable"}

        return {
            "status": "healthy" if available else "degraded",
            "environment": self._environment,
            "backend": {
                "configured": self._backend.is_configured,
                "available": available,
                **backend_report,
            },
            "memory": {"entries": len(self._memory)},
            "pending_computations": self._coalescer.active_requests,
        }


def with_cache(
    manager: CacheManager,
    key_parts: Iterable[Any],
    compute_fn: Callable[[], Awaitable[Any] | Any],
    ttl: int | None = None,
) -> Awaitable[Any]:
    """
    ``cached()`` with the key built from parts joined by ``:``.

    Usage:
        await with_cache(cache, ["students", "approved", city], load, CacheTTL.APPROVED_STUDENTS)
    """
    key = ":".join(str(part) for part in key_parts)
    return manager.cached(key, compute_fn, ttl)


# =============================================================================
# GLOBAL INSTANCE (APPLICATION WIRING)
# =============================================================================

_cache_manager: CacheManager | None = None


def get_cache_manager() -> CacheManager:
    """
    Get the application-wide cache manager, building it from settings.

    Library code and tests should construct and inject their own
    CacheManager instead.
    """
    global _cache_manager

    if _cache_manager is None:
        _cache_manager = CacheManager.from_settings()

    return _cache_manager


async def init_cache() -> CacheManager:
    """
    Build the application-wide manager and probe its backend once.

    Returns:
        CacheManager: Initialized cache manager
    """
    manager = get_cache_manager()
    await manager.check_backend_health()
    return manager


async def close_cache() -> None:
    """Close and forget the application-wide cache manager."""
    global _cache_manager

    if _cache_manager:
        await _cache_manager.close()
        _cache_manager = None
