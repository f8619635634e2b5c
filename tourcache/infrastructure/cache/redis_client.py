"""
Redis Backend Adapter

Architecture:
    RedisClient (Public API, implements CacheBackend)
        ├── ConnectionManager (Lazy connection, bounded retried connect)
        ├── OperationExecutor (Command execution with timeouts and error translation)
        └── HealthMonitor (Health checks and pool metrics)

Guarantees:
    - No network I/O until the first operation (lazy connect)
    - Connect is retried with bounded exponential backoff, then gives up
    - Every command carries a timeout so a hung server cannot stall callers
    - Pattern deletion is driven through SCAN, never KEYS
    - Keys and values never appear in logs or exception details

Author: System Architect
Date: 2026-02-11
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError, RedisError, TimeoutError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tourcache.core.config.constants import CONNECT_BACKOFF_INITIAL, CONNECT_BACKOFF_MAX, Stage
from tourcache.core.config.settings import RedisSettings, get_settings
from tourcache.core.exceptions import (
    CacheConnectionError,
    CacheCorruptionError,
    CacheOperationError,
    CacheTimeoutError,
    ConfigurationError,
)
from tourcache.core.logging.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Failures worth another connection attempt
_RETRYABLE_CONNECT_ERRORS = (ConnectionError, TimeoutError, OSError, asyncio.TimeoutError)


# =============================================================================
# LAYER 1: CONNECTION MANAGEMENT
# Handles lazy connection, pooling and bounded reconnection
# =============================================================================


class ConnectionManager:
    """
    Manages Redis connection lifecycle and pooling.

    Responsibility: Connection establishment, pooling, and cleanup.

    Connection Policy:
    - Lazy: nothing is opened until ``connect`` is first awaited
    - Bounded retry: at most REDIS_CONNECT_MAX_ATTEMPTS pings, with
      exponential backoff capped at a few seconds
    - Bounded time: the whole retried connect is cut off at
      REDIS_CONNECT_DEADLINE
    - Concurrent callers share one connect attempt (asyncio.Lock)
    """

    def __init__(self, settings: RedisSettings):
        """
        Initialize connection manager.

        Args:
            settings: Redis settings (REDIS_URL must be set)
        """
        self._settings = settings
        self._pool: ConnectionPool | None = None
        self._client: redis.Redis | None = None
        self._is_connected = False
        self._lock = asyncio.Lock()

    async def connect(self) -> redis.Redis:
        """
        Establish connection to Redis with connection pooling.

        STAGE-REDIS.CONNECT: Connection establishment

        Returns:
            redis.Redis: Connected Redis client

        Raises:
            CacheConnectionError: If every attempt fails
        """
        if self._is_connected and self._client:
            return self._client

        async with self._lock:
            if self._is_connected and self._client:
                return self._client

            if self._client is None:
                self._pool = ConnectionPool.from_url(
                    self._settings.REDIS_URL,
                    max_connections=self._settings.REDIS_MAX_CONNECTIONS,
                    socket_connect_timeout=self._settings.REDIS_SOCKET_CONNECT_TIMEOUT,
                    socket_timeout=self._settings.REDIS_SOCKET_TIMEOUT,
                    health_check_interval=self._settings.REDIS_HEALTH_CHECK_INTERVAL,
                    decode_responses=True,  # Return strings instead of bytes
                )
                self._client = redis.Redis(connection_pool=self._pool)

            try:
                await asyncio.wait_for(
                    self._ping_with_retry(self._client),
                    timeout=self._settings.REDIS_CONNECT_DEADLINE,
                )
            except _RETRYABLE_CONNECT_ERRORS as e:
                logger.error(
                    "Failed to connect to Redis",
                    stage=Stage.REDIS_CONNECT.value,
                    attempts=self._settings.REDIS_CONNECT_MAX_ATTEMPTS,
                    error_type=type(e).__name__,
                )
                raise CacheConnectionError.from_exception(
                    e,
                    message="Failed to connect to Redis",
                    attempts=self._settings.REDIS_CONNECT_MAX_ATTEMPTS,
                ) from e

            self._is_connected = True
            logger.info("Redis connected successfully", stage=Stage.REDIS_CONNECT.value)
            return self._client

    async def _ping_with_retry(self, client: redis.Redis) -> None:
        """
        Ping until success or until the attempt budget is spent.

        Retry Strategy:
        - tenacity with exponential backoff (0.1s, 0.2s, 0.4s ... capped)
        - Only connection-level failures are retried
        - The last failure is re-raised unchanged
        """
        timeout = self._settings.REDIS_SOCKET_CONNECT_TIMEOUT

        @retry(
            stop=stop_after_attempt(self._settings.REDIS_CONNECT_MAX_ATTEMPTS),
            wait=wait_exponential(multiplier=CONNECT_BACKOFF_INITIAL, max=CONNECT_BACKOFF_MAX),
            retry=retry_if_exception_type(_RETRYABLE_CONNECT_ERRORS),
            reraise=True,
            before_sleep=lambda retry_state: logger.warning(
                "Redis connect attempt failed, retrying",
                stage=Stage.REDIS_RETRY.value,
                attempt=retry_state.attempt_number,
                delay=round(retry_state.next_action.sleep, 3) if retry_state.next_action else None,
            ),
        )
        async def _attempt() -> None:
            await asyncio.wait_for(client.ping(), timeout=timeout)

        await _attempt()

    async def disconnect(self) -> None:
        """
        Close Redis connection and pool.

        STAGE-REDIS.DISCONNECT: Connection cleanup
        """
        if self._client:
            await self._client.aclose()

        if self._pool:
            await self._pool.disconnect()

        self._client = None
        self._pool = None
        self._is_connected = False

        logger.info("Redis disconnected", stage=Stage.REDIS_DISCONNECT.value)

    def get_pool(self) -> ConnectionPool | None:
        """Get the connection pool instance."""
        return self._pool

    def is_connected(self) -> bool:
        """Check if connected to Redis."""
        return self._is_connected


# =============================================================================
# LAYER 2: OPERATION EXECUTOR
# Executes Redis commands with timeouts and error translation
# =============================================================================


class OperationExecutor:
    """
    Executes Redis operations with consistent error handling.

    Error Handling Strategy:
    - asyncio.wait_for bounds every command by REDIS_COMMAND_TIMEOUT
    - Timeouts (client or socket) → CacheTimeoutError
    - Connection failures → CacheConnectionError
    - Any other RedisError → CacheOperationError
    - A GET reply that is not UTF-8 → CacheCorruptionError
    - Only the command name is logged, never the key
    """

    def __init__(self, connection_manager: ConnectionManager, command_timeout: float):
        self._conn_mgr = connection_manager
        self._timeout = command_timeout

    async def execute(self, command: str, call: Callable[[redis.Redis], Awaitable[T]]) -> T:
        """
        Run one command against a (lazily) connected client.

        Args:
            command: Command name for logging (e.g. "GET")
            call: Receives the client and returns the command coroutine
        """
        try:
            client = await self._conn_mgr.connect()
            return await asyncio.wait_for(call(client), timeout=self._timeout)
        except (asyncio.TimeoutError, TimeoutError) as e:
            logger.warning("Redis command timed out", stage=Stage.REDIS_COMMAND.value, command=command)
            raise CacheTimeoutError.from_exception(
                e, message=f"Redis {command} timed out", command=command, timeout=self._timeout
            ) from e
        except ConnectionError as e:
            logger.warning("Redis connection lost", stage=Stage.REDIS_COMMAND.value, command=command)
            raise CacheConnectionError.from_exception(
                e, message=f"Redis {command} failed: connection lost", command=command
            ) from e
        except RedisError as e:
            logger.error(
                "Redis command failed",
                stage=Stage.REDIS_COMMAND.value,
                command=command,
                error_type=type(e).__name__,
            )
            raise CacheOperationError.from_exception(
                e, message=f"Redis {command} failed", command=command
            ) from e

    async def get(self, key: str) -> str | None:
        try:
            return await self.execute("GET", lambda client: client.get(key))
        except UnicodeDecodeError as e:
            # The decode error message quotes raw bytes of the value
            raise CacheCorruptionError(
                "Cached value is not UTF-8 text",
                details={"command": "GET", "original_error": type(e).__name__},
            ) from e

    async def setex(self, key: str, ttl: int, value: str) -> None:
        await self.execute("SETEX", lambda client: client.setex(key, ttl, value))

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return await self.execute("DEL", lambda client: client.delete(*keys))

    async def scan(self, cursor: int, match: str, count: int) -> tuple[int, list[str]]:
        next_cursor, keys = await self.execute(
            "SCAN", lambda client: client.scan(cursor=cursor, match=match, count=count)
        )
        return int(next_cursor), list(keys)

    async def flushdb(self) -> None:
        await self.execute("FLUSHDB", lambda client: client.flushdb())


# =============================================================================
# LAYER 3: HEALTH MONITORING
# Health checks and connection pool metrics
# =============================================================================


class HealthMonitor:
    """
    Reports Redis reachability, ping latency and pool usage.
    """

    def __init__(self, connection_manager: ConnectionManager, executor: OperationExecutor):
        self._conn_mgr = connection_manager
        self._executor = executor

    async def health_check(self) -> dict[str, Any]:
        """
        Perform health check on Redis connection.

        STAGE-REDIS.HEALTH: Redis health check

        Returns:
            Dict with health status and metrics
        """
        health: dict[str, Any] = {
            "status": "healthy",
            "configured": True,
            "connected": self._conn_mgr.is_connected(),
            "ping_latency_ms": None,
            "pool_max_connections": None,
        }

        try:
            start = time.perf_counter()
            await self._executor.execute("PING", lambda client: client.ping())
            health["ping_latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
            health["connected"] = True
        except (CacheConnectionError, CacheOperationError) as e:
            health["status"] = "unhealthy"
            health["error"] = e.message
            return health

        pool = self._conn_mgr.get_pool()
        if pool:
            health["pool_max_connections"] = pool.max_connections

        return health


# =============================================================================
# LAYER 4: PUBLIC API
# =============================================================================


class RedisClient:
    """
    Async Redis backend for the cache manager.

    Usage:
        client = RedisClient(get_settings().redis)

        await client.setex("student:42:profile", 300, '{"name": "Ana"}')
        value = await client.get("student:42:profile")

        await client.disconnect()

    Constructing the client performs no I/O; the first command connects.
    """

    is_configured = True

    def __init__(self, settings: RedisSettings | None = None):
        """
        Initialize Redis client.

        STAGE-REDIS.INIT: Client initialization
        """
        self._settings = settings or get_settings().redis
        if not self._settings.REDIS_URL:
            raise ConfigurationError("RedisClient requires REDIS_URL to be set")

        self._conn_mgr = ConnectionManager(self._settings)
        self._executor = OperationExecutor(self._conn_mgr, self._settings.REDIS_COMMAND_TIMEOUT)
        self._health_monitor = HealthMonitor(self._conn_mgr, self._executor)

        logger.info(
            "Redis client initialized",
            stage=Stage.REDIS_INIT.value,
            command_timeout=self._settings.REDIS_COMMAND_TIMEOUT,
            connect_attempts=self._settings.REDIS_CONNECT_MAX_ATTEMPTS,
        )

    async def connect(self) -> None:
        """
        Establish the connection eagerly (optional, operations connect lazily).

        Raises:
            CacheConnectionError: If connection fails
        """
        await self._conn_mgr.connect()

    async def disconnect(self) -> None:
        await self._conn_mgr.disconnect()

    async def ping(self) -> bool:
        """
        Check Redis connection health.

        Returns:
            True if healthy, False otherwise (never raises)
        """
        try:
            await self._executor.execute("PING", lambda client: client.ping())
        except (CacheConnectionError, CacheOperationError):
            return False
        return True

    # -------------------------------------------------------------------------
    # Delegate to OperationExecutor
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        """Get value from Redis."""
        return await self._executor.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> None:
        """Set value in Redis with expiry."""
        await self._executor.setex(key, ttl, value)

    async def delete(self, *keys: str) -> int:
        """Delete keys from Redis."""
        return await self._executor.delete(*keys)

    async def scan(self, cursor: int, match: str, count: int) -> tuple[int, list[str]]:
        """One incremental SCAN step."""
        return await self._executor.scan(cursor, match, count)

    async def flushdb(self) -> None:
        """Remove every key in the current database."""
        await self._executor.flushdb()

    async def health_check(self) -> dict[str, Any]:
        """Perform health check on Redis connection."""
        return await self._health_monitor.health_check()
