"""
Unit Tests for RedisClient

Tests lazy connection, bounded connect retries, per-command timeouts and
translation of redis errors, against a mocked redis.asyncio client.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError, ResponseError, TimeoutError

from tests.test_fixtures.cache_factory import FakeClock
from tourcache.core.config.constants import BackendStatus
from tourcache.core.config.settings import RedisSettings
from tourcache.core.exceptions import (
    CacheConnectionError,
    CacheCorruptionError,
    CacheOperationError,
    CacheTimeoutError,
    ConfigurationError,
)
from tourcache.core.interfaces.cache import CacheBackend
from tourcache.infrastructure.cache.cache_manager import MISS, CacheManager
from tourcache.infrastructure.cache.redis_client import RedisClient

MODULE = "tourcache.infrastructure.cache.redis_client"


def make_settings(**overrides) -> RedisSettings:
    values = {
        "REDIS_URL": "redis://localhost:6379/0",
        "REDIS_COMMAND_TIMEOUT": 0.05,
        "REDIS_CONNECT_MAX_ATTEMPTS": 3,
        "REDIS_SOCKET_CONNECT_TIMEOUT": 0.05,
    }
    values.update(overrides)
    return RedisSettings(**values)


@pytest.fixture
def mock_redis():
    """Mocked redis.asyncio.Redis instance."""
    client = AsyncMock()
    client.ping = AsyncMock(return_value=True)
    return client


@pytest.fixture
def patched_redis(mock_redis):
    """Patch pool and client construction so no socket is ever opened."""
    with (
        patch(f"{MODULE}.ConnectionPool") as pool_cls,
        patch(f"{MODULE}.redis.Redis", return_value=mock_redis) as redis_cls,
    ):
        pool = MagicMock()
        pool.disconnect = AsyncMock()
        pool.max_connections = 50
        pool_cls.from_url.return_value = pool
        yield pool_cls, redis_cls


@pytest.fixture
def connected_client(mock_redis):
    """RedisClient with an already-connected mocked client."""
    client = RedisClient(make_settings())
    client._conn_mgr._client = mock_redis
    client._conn_mgr._is_connected = True
    return client


@pytest.mark.unit
class TestConstruction:
    """Test client construction and laziness."""

    def test_implements_backend_protocol(self):
        assert isinstance(RedisClient(make_settings()), CacheBackend)

    def test_requires_url(self):
        with pytest.raises(ConfigurationError):
            RedisClient(make_settings(REDIS_URL=None))

    def test_construction_performs_no_io(self, patched_redis):
        pool_cls, redis_cls = patched_redis

        client = RedisClient(make_settings())

        pool_cls.from_url.assert_not_called()
        redis_cls.assert_not_called()
        assert client.is_configured is True

    @pytest.mark.asyncio
    async def test_first_command_connects(self, patched_redis, mock_redis):
        pool_cls, _ = patched_redis
        mock_redis.get = AsyncMock(return_value='"v"')
        client = RedisClient(make_settings())

        assert await client.get("student:1") == '"v"'

        pool_cls.from_url.assert_called_once()
        assert pool_cls.from_url.call_args.kwargs["decode_responses"] is True
        assert client._conn_mgr.is_connected()


@pytest.mark.unit
class TestConnectRetry:
    """Bounded exponential-backoff connect."""

    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self, patched_redis, mock_redis):
        mock_redis.ping = AsyncMock(
            side_effect=[ConnectionError("refused"), ConnectionError("refused"), True]
        )
        client = RedisClient(make_settings())

        await client.connect()

        assert mock_redis.ping.await_count == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, patched_redis, mock_redis):
        mock_redis.ping = AsyncMock(side_effect=ConnectionError("refused"))
        client = RedisClient(make_settings())

        with pytest.raises(CacheConnectionError) as exc_info:
            await client.connect()

        assert mock_redis.ping.await_count == 3
        assert exc_info.value.details["attempts"] == 3

    @pytest.mark.asyncio
    async def test_attempts_are_configurable(self, patched_redis, mock_redis):
        mock_redis.ping = AsyncMock(side_effect=TimeoutError("slow"))
        client = RedisClient(make_settings(REDIS_CONNECT_MAX_ATTEMPTS=1))

        with pytest.raises(CacheConnectionError):
            await client.get("student:1")

        assert mock_redis.ping.await_count == 1

    @pytest.mark.asyncio
    async def test_connect_deadline_bounds_retries(self, patched_redis, mock_redis):
        mock_redis.ping = AsyncMock(side_effect=ConnectionError("refused"))
        client = RedisClient(
            make_settings(REDIS_CONNECT_MAX_ATTEMPTS=10, REDIS_CONNECT_DEADLINE=0.2)
        )
        loop = asyncio.get_running_loop()
        started = loop.time()

        with pytest.raises(CacheConnectionError):
            await client.get("student:1")

        assert loop.time() - started < 1.0
        assert mock_redis.ping.await_count < 10

    @pytest.mark.asyncio
    async def test_ping_reports_false_when_unreachable(self, patched_redis, mock_redis):
        mock_redis.ping = AsyncMock(side_effect=ConnectionError("refused"))
        client = RedisClient(make_settings(REDIS_CONNECT_MAX_ATTEMPTS=1))

        assert await client.ping() is False


@pytest.mark.unit
class TestCommands:
    """Command delegation."""

    @pytest.mark.asyncio
    async def test_setex(self, connected_client, mock_redis):
        await connected_client.setex("student:1", 60, '{"a":1}')

        mock_redis.setex.assert_awaited_once_with("student:1", 60, '{"a":1}')

    @pytest.mark.asyncio
    async def test_delete_many(self, connected_client, mock_redis):
        mock_redis.delete = AsyncMock(return_value=2)

        assert await connected_client.delete("student:1", "student:2") == 2
        mock_redis.delete.assert_awaited_once_with("student:1", "student:2")

    @pytest.mark.asyncio
    async def test_delete_nothing_skips_round_trip(self, connected_client, mock_redis):
        assert await connected_client.delete() == 0
        mock_redis.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_scan(self, connected_client, mock_redis):
        mock_redis.scan = AsyncMock(return_value=(17, ["student:1", "student:2"]))

        cursor, keys = await connected_client.scan(0, match="student:*", count=100)

        assert cursor == 17
        assert keys == ["student:1", "student:2"]
        mock_redis.scan.assert_awaited_once_with(cursor=0, match="student:*", count=100)

    @pytest.mark.asyncio
    async def test_flushdb(self, connected_client, mock_redis):
        await connected_client.flushdb()

        mock_redis.flushdb.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_ping_true(self, connected_client):
        assert await connected_client.ping() is True


@pytest.mark.unit
class TestErrorTranslation:
    """redis errors become cache errors without leaking keys."""

    @pytest.mark.asyncio
    async def test_command_timeout(self, connected_client, mock_redis):
        async def hang(*args, **kwargs):
            await asyncio.sleep(1)

        mock_redis.get = hang

        with pytest.raises(CacheTimeoutError) as exc_info:
            await connected_client.get("student:1")

        assert exc_info.value.details["command"] == "GET"

    @pytest.mark.asyncio
    async def test_socket_timeout(self, connected_client, mock_redis):
        mock_redis.get = AsyncMock(side_effect=TimeoutError("read timed out"))

        with pytest.raises(CacheTimeoutError):
            await connected_client.get("student:1")

    @pytest.mark.asyncio
    async def test_connection_lost(self, connected_client, mock_redis):
        mock_redis.setex = AsyncMock(side_effect=ConnectionError("reset by peer"))

        with pytest.raises(CacheConnectionError):
            await connected_client.setex("student:1", 10, "1")

    @pytest.mark.asyncio
    async def test_server_error(self, connected_client, mock_redis):
        mock_redis.get = AsyncMock(side_effect=ResponseError("WRONGTYPE"))

        with pytest.raises(CacheOperationError) as exc_info:
            await connected_client.get("verification:someone@example.com")

        assert not isinstance(exc_info.value, CacheConnectionError)
        assert "someone@example.com" not in str(exc_info.value.to_dict())

    @pytest.mark.asyncio
    async def test_non_utf8_value_is_corruption(self, connected_client, mock_redis):
        mock_redis.get = AsyncMock(
            side_effect=UnicodeDecodeError("utf-8", b"\xff\xfe{bad", 0, 1, "invalid start byte")
        )

        with pytest.raises(CacheCorruptionError) as exc_info:
            await connected_client.get("student:9:profile")

        assert "0xff" not in str(exc_info.value.to_dict())
        assert "student:9" not in str(exc_info.value.to_dict())

    @pytest.mark.asyncio
    async def test_ping_failure_returns_false(self, connected_client, mock_redis):
        mock_redis.ping = AsyncMock(side_effect=ConnectionError("gone"))

        assert await connected_client.ping() is False


@pytest.mark.unit
class TestLifecycleAndHealth:
    """disconnect and health_check."""

    @pytest.mark.asyncio
    async def test_disconnect(self, patched_redis, mock_redis):
        client = RedisClient(make_settings())
        await client.connect()
        pool = client._conn_mgr.get_pool()

        await client.disconnect()

        mock_redis.aclose.assert_awaited_once()
        pool.disconnect.assert_awaited_once()
        assert not client._conn_mgr.is_connected()

    @pytest.mark.asyncio
    async def test_health_check_healthy(self, patched_redis, mock_redis):
        client = RedisClient(make_settings())

        health = await client.health_check()

        assert health["status"] == "healthy"
        assert health["connected"] is True
        assert health["ping_latency_ms"] is not None
        assert health["pool_max_connections"] == 50

    @pytest.mark.asyncio
    async def test_health_check_unhealthy(self, connected_client, mock_redis):
        mock_redis.ping = AsyncMock(side_effect=ConnectionError("gone"))

        health = await connected_client.health_check()

        assert health["status"] == "unhealthy"
        assert "error" in health


@pytest.mark.unit
class TestWithCacheManager:
    """RedisClient failures as seen through CacheManager."""

    @pytest.mark.asyncio
    async def test_hung_commands_fall_back_to_memory(self, connected_client, mock_redis):
        async def hang(*args, **kwargs):
            await asyncio.sleep(1)

        mock_redis.setex = hang
        mock_redis.get = hang
        cache = CacheManager(connected_client, clock=FakeClock())
        loop = asyncio.get_running_loop()
        started = loop.time()

        await cache.set("student:1:profile", {"name": "Ana"})

        assert cache.backend_status == BackendStatus.UNAVAILABLE
        assert await cache.get("student:1:profile") == {"name": "Ana"}
        assert loop.time() - started < 0.5
        assert cache.stats()["memory_fallbacks"] == 1

    @pytest.mark.asyncio
    async def test_non_utf8_entry_is_discarded_as_miss(self, connected_client, mock_redis):
        mock_redis.get = AsyncMock(
            side_effect=UnicodeDecodeError("utf-8", b"\xff\xfe{bad", 0, 1, "invalid start byte")
        )
        mock_redis.delete = AsyncMock(return_value=1)
        cache = CacheManager(connected_client, clock=FakeClock())

        assert await cache.get("student:9:profile") is MISS

        mock_redis.delete.assert_awaited_once_with("student:9:profile")
        assert cache.backend_status == BackendStatus.AVAILABLE
