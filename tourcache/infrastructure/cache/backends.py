"""
Backend selection.

The shared backend is a strategy chosen once, when the application wires its
CacheManager: a RedisClient when REDIS_URL is configured, otherwise a
NullBackend that is never available. Call sites never re-check the
environment.
"""

from typing import Any

from tourcache.core.config.constants import Stage
from tourcache.core.config.settings import Settings, get_settings
from tourcache.core.exceptions import CacheConnectionError
from tourcache.core.interfaces.cache import CacheBackend
from tourcache.core.logging.logger import get_logger
from tourcache.infrastructure.cache.redis_client import RedisClient

logger = get_logger(__name__)


class NullBackend:
    """
    Backend used in in-memory-only mode.

    ``ping`` reports unavailable; every other command raises
    CacheConnectionError so a stray call is never mistaken for a success.
    """

    is_configured = False

    def _unavailable(self, command: str) -> CacheConnectionError:
        return CacheConnectionError(
            "No cache backend configured", details={"command": command}
        )

    async def connect(self) -> None:
        raise self._unavailable("CONNECT")

    async def disconnect(self) -> None:
        return None

    async def ping(self) -> bool:
        return False

    async def get(self, key: str) -> str | None:
        raise self._unavailable("GET")

    async def setex(self, key: str, ttl: int, value: str) -> None:
        raise self._unavailable("SETEX")

    async def delete(self, *keys: str) -> int:
        raise self._unavailable("DEL")

    async def scan(self, cursor: int, match: str, count: int) -> tuple[int, list[str]]:
        raise self._unavailable("SCAN")

    async def flushdb(self) -> None:
        raise self._unavailable("FLUSHDB")

    async def health_check(self) -> dict[str, Any]:
        return {"status": "not_configured", "configured": False, "connected": False}


def create_backend(settings: Settings | None = None) -> CacheBackend:
    """
    Build the shared backend for the current configuration.

    Args:
        settings: Application settings (default: global settings)

    Returns:
        RedisClient if REDIS_URL is set, NullBackend otherwise
    """
    settings = settings or get_settings()
    redis_settings = settings.redis

    if redis_settings.is_configured:
        return RedisClient(redis_settings)

    logger.warning(
        "REDIS_URL not set, cache will run in in-memory-only mode",
        stage=Stage.CACHE_INIT.value,
    )
    return NullBackend()
