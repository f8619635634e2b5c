"""
Cache infrastructure: backends, fallback store, manager and invalidation.
"""

from tourcache.infrastructure.cache.backends import NullBackend, create_backend
from tourcache.infrastructure.cache.cache_manager import (
    MISS,
    CacheManager,
    JSONValue,
    close_cache,
    get_cache_manager,
    init_cache,
    with_cache,
)
from tourcache.infrastructure.cache.coalescer import RequestCoalescer
from tourcache.infrastructure.cache.invalidation import CacheInvalidator
from tourcache.infrastructure.cache.memory_store import MemoryStore
from tourcache.infrastructure.cache.redis_client import RedisClient
from tourcache.infrastructure.cache.validators import (
    glob_to_regex,
    sanitize_identifier,
    validate_key,
    validate_pattern,
)

__all__ = [
    "MISS",
    "JSONValue",
    "CacheManager",
    "CacheInvalidator",
    "RedisClient",
    "NullBackend",
    "create_backend",
    "MemoryStore",
    "RequestCoalescer",
    "validate_key",
    "validate_pattern",
    "glob_to_regex",
    "sanitize_identifier",
    "with_cache",
    "get_cache_manager",
    "init_cache",
    "close_cache",
]
