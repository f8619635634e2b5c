"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from tests.test_fixtures.cache_factory import CacheTestFactory, FakeClock  # noqa: E402


# ============================================================================
# Mock Configuration Fixtures
# ============================================================================


@pytest.fixture
def mock_settings():
    """
    Mock application settings for testing.

    Returns a MagicMock with common settings attributes.
    """
    from tourcache.core.config.settings import Settings

    settings = MagicMock(spec=Settings)

    settings.redis.REDIS_URL = None
    settings.redis.is_configured = False
    settings.cache.CACHE_DEFAULT_TTL = 300
    settings.app.ENVIRONMENT = "test"
    settings.app.APP_NAME = "tourcache-test"
    settings.logging.LOG_LEVEL = "INFO"
    settings.logging.LOG_FORMAT = "json"

    return settings


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep tests independent of a developer's REDIS_URL / ENVIRONMENT."""
    for name in ("REDIS_URL", "ENVIRONMENT", "CACHE_DEFAULT_TTL", "LOG_LEVEL", "LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)


# ============================================================================
# Environment-Based Integration Toggles
# ============================================================================


@pytest.fixture(scope="session")
def use_real_redis():
    """Check if real Redis should be used for integration tests."""
    return os.getenv("USE_REAL_REDIS", "0").lower() in ("1", "true", "yes")


# ============================================================================
# Cache Fixtures
# ============================================================================


@pytest.fixture
def clock():
    """Manually advanced clock shared by the manager and fake backend."""
    return FakeClock()


@pytest.fixture
def fake_backend(clock):
    """In-memory fake Redis backend."""
    return CacheTestFactory.fake_backend(clock=clock)


@pytest.fixture
def memory_cache(clock):
    """CacheManager with no backend configured (in-memory only)."""
    return CacheTestFactory.manager(clock=clock)


@pytest.fixture
def backed_cache(fake_backend, clock):
    """CacheManager over the fake Redis backend."""
    return CacheTestFactory.manager(fake_backend, clock=clock)


@pytest.fixture
def mock_cache_manager():
    """
    Mock CacheManager for isolated route testing.
    """
    from tourcache.infrastructure.cache.cache_manager import CacheManager

    cache = AsyncMock(spec=CacheManager)
    cache.stats = MagicMock(return_value={"backend_hits": 0, "memory_hits": 0, "misses": 0})
    cache.health_check = AsyncMock(return_value={"status": "healthy"})

    return cache
