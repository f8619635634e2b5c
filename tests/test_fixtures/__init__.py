"""Reusable fakes and factories for the test suite."""

from tests.test_fixtures.cache_factory import CacheTestFactory, FakeClock, FakeRedisBackend

__all__ = ["CacheTestFactory", "FakeClock", "FakeRedisBackend"]
