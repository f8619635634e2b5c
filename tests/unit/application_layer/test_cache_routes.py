"""
Unit Tests for Cache Routes

Tests the cache health and stats endpoints with TestClient.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tests.test_fixtures.cache_factory import CacheTestFactory
from tourcache.api.app import create_app
from tourcache.api.cache_routes import router


def _app_with(manager) -> FastAPI:
    app = FastAPI()
    app.include_router(router)
    app.state.cache_manager = manager
    return app


@pytest.mark.unit
class TestCacheRoutes:
    """Test suite for /cache routes."""

    def test_stats(self, mock_cache_manager):
        client = TestClient(_app_with(mock_cache_manager))

        response = client.get("/cache/stats")

        assert response.status_code == 200
        assert response.json()["misses"] == 0

    def test_health_healthy(self, mock_cache_manager):
        client = TestClient(_app_with(mock_cache_manager))

        response = client.get("/cache/health", params={"strict": "true"})

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_degraded_is_200_by_default(self):
        client = TestClient(_app_with(CacheTestFactory.manager()))

        response = client.get("/cache/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"

    def test_degraded_is_503_when_strict(self):
        client = TestClient(_app_with(CacheTestFactory.manager()))

        response = client.get("/cache/health", params={"strict": "true"})

        assert response.status_code == 503
        assert response.json()["detail"]["status"] == "degraded"

    def test_stats_reflect_real_manager(self):
        client = TestClient(_app_with(CacheTestFactory.manager()))

        data = client.get("/cache/stats").json()

        assert data["memory_entries"] == 0
        assert data["backend_configured"] is False


@pytest.mark.unit
class TestApplication:
    """Test the application factory and lifespan."""

    @pytest.fixture
    def reset_globals(self, monkeypatch):
        from tourcache.core.config import settings as settings_module
        from tourcache.infrastructure.cache import cache_manager as cache_module

        monkeypatch.setattr(settings_module, "_settings", None)
        monkeypatch.setattr(cache_module, "_cache_manager", None)

    def test_lifespan_wires_cache_manager(self, reset_globals):
        with TestClient(create_app()) as client:
            response = client.get("/cache/stats")
            assert client.app.state.cache_manager is not None

        assert response.status_code == 200
        assert response.json()["backend_configured"] is False

    def test_request_id_is_echoed(self, reset_globals):
        with TestClient(create_app()) as client:
            response = client.get("/cache/stats", headers={"X-Request-ID": "req-1"})

        assert response.headers["X-Request-ID"] == "req-1"

    def test_request_id_generated(self, reset_globals):
        with TestClient(create_app()) as client:
            response = client.get("/cache/health")

        assert response.headers["X-Request-ID"]
