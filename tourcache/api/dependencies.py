"""
FastAPI Dependency Injection

Dependencies that hand route handlers the application-level objects created
during startup (see ``tourcache.api.app.lifespan``).

Example:
    @router.get("/example")
    async def my_route(cache: CacheManagerDep):
        return cache.stats()
"""

from typing import Annotated

from fastapi import Depends, Request

from tourcache.infrastructure.cache.cache_manager import CacheManager, get_cache_manager


def get_cache(request: Request) -> CacheManager:
    """
    Retrieve the CacheManager from application state.

    The manager is created once in the lifespan handler and stored on
    ``app.state``. When the lifespan did not run (e.g. a bare TestClient
    without a context manager), the application-wide manager is built from
    settings and stored for subsequent requests.

    Args:
        request: FastAPI Request object (automatically injected by FastAPI)

    Returns:
        CacheManager: The application's cache manager
    """
    manager = getattr(request.app.state, "cache_manager", None)
    if manager is None:
        manager = get_cache_manager()
        request.app.state.cache_manager = manager
    return manager


# ============================================================================
# TYPE ALIASES FOR CLEANER ROUTE SIGNATURES
# ============================================================================

CacheManagerDep = Annotated[CacheManager, Depends(get_cache)]
