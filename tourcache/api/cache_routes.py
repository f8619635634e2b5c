"""
Cache Monitoring Routes

Read-only endpoints exposing cache health and statistics.
"""

from typing import Any

from fastapi import APIRouter, HTTPException

from tourcache.api.dependencies import CacheManagerDep

router = APIRouter(prefix="/cache", tags=["Cache"])


@router.get("/health")
async def cache_health(cache: CacheManagerDep, strict: bool = False) -> dict[str, Any]:
    """
    Cache health report.

    With ``?strict=true`` a cache that is not fully healthy (running on the
    in-memory fallback) answers 503, for use as a readiness probe.
    """
    report = await cache.health_check()

    if strict and report["status"] != "healthy":
        raise HTTPException(status_code=503, detail=report)

    return report


@router.get("/stats")
async def cache_stats(cache: CacheManagerDep) -> dict[str, Any]:
    """Hit/miss counters, memory size and pending computations."""
    return cache.stats()
