"""
HTTP surface for cache health and statistics.
"""

from tourcache.api.app import create_app
from tourcache.api.cache_routes import router as cache_router

__all__ = ["create_app", "cache_router"]
