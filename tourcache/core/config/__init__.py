"""
Configuration Module

Centralized, type-safe configuration for the cache layer.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Fixed limits, key namespaces, TTL presets and stage names

Environment Variables:
---------------------
```bash
# Backend (absent -> in-memory only)
REDIS_URL=redis://localhost:6379/0
REDIS_COMMAND_TIMEOUT=2

# Cache
CACHE_DEFAULT_TTL=300

# Logging
LOG_LEVEL=INFO
LOG_FORMAT=json

# Application
ENVIRONMENT=production
```

Testing:
-------
```python
import os
from tourcache.core.config import reload_settings

os.environ["REDIS_URL"] = "redis://test-redis:6379/0"
settings = reload_settings()
assert settings.redis.is_configured
```
"""

from tourcache.core.config.constants import (
    ALLOWED_KEY_PREFIXES,
    DEFAULT_TTL,
    DELETE_BATCH_SIZE,
    HEALTH_CHECK_INTERVAL,
    MAX_KEY_LENGTH,
    MAX_VALUE_SIZE_BYTES,
    MEMORY_CLEANUP_THRESHOLD,
    SCAN_COUNT,
    BackendStatus,
    CacheTTL,
    Stage,
)
from tourcache.core.config.settings import Settings, get_settings, reload_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "reload_settings",
    # Enums
    "Stage",
    "BackendStatus",
    "CacheTTL",
    # Limits
    "ALLOWED_KEY_PREFIXES",
    "MAX_KEY_LENGTH",
    "MAX_VALUE_SIZE_BYTES",
    "DEFAULT_TTL",
    "HEALTH_CHECK_INTERVAL",
    "MEMORY_CLEANUP_THRESHOLD",
    "SCAN_COUNT",
    "DELETE_BATCH_SIZE",
]
