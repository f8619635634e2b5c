"""
Exception Module

Structured exception hierarchy for the cache layer.

Module Structure:
-----------------
- **base.py**: TourCacheError base class + ConfigurationError
- **cache.py**: Backend failures (connection, timeout, operation, corruption)
- **validation.py**: Usage errors (bad key, bad pattern, bad TTL, oversized
  or unserializable value)

Propagation Policy:
-------------------
Validation errors always reach the caller. Cache errors are recovered inside
the CacheManager by falling back to the in-memory store.

Usage:
------
```python
from tourcache.core.exceptions import InvalidKeyError, ValidationError

try:
    await cache.set("unknown:1", value)
except InvalidKeyError:
    ...
```
"""

# Base exception
from tourcache.core.exceptions.base import ConfigurationError, TourCacheError

# Cache exceptions
from tourcache.core.exceptions.cache import (
    CacheConnectionError,
    CacheCorruptionError,
    CacheError,
    CacheFlushNotAllowedError,
    CacheOperationError,
    CacheTimeoutError,
)

# Validation exceptions
from tourcache.core.exceptions.validation import (
    InvalidKeyError,
    InvalidPatternError,
    InvalidTTLError,
    PayloadTooLargeError,
    SerializationError,
    ValidationError,
)

__all__ = [
    # Base
    "TourCacheError",
    "ConfigurationError",
    # Cache
    "CacheError",
    "CacheConnectionError",
    "CacheTimeoutError",
    "CacheOperationError",
    "CacheCorruptionError",
    "CacheFlushNotAllowedError",
    # Validation
    "ValidationError",
    "InvalidKeyError",
    "InvalidPatternError",
    "InvalidTTLError",
    "SerializationError",
    "PayloadTooLargeError",
]
