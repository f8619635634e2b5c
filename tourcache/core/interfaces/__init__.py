"""
Core Interfaces Module

Protocols for core components, enabling dependency injection, testability,
and loose coupling.

Components:
-----------
- **cache.py**: CacheBackend protocol for shared cache backends

Usage:
------
```python
from tourcache.core.interfaces import CacheBackend

def build_manager(backend: CacheBackend) -> CacheManager:
    return CacheManager(backend)
```
"""

from tourcache.core.interfaces.cache import CacheBackend

__all__ = [
    "CacheBackend",
]
