"""
Core Module

Foundational components: configuration, logging, exceptions and interfaces.
"""

from .exceptions import (
    CacheConnectionError,
    CacheCorruptionError,
    CacheError,
    CacheFlushNotAllowedError,
    CacheOperationError,
    CacheTimeoutError,
    ConfigurationError,
    InvalidKeyError,
    InvalidPatternError,
    InvalidTTLError,
    PayloadTooLargeError,
    SerializationError,
    TourCacheError,
    ValidationError,
)
from .interfaces import CacheBackend
from .logging import (
    clear_request_id,
    get_logger,
    get_request_id,
    log_stage,
    set_request_id,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "set_request_id",
    "get_request_id",
    "clear_request_id",
    "log_stage",
    "TourCacheError",
    "ConfigurationError",
    "CacheError",
    "CacheConnectionError",
    "CacheTimeoutError",
    "CacheOperationError",
    "CacheCorruptionError",
    "CacheFlushNotAllowedError",
    "ValidationError",
    "InvalidKeyError",
    "InvalidPatternError",
    "InvalidTTLError",
    "PayloadTooLargeError",
    "SerializationError",
    "CacheBackend",
]
