"""
Validation Exceptions

Usage errors raised by the cache layer. These always propagate to the
caller: they indicate a bug in calling code that silent recovery would hide.

Author: System Architect
Date: 2026-02-11
"""

from tourcache.core.exceptions.base import TourCacheError


class ValidationError(TourCacheError):
    """
    Raised when cache input validation fails.

    This is the base class for all validation-related errors.
    """
    pass


class InvalidKeyError(ValidationError):
    """
    Raised when a cache key is rejected.

    Common causes:
    - Empty or non-string key
    - Key too long
    - Control characters
    - Namespace not in the allowlist

    The offending key is never included in the message or details.
    """
    pass


class InvalidPatternError(ValidationError):
    """
    Raised when a deletion pattern is rejected.

    Common causes:
    - Bare wildcard (``*``, ``**``) or leading wildcard
    - Literal prefix outside the namespace allowlist
    - Too long or containing control characters
    """
    pass


class InvalidTTLError(ValidationError):
    """Raised when a TTL is not a positive whole number of seconds."""
    pass


class SerializationError(ValidationError):
    """Raised when a value cannot be serialized to JSON."""
    pass


class PayloadTooLargeError(ValidationError):
    """Raised when a serialized value exceeds the maximum payload size."""
    pass
