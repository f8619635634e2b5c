"""
Cache Constants and Enumerations

This module defines the fixed limits, key namespaces and TTL presets used
across the cache layer.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for magic numbers
- Type-safe enums for stage identifiers and TTL presets
- Limits that protect the shared backend are NOT environment-configurable

Author: System Architect
Date: 2026-02-11
"""

from enum import Enum, IntEnum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Cache processing stages used as the ``stage`` field of log events.

    Format: {LAYER}.{OPERATION}
    """

    # Manager
    CACHE_INIT = "CACHE.INIT"
    CACHE_HEALTH = "CACHE.HEALTH"
    CACHE_GET = "CACHE.GET"
    CACHE_SET = "CACHE.SET"
    CACHE_DELETE = "CACHE.DELETE"
    CACHE_DELETE_PATTERN = "CACHE.DELETE_PATTERN"
    CACHE_COMPUTE = "CACHE.COMPUTE"
    CACHE_CLEAR = "CACHE.CLEAR"
    CACHE_SWEEP = "CACHE.SWEEP"

    # Invalidation
    INVALIDATE = "INVALIDATE"
    INVALIDATE_ALL = "INVALIDATE.ALL"

    # Redis backend
    REDIS_INIT = "REDIS.INIT"
    REDIS_CONNECT = "REDIS.CONNECT"
    REDIS_RETRY = "REDIS.RETRY"
    REDIS_DISCONNECT = "REDIS.DISCONNECT"
    REDIS_COMMAND = "REDIS.COMMAND"


# ============================================================================
# Backend Health States
# ============================================================================


class BackendStatus(str, Enum):
    """
    Cached health state of the shared backend.

    UNKNOWN: Never probed
    AVAILABLE: Last probe succeeded
    UNAVAILABLE: Last probe (or operation) failed
    """

    UNKNOWN = "unknown"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


# ============================================================================
# Key Namespaces
# ============================================================================

# Every key (and every deletion pattern) must start with one of these
ALLOWED_KEY_PREFIXES: tuple[str, ...] = (
    "student:",
    "tourist:",
    "request:",
    "match:",
    "dashboard:",
    "students:",
    "analytics:",
    "verification:",
)

# Characters stripped from caller-supplied ids before they reach a pattern
GLOB_METACHARACTERS = frozenset("*?[]\\")

# ============================================================================
# Limits
# ============================================================================

MAX_KEY_LENGTH = 256  # Applies to keys and patterns
MAX_VALUE_SIZE_BYTES = 1024 * 1024  # 1 MiB of serialized JSON

# ============================================================================
# Timing (seconds)
# ============================================================================

DEFAULT_TTL = 300  # 5 minutes
HEALTH_CHECK_INTERVAL = 60  # Backend availability is re-probed at most this often

# ============================================================================
# In-Memory Fallback Store
# ============================================================================

MEMORY_CLEANUP_THRESHOLD = 1000  # Sweep expired entries once size exceeds this

# ============================================================================
# Pattern Deletion
# ============================================================================

SCAN_COUNT = 100  # COUNT hint per SCAN call
DELETE_BATCH_SIZE = 100  # Keys per DEL command

# ============================================================================
# Backend Connection
# ============================================================================

CONNECT_MAX_ATTEMPTS = 3
CONNECT_BACKOFF_INITIAL = 0.1
CONNECT_BACKOFF_MAX = 3.0
COMMAND_TIMEOUT = 2.0
# Total budget for connect, retries and backoff included
CONNECT_DEADLINE = 8.0


# ============================================================================
# TTL Presets
# ============================================================================


class CacheTTL(IntEnum):
    """
    Standard TTLs (seconds) for the marketplace's cached views.
    """

    STATIC_DATA = 86400  # Cities, languages
    ANALYTICS = 600  # Admin analytics
    STUDENT_METRICS = 1800  # Ratings and review aggregates
    MATCHES = 300  # Matching results
    DASHBOARD = 180  # User dashboards
    APPROVED_STUDENTS = 900  # Approved students per city
    REVIEWS = 600
