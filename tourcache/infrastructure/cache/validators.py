"""
Key and Pattern Validation

Namespace allowlisting for cache keys and deletion patterns.

Every key must live under one of ALLOWED_KEY_PREFIXES so unrelated callers
cannot collide, and every deletion pattern must resolve to a namespace before
its first wildcard so a single call can never wipe the whole keyspace.

Validation is strict: there is no warn-and-continue mode. Error messages
describe WHAT is wrong, never the offending input (keys embed e-mail
addresses and other identifiers).

All functions here are pure and synchronous.
"""

import re
from re import Pattern

from tourcache.core.config.constants import (
    ALLOWED_KEY_PREFIXES,
    GLOB_METACHARACTERS,
    MAX_KEY_LENGTH,
)
from tourcache.core.exceptions import InvalidKeyError, InvalidPatternError

_CONTROL_CHARS = re.compile(r"[\x00-\x1f]")


def _has_allowed_prefix(value: str) -> bool:
    return value.startswith(ALLOWED_KEY_PREFIXES)


def namespace_of(key: str) -> str:
    """
    Return the namespace portion of a key (``"student"`` for ``"student:42"``).

    Safe to log: it is always one of the allowlisted prefixes once the key
    has been validated.
    """
    return key.split(":", 1)[0]


def validate_key(key: str) -> None:
    """
    Validate a cache key.

    Args:
        key: Cache key of the form ``<namespace>:<rest>``

    Raises:
        InvalidKeyError: If the key is empty, not a string, too long, contains
            control characters, or is outside the namespace allowlist
    """
    if not isinstance(key, str) or not key:
        raise InvalidKeyError("Cache key must be a non-empty string")

    if len(key) > MAX_KEY_LENGTH:
        raise InvalidKeyError(
            f"Cache key too long (maximum {MAX_KEY_LENGTH} characters)",
            details={"length": len(key)},
        )

    if _CONTROL_CHARS.search(key):
        raise InvalidKeyError("Cache key contains control characters")

    if not _has_allowed_prefix(key):
        raise InvalidKeyError(
            "Cache key namespace is not allowed",
            details={"allowed_prefixes": list(ALLOWED_KEY_PREFIXES)},
        )


def validate_pattern(pattern: str) -> None:
    """
    Validate a glob pattern used for bulk deletion.

    The literal text before the first ``*`` must itself start with an
    allowlisted namespace, so ``"student:*"`` is accepted while ``"*"``,
    ``"**"``, ``"*:rest"`` and ``"stu*"`` are rejected.

    Raises:
        InvalidPatternError: If the pattern could match outside a namespace
    """
    if not isinstance(pattern, str) or not pattern:
        raise InvalidPatternError("Deletion pattern must be a non-empty string")

    if pattern in ("*", "**") or pattern.startswith("*"):
        raise InvalidPatternError("Deletion pattern must not start with a wildcard")

    if len(pattern) > MAX_KEY_LENGTH:
        raise InvalidPatternError(
            f"Deletion pattern too long (maximum {MAX_KEY_LENGTH} characters)",
            details={"length": len(pattern)},
        )

    if _CONTROL_CHARS.search(pattern):
        raise InvalidPatternError("Deletion pattern contains control characters")

    # Redis would expand these while the in-memory matcher treats them literally
    if any(ch in GLOB_METACHARACTERS for ch in pattern.replace("*", "")):
        raise InvalidPatternError("Deletion pattern supports only the '*' wildcard")

    literal_prefix = pattern.split("*", 1)[0]
    if not _has_allowed_prefix(literal_prefix):
        raise InvalidPatternError(
            "Deletion pattern must begin with an allowed namespace",
            details={"allowed_prefixes": list(ALLOWED_KEY_PREFIXES)},
        )


def glob_to_regex(pattern: str) -> Pattern:
    """
    Convert a deletion glob to an anchored regular expression.

    Every regex metacharacter is escaped; only ``*`` is special and becomes
    ``.*``. Used to apply a pattern deletion to the in-memory store.
    """
    body = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.compile(f"^{body}$", re.DOTALL)


def sanitize_identifier(value: object) -> str:
    """
    Strip glob metacharacters from a caller-supplied identifier.

    ``sanitize_identifier("abc*")`` returns ``"abc"``, so interpolating the
    result into ``f"student:{id}:*"`` cannot widen the deletion.
    """
    return "".join(ch for ch in str(value) if ch not in GLOB_METACHARACTERS)
