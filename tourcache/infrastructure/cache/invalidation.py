"""
Entity-Level Cache Invalidation

Maps marketplace events (a student profile changed, a request was matched,
analytics were recomputed) to the namespaced patterns that must be purged.

Every caller-supplied id is stripped of glob metacharacters before it is
interpolated, and ids are matched as whole key segments: invalidating
student ``4`` purges ``student:4:*`` but never ``student:42:*``.
"""

from tourcache.core.config.constants import Stage
from tourcache.core.exceptions import CacheError, CacheFlushNotAllowedError, InvalidPatternError
from tourcache.core.logging.logger import get_logger, log_stage
from tourcache.infrastructure.cache.cache_manager import CacheManager
from tourcache.infrastructure.cache.validators import sanitize_identifier

logger = get_logger(__name__)


def _segment(value: object, label: str) -> str:
    cleaned = sanitize_identifier(value)
    if not cleaned:
        raise InvalidPatternError(f"{label} must not be empty after sanitizing")
    return cleaned


class CacheInvalidator:
    """
    Invalidation helpers bound to one CacheManager.

    Usage:
        invalidate = CacheInvalidator(cache)
        await invalidate.student(student.id)
        await invalidate.city("Lisbon")
    """

    def __init__(self, manager: CacheManager):
        self._manager = manager

    async def _run(self, entity: str, patterns: list[str]) -> None:
        for pattern in patterns:
            await self._manager.delete_pattern(pattern)
        log_stage(logger, Stage.INVALIDATE, "Cache invalidated", entity=entity,
                  patterns=len(patterns))

    async def student(self, student_id: object) -> None:
        """Student profile, student dashboard and every approved-students list."""
        sid = _segment(student_id, "Student id")
        await self._run("student", [
            f"student:{sid}:*",
            f"dashboard:student:{sid}",
            f"dashboard:student:{sid}:*",
            "students:approved:*",
        ])

    async def tourist(self, tourist_id: object) -> None:
        tid = _segment(tourist_id, "Tourist id")
        await self._run("tourist", [
            f"tourist:{tid}:*",
            f"dashboard:tourist:{tid}",
            f"dashboard:tourist:{tid}:*",
        ])

    async def request(self, request_id: object) -> None:
        """Booking request data and its match results."""
        rid = _segment(request_id, "Request id")
        await self._run("request", [
            f"request:{rid}:*",
            f"match:{rid}",
            f"match:{rid}:*",
        ])

    async def analytics(self) -> None:
        await self._run("analytics", ["analytics:*"])

    async def city(self, city: object) -> None:
        """Approved-students lists and analytics scoped to one city."""
        name = _segment(city, "City")
        await self._run("city", [
            f"students:approved:{name}",
            f"students:approved:{name}:*",
            f"analytics:city:{name}",
            f"analytics:city:{name}:*",
        ])

    async def all(self, confirm: bool = False) -> None:
        """
        Clear the in-memory cache and, when confirmed, flush the backend.

        STAGE-INVALIDATE.ALL: Full flush

        Memory is always cleared. The backend keyspace is flushed only with
        ``confirm=True``; backend flush failures are logged, not raised.

        Raises:
            CacheFlushNotAllowedError: In production without ``confirm=True``
        """
        self._manager.clear_memory()

        if not confirm:
            if self._manager.is_production:
                log_stage(
                    logger, Stage.INVALIDATE_ALL,
                    "Refusing unconfirmed backend flush in production", level="error",
                )
                raise CacheFlushNotAllowedError(
                    "Flushing the cache backend in production requires confirm=True",
                    details={"environment": self._manager.environment},
                )
            log_stage(
                logger, Stage.INVALIDATE_ALL,
                "Memory cleared, backend flush skipped (confirm=True not given)",
                level="warning",
            )
            return

        if not await self._manager.check_backend_health():
            log_stage(logger, Stage.INVALIDATE_ALL,
                      "Memory cleared, backend unavailable for flush", level="warning")
            return

        try:
            await self._manager.flush_backend()
        except CacheError as e:
            self._manager.mark_backend_unhealthy()
            log_stage(
                logger, Stage.INVALIDATE_ALL, "Backend flush failed", level="error",
                error_type=type(e).__name__,
            )
            return

        log_stage(logger, Stage.INVALIDATE_ALL, "Cache fully flushed", level="warning")
