"""
Request coalescing to prevent duplicate computation of the same cache value.

When several concurrent callers miss on the same key, one task runs the
compute function and every caller awaits its result.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from tourcache.core.config.constants import Stage
from tourcache.core.logging.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RequestCoalescer:
    """
    Ensures concurrent requests for the same key share one computation.

    Pattern:
    - First request for a key starts the computation in its own task
    - Every request for the key, the first included, awaits that task
      through ``asyncio.shield``
    - Cancelling a caller detaches only that caller; the computation and
      the other callers carry on
    - When the task settles, the entry is removed (success or failure)
      and every waiter receives the same result or the same exception

    Usage:
        coalescer = RequestCoalescer()
        value = await coalescer.run("student:42:profile", load_profile)
    """

    def __init__(self):
        self._in_flight: dict[str, asyncio.Future] = {}
        self._coalesced = 0

    async def run(self, key: str, compute_fn: Callable[[], Awaitable[T] | T]) -> T:
        """
        Either join an in-flight computation for ``key`` or start a new one.

        Args:
            key: Identity of the computation
            compute_fn: Async (or plain) callable producing the value

        Returns:
            The computed value, shared among all concurrent callers

        Raises:
            Exception: Whatever compute_fn raised, re-raised in every caller
        """
        task = self._in_flight.get(key)
        if task is not None:
            self._coalesced += 1
            logger.debug("Joining in-flight computation", stage=Stage.CACHE_COMPUTE.value)
        else:
            task = asyncio.ensure_future(self._compute(compute_fn))
            self._in_flight[key] = task
            task.add_done_callback(lambda done, key=key: self._settle(key, done))

        return await asyncio.shield(task)

    @staticmethod
    async def _compute(compute_fn: Callable[[], Awaitable[T] | T]) -> T:
        result = compute_fn()
        if inspect.isawaitable(result):
            result = await result
        return result

    def _settle(self, key: str, task: asyncio.Future) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # Mark retrieved so a failure nobody awaited doesn't warn at GC
        if not task.cancelled():
            task.exception()

    def is_pending(self, key: str) -> bool:
        return key in self._in_flight

    @property
    def active_requests(self) -> int:
        """Number of currently in-flight computations."""
        return len(self._in_flight)

    @property
    def coalesced_count(self) -> int:
        """Number of callers that joined an existing computation."""
        return self._coalesced

    def clear(self) -> int:
        """
        Forget all in-flight trackers.

        Running computations still complete for their initiators and current
        waiters; later callers simply start a fresh computation.
        """
        count = len(self._in_flight)
        self._in_flight.clear()
        return count

    def get_stats(self) -> dict[str, Any]:
        """Get coalescer statistics."""
        return {
            "active_requests": len(self._in_flight),
            "coalesced": self._coalesced,
        }
