"""Single-flight: at most one in-flight computation per key.

The computation runs in its own task; every caller, the first one included,
awaits it through ``asyncio.shield``. Cancelling any caller leaves the
computation and the other callers untouched. The entry is removed as soon
as the computation settles, so a later call starts fresh.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Task[T]] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._inflight

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> tuple[T, bool]:
        """Run ``fn`` once per key. Returns (result, joined_existing_call)."""
        task = self._inflight.get(key)
        joined = task is not None
        if task is None:
            task = asyncio.ensure_future(fn())
            self._inflight[key] = task
            # Registered before any shield, so the entry is gone when callers resume
            task.add_done_callback(lambda t: self._settle(key, t))
        return await asyncio.shield(task), joined

    def _settle(self, key: str, task: asyncio.Task[T]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # Mark retrieved so a failure nobody awaited is not logged at GC
            task.exception()
