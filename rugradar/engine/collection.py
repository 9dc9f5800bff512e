"""Concurrent source collection with a caller deadline.

Every collector runs as its own task. Whatever has not finished by the
deadline is cancelled and reported as Unavailable("timeout"); a collector
that raises is reported as Unavailable with the error text. Collection
itself never fails.
"""

import asyncio

from loguru import logger

from rugradar.sources import Present, SourceCollector, SourceResult, Unavailable
from rugradar.utils.logger import short


async def collect_sources(
    token_address: str,
    collectors: list[SourceCollector],
    deadline_s: float,
) -> list[SourceResult]:
    if not collectors:
        return []

    tasks = [asyncio.create_task(c.fetch(token_address)) for c in collectors]
    done, pending = await asyncio.wait(tasks, timeout=max(deadline_s, 0.0))

    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)

    results: list[SourceResult] = []
    for collector, task in zip(collectors, tasks):
        kind = collector.kind
        if task not in done:
            logger.warning(f"[COLLECT] {short(token_address)}: {kind} timed out after {deadline_s:.1f}s")
            results.append(Unavailable(kind, "timeout"))
            continue

        if task.cancelled():
            results.append(Unavailable(kind, "cancelled"))
            continue

        exc = task.exception()
        if exc is not None:
            logger.warning(f"[COLLECT] {short(token_address)}: {kind} failed: {exc}")
            results.append(Unavailable(kind, str(exc) or type(exc).__name__))
            continue

        try:
            results.append(Present(kind, task.result()))
        except TypeError as e:
            logger.warning(f"[COLLECT] {short(token_address)}: {kind} bad payload: {e}")
            results.append(Unavailable(kind, f"invalid payload: {e}"))

    ok = sum(isinstance(r, Present) for r in results)
    logger.debug(f"[COLLECT] {short(token_address)}: {ok}/{len(results)} sources present")
    return results
