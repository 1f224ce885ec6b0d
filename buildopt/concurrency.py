"""Parallel-join versus sequential-await execution of independent jobs."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Sequence, TypeVar

T = TypeVar("T")

Job = Callable[[], Awaitable[T]]


class TaskRunner:
    """Runs job factories either concurrently or strictly one after another.

    Both modes return results in job order. In parallel mode the first failure
    cancels the remaining jobs and is re-raised; nothing is retried.
    """

    def __init__(self, *, serial: bool = False) -> None:
        self.serial = serial

    async def run_all(self, jobs: Sequence[Job[T]]) -> List[T]:
        if self.serial:
            return [await job() for job in jobs]

        tasks = [asyncio.ensure_future(job()) for job in jobs]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise


__all__ = ["Job", "TaskRunner"]
