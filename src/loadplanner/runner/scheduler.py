"""Deferred re-arrangement of a load plan.

Callers that change the cargo list (add, remove, edit) submit a re-pack
instead of running it inline.  A single worker task drains the queue in
FIFO order on the event loop, so a run never starts while another one is
in progress and every run begins from a fresh reset.  There is no
cancellation: a submitted run either completes or the scheduler is
closed before it starts.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from loadplanner.core.models import Item, PlacedItem, PlanResult
from loadplanner.runner.planner import LoadPlanner


logger = logging.getLogger(__name__)


@dataclass
class _Job:
    items: tuple[Item, ...]
    group_id: Optional[int]
    placed: tuple[PlacedItem, ...]
    future: "asyncio.Future[PlanResult]"


class ArrangeScheduler:
    """
    Serialises packing runs of one LoadPlanner.

    Usage:
        async with ArrangeScheduler(planner) as scheduler:
            result = await scheduler.submit(manifest.items)
    """

    def __init__(self, planner: LoadPlanner) -> None:
        self.planner = planner
        self.completed = 0
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    def submit(
        self,
        items: Sequence[Item],
        group_id: Optional[int] = None,
        placed: Sequence[PlacedItem] = (),
    ) -> "asyncio.Future[PlanResult]":
        """
        Queue a run and return a future for its result.

        Args:
            items:     Items of the plan.
            group_id:  When set, only this group is re-arranged around
                       *placed*; otherwise all items are re-packed.
            placed:    Current placements (group re-arrangement only).

        Raises:
            RuntimeError: the scheduler has been closed, or no event loop
                          is running.
        """
        if self._closed:
            raise RuntimeError("ArrangeScheduler is closed")

        loop = asyncio.get_running_loop()
        if self._queue is None:
            self._queue = asyncio.Queue()
            self._worker = loop.create_task(self._drain(self._queue))

        future: asyncio.Future[PlanResult] = loop.create_future()
        self._queue.put_nowait(_Job(tuple(items), group_id, tuple(placed), future))
        return future

    async def _drain(self, queue: asyncio.Queue) -> None:
        while True:
            job = await queue.get()
            try:
                if job is None:
                    return
                if job.future.cancelled():
                    continue
                try:
                    result = self._run(job)
                except Exception as exc:
                    logger.exception("Packing run failed")
                    job.future.set_exception(exc)
                else:
                    job.future.set_result(result)
                    self.completed += 1
            finally:
                queue.task_done()
            # yield so callers awaiting the previous result resume first
            await asyncio.sleep(0)

    def _run(self, job: _Job) -> PlanResult:
        if job.group_id is None:
            return self.planner.pack(job.items)
        return self.planner.arrange_group(job.group_id, job.items, job.placed)

    async def close(self) -> None:
        """Finish queued runs, then stop the worker."""
        self._closed = True
        if self._queue is None or self._worker is None:
            return
        self._queue.put_nowait(None)
        await self._worker

    async def __aenter__(self) -> "ArrangeScheduler":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"ArrangeScheduler(pending={self.pending}, completed={self.completed})"
