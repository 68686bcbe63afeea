"""
Tests for the deferred re-arrangement queue.
"""

import asyncio

import pytest

from loadplanner.core.models import Container
from loadplanner.runner.planner import LoadPlanner
from loadplanner.runner.scheduler import ArrangeScheduler

from conftest import make_item


@pytest.fixture
def planner():
    return LoadPlanner(Container(width=4.0, depth=1.0, height=1.0))


@pytest.mark.asyncio
async def test_submit_returns_plan(planner):
    items = [make_item(max_stack=0) for _ in range(3)]
    async with ArrangeScheduler(planner) as scheduler:
        result = await scheduler.submit(items)
    assert len(result.placed) == 3
    assert scheduler.completed == 1


@pytest.mark.asyncio
async def test_runs_in_submission_order(planner):
    order = []
    scheduler = ArrangeScheduler(planner)
    futures = [scheduler.submit([make_item(max_stack=0) for _ in range(n)]) for n in (1, 2, 3)]
    for future in futures:
        future.add_done_callback(lambda f: order.append(len(f.result().placed)))
    await asyncio.gather(*futures)
    await scheduler.close()
    assert order == [1, 2, 3]
    assert planner.last_result is futures[-1].result()


@pytest.mark.asyncio
async def test_each_run_starts_fresh(planner):
    async with ArrangeScheduler(planner) as scheduler:
        first = scheduler.submit([make_item(max_stack=0) for _ in range(4)])
        second = scheduler.submit([make_item(max_stack=0) for _ in range(4)])
        assert len((await first).placed) == 4
        assert len((await second).placed) == 4


@pytest.mark.asyncio
async def test_group_rearrangement(planner):
    a = [make_item(type="a", group_id=1, order_index=i) for i in range(2)]
    b = make_item(type="b", group_id=2, order_index=2)
    async with ArrangeScheduler(planner) as scheduler:
        full = await scheduler.submit(a + [b])
        partial = await scheduler.submit(a + [b], group_id=1, placed=full.placed)
    placed_b = [p for p in partial.placed if p.item is b]
    assert placed_b == [p for p in full.placed if p.item is b]
    assert len(partial.placed) == 3


@pytest.mark.asyncio
async def test_failed_run_sets_exception(planner):
    async with ArrangeScheduler(planner) as scheduler:
        with pytest.raises(ValueError):
            await scheduler.submit([make_item()], group_id=5)
        # the worker keeps serving after a failure
        result = await scheduler.submit([make_item()])
    assert len(result.placed) == 1


@pytest.mark.asyncio
async def test_submit_after_close(planner):
    scheduler = ArrangeScheduler(planner)
    await scheduler.close()
    with pytest.raises(RuntimeError):
        scheduler.submit([make_item()])


def test_submit_without_event_loop(planner):
    with pytest.raises(RuntimeError):
        ArrangeScheduler(planner).submit([make_item()])


@pytest.mark.asyncio
async def test_worker_drains_queued_runs(planner):
    scheduler = ArrangeScheduler(planner)
    first = scheduler.submit([make_item(max_stack=0)])
    second = scheduler.submit([make_item(max_stack=0) for _ in range(2)])
    assert scheduler.pending == 2
    await scheduler.close()
    assert first.done() and second.done()
    assert scheduler.pending == 0
    assert scheduler.completed == 2
