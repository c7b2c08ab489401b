"""Tests for cmpcore/core/throttle.py"""

import asyncio

import pytest

from cmpcore.core.throttle import CoalescingScheduler


@pytest.mark.asyncio
async def test_burst_runs_callback_once():
    """Several requests inside one window fire a single callback."""
    calls = []
    scheduler = CoalescingScheduler(lambda: calls.append(1), 30)

    scheduler.request()
    await asyncio.sleep(0.01)
    scheduler.request()
    scheduler.request()
    assert scheduler.pending

    await asyncio.sleep(0.1)

    assert calls == [1]
    assert not scheduler.pending


@pytest.mark.asyncio
async def test_burst_is_not_postponed_by_later_requests():
    """The deadline is fixed by the first request of the burst."""
    fired_at = []
    loop = asyncio.get_running_loop()
    scheduler = CoalescingScheduler(lambda: fired_at.append(loop.time()), 60)

    started = loop.time()
    scheduler.request()
    for _ in range(4):
        await asyncio.sleep(0.01)
        scheduler.request()

    await asyncio.sleep(0.15)

    assert len(fired_at) == 1
    assert fired_at[0] - started < 0.1


@pytest.mark.asyncio
async def test_stop_cancels_pending_run():
    calls = []
    scheduler = CoalescingScheduler(lambda: calls.append(1), 20)

    scheduler.request()
    scheduler.stop()
    await asyncio.sleep(0.05)

    assert calls == []
    assert not scheduler.pending


@pytest.mark.asyncio
async def test_immediate_request():
    calls = []
    scheduler = CoalescingScheduler(lambda: calls.append(1), 10_000)

    scheduler.request(immediate=True)
    await asyncio.sleep(0.01)

    assert calls == [1]


@pytest.mark.asyncio
async def test_new_burst_after_fire():
    calls = []
    scheduler = CoalescingScheduler(lambda: calls.append(1), 10)

    scheduler.request()
    await asyncio.sleep(0.05)
    scheduler.request()
    await asyncio.sleep(0.05)

    assert calls == [1, 1]
