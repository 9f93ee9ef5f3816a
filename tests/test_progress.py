"""
Tests for the progress tracker and its subscriptions.
"""

import asyncio

import pytest

from gitbrief.services.progress import ProgressTracker


@pytest.fixture
def tracker():
    return ProgressTracker()


def test_initial_state_is_idle(tracker):
    state = tracker.snapshot()

    assert state.is_running is False
    assert state.current_count == 0
    assert state.total_count == 0


def test_start_is_compare_and_set(tracker):
    assert tracker.start(total=3, message="go") is True
    assert tracker.start(total=9, message="again") is False

    state = tracker.snapshot()
    assert state.total_count == 3
    assert state.message == "go"


def test_advance_increments_and_sets_message(tracker):
    tracker.start()
    tracker.set_total(2)
    tracker.advance("acme/rocket")
    tracker.advance("acme/engine")

    state = tracker.snapshot()
    assert state.current_count == 2
    assert state.total_count == 2
    assert state.message == "acme/engine"


def test_advance_without_run_raises(tracker):
    with pytest.raises(RuntimeError):
        tracker.advance("nope")


def test_finish_keeps_counters_and_allows_new_run(tracker):
    tracker.start(total=1)
    tracker.advance("acme/rocket")
    tracker.finish("completed")

    state = tracker.snapshot()
    assert state.is_running is False
    assert state.message == "completed"
    assert state.current_count == 1
    assert state.finished_at is not None

    assert tracker.start(total=5) is True
    assert tracker.snapshot().current_count == 0


def test_snapshot_is_immutable(tracker):
    state = tracker.snapshot()

    with pytest.raises(Exception):
        state.current_count = 10


@pytest.mark.asyncio
async def test_late_subscriber_gets_terminal_state_only(tracker):
    tracker.start(total=1)
    tracker.advance("acme/rocket")
    tracker.finish("completed")

    states = [state async for state in tracker.subscribe()]

    assert len(states) == 1
    assert states[0].is_running is False
    assert states[0].message == "completed"


@pytest.mark.asyncio
async def test_idle_subscriber_gets_single_event(tracker):
    states = [state async for state in tracker.subscribe()]

    assert len(states) == 1
    assert states[0].is_running is False
    assert tracker.subscriber_count == 0


@pytest.mark.asyncio
async def test_subscriber_follows_run_to_terminal_event(tracker):
    tracker.start(total=0, message="fetching trending list")
    subscription = tracker.subscribe()
    received = []

    async def consume():
        async for state in subscription:
            received.append(state)

    consumer = asyncio.create_task(consume())
    await asyncio.sleep(0)

    tracker.set_total(3)
    for name in ("a", "b", "c"):
        tracker.advance(name)
        await asyncio.sleep(0)
    tracker.finish("completed")

    await asyncio.wait_for(consumer, timeout=1)

    assert received[0].is_running is True
    assert received[-1].is_running is False
    assert received[-1].current_count == 3
    counts = [s.current_count for s in received]
    assert counts == sorted(counts)
    assert tracker.subscriber_count == 0


@pytest.mark.asyncio
async def test_slow_subscriber_skips_intermediate_but_sees_terminal(tracker):
    tracker.start(total=100)
    subscription = tracker.subscribe()

    # Publish everything before the subscriber reads once
    for i in range(100):
        tracker.advance(f"repo-{i}")
    tracker.finish("completed")

    received = [state async for state in subscription]

    assert len(received) == 1
    assert received[0].is_running is False
    assert received[0].current_count == 100


@pytest.mark.asyncio
async def test_many_subscribers_each_see_terminal(tracker):
    tracker.start(total=2)
    subscriptions = [tracker.subscribe() for _ in range(5)]
    assert tracker.subscriber_count == 5

    async def drain(sub):
        return [state async for state in sub]

    tasks = [asyncio.create_task(drain(sub)) for sub in subscriptions]
    await asyncio.sleep(0)
    tracker.advance("a")
    tracker.advance("b")
    tracker.finish("failed: boom")

    results = await asyncio.wait_for(asyncio.gather(*tasks), timeout=1)

    for states in results:
        assert states[-1].is_running is False
        assert states[-1].message == "failed: boom"


@pytest.mark.asyncio
async def test_closed_subscription_is_removed(tracker):
    tracker.start()
    subscription = tracker.subscribe()
    assert tracker.subscriber_count == 1

    subscription.close()

    assert tracker.subscriber_count == 0
    with pytest.raises(StopAsyncIteration):
        await subscription.__anext__()
