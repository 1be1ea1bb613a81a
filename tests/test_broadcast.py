# tests/test_broadcast.py

from __future__ import annotations

import asyncio

import pytest

from app.features.tasks.broadcast import (
    NEW_TASK,
    Subscription,
    SubscriptionClosed,
    TaskBroadcaster,
)


@pytest.mark.asyncio
async def test_publish_reaches_every_subscriber() -> None:
    broadcaster = TaskBroadcaster()
    a = broadcaster.subscribe()
    b = broadcaster.subscribe()

    assert broadcaster.publish(NEW_TASK, {"id": 1}) == 2

    assert await a.next() == {"event": NEW_TASK, "data": {"id": 1}}
    assert await b.next() == {"event": NEW_TASK, "data": {"id": 1}}


@pytest.mark.asyncio
async def test_unsubscribed_client_receives_nothing() -> None:
    broadcaster = TaskBroadcaster()
    sub = broadcaster.subscribe()
    broadcaster.unsubscribe(sub)
    broadcaster.unsubscribe(sub)

    assert broadcaster.publish(NEW_TASK, {"id": 1}) == 0
    assert sub.pending == 0
    assert broadcaster.subscriber_count == 0


@pytest.mark.asyncio
async def test_push_first_jumps_the_queue() -> None:
    sub = Subscription()
    sub.push({"event": "b"})
    sub.push_first({"event": "a"})

    assert (await sub.next())["event"] == "a"
    assert (await sub.next())["event"] == "b"


@pytest.mark.asyncio
async def test_next_waits_for_a_message() -> None:
    sub = Subscription()
    waiter = asyncio.create_task(sub.next())
    await asyncio.sleep(0)
    assert not waiter.done()

    sub.push({"event": "late"})
    assert (await asyncio.wait_for(waiter, timeout=1))["event"] == "late"


@pytest.mark.asyncio
async def test_lagging_subscriber_is_dropped_without_failing_publish() -> None:
    broadcaster = TaskBroadcaster(max_pending=2)
    slow = broadcaster.subscribe()
    fast = broadcaster.subscribe()

    for i in range(2):
        assert broadcaster.publish(NEW_TASK, {"id": i}) == 2
        await fast.next()

    # la file de "slow" est pleine : il est retiré, "fast" reçoit toujours
    assert broadcaster.publish(NEW_TASK, {"id": 2}) == 1
    assert broadcaster.subscriber_count == 1
    assert slow.closed

    with pytest.raises(SubscriptionClosed):
        await slow.next()
    assert (await fast.next())["data"] == {"id": 2}


def test_unsubscribe_during_publish_iteration_is_safe() -> None:
    broadcaster = TaskBroadcaster(max_pending=1)
    subs = [broadcaster.subscribe() for _ in range(3)]
    broadcaster.publish(NEW_TASK, {"id": 1})

    # toutes les files sont pleines : chaque abonné est retiré pendant la boucle
    assert broadcaster.publish(NEW_TASK, {"id": 2}) == 0
    assert broadcaster.subscriber_count == 0
    assert all(s.closed for s in subs)
