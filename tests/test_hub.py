"""Notification hub tests."""

import asyncio
from datetime import UTC, datetime

import pytest

from serve_live.events.hub import NotificationHub
from serve_live.events.types import EventType, FilesChanged


def make_event(coalesced: int = 1) -> FilesChanged:
    return FilesChanged(timestamp=datetime.now(UTC), coalesced=coalesced)


@pytest.mark.asyncio
async def test_broadcast_reaches_every_subscriber() -> None:
    """Each registered subscriber receives the notification."""
    hub = NotificationHub()
    first = hub.subscribe()
    second = hub.subscribe()

    delivered = await hub.broadcast(make_event())

    assert delivered == 2
    assert (await first.get()).type is EventType.FILES_CHANGED
    assert (await second.get()).type is EventType.FILES_CHANGED


@pytest.mark.asyncio
async def test_broadcast_with_no_subscribers_is_dropped() -> None:
    hub = NotificationHub()
    assert await hub.broadcast(make_event()) == 0

    late = hub.subscribe()
    assert late.pending == 0


@pytest.mark.asyncio
async def test_late_subscriber_only_sees_future_events() -> None:
    hub = NotificationHub()
    early = hub.subscribe()
    await hub.broadcast(make_event(coalesced=1))

    late = hub.subscribe()
    await hub.broadcast(make_event(coalesced=2))

    assert early.pending == 2
    assert late.pending == 1
    assert (await late.get()).coalesced == 2


def test_subscribers_have_unique_ids() -> None:
    hub = NotificationHub()
    ids = {hub.subscribe().id for _ in range(50)}
    assert len(ids) == 50
    assert hub.subscriber_count == 50


def test_unsubscribe_is_idempotent() -> None:
    """Removing an unknown or already-removed subscriber is a no-op."""
    hub = NotificationHub()
    subscriber = hub.subscribe()
    other = NotificationHub().subscribe()

    assert hub.unsubscribe(subscriber) is True
    assert hub.unsubscribe(subscriber) is False
    assert hub.unsubscribe(other) is False
    assert hub.subscriber_count == 0


@pytest.mark.asyncio
async def test_unsubscribed_channel_gets_no_more_events() -> None:
    hub = NotificationHub()
    gone = hub.subscribe()
    stays = hub.subscribe()
    hub.unsubscribe(gone)

    assert await hub.broadcast(make_event()) == 1
    assert gone.pending == 0
    assert stays.pending == 1


@pytest.mark.asyncio
async def test_slow_subscriber_drops_oldest_without_blocking_others() -> None:
    """A subscriber that never reads loses old events; others get everything."""
    hub = NotificationHub(queue_size=3)
    stalled = hub.subscribe()
    reader = hub.subscribe()
    received: list[int] = []

    for n in range(1, 11):
        await hub.broadcast(make_event(coalesced=n))
        received.append((await reader.get()).coalesced)

    assert received == list(range(1, 11))
    assert stalled.pending == 3
    assert stalled.dropped == 7
    assert hub.dropped_events == 7
    assert [(await stalled.get()).coalesced for _ in range(3)] == [8, 9, 10]


def test_subscription_context_removes_on_error() -> None:
    hub = NotificationHub()

    with pytest.raises(RuntimeError):
        with hub.subscription() as subscriber:
            assert hub.subscriber_count == 1
            raise RuntimeError("connection reset")

    assert hub.subscriber_count == 0
    assert hub.unsubscribe(subscriber) is False


def test_repeated_cycles_return_to_baseline() -> None:
    hub = NotificationHub()
    keeper = hub.subscribe()

    for _ in range(100):
        with hub.subscription():
            assert hub.subscriber_count == 2

    assert hub.subscriber_count == 1
    hub.unsubscribe(keeper)
    assert hub.subscriber_count == 0


@pytest.mark.asyncio
async def test_concurrent_subscribe_during_broadcasts() -> None:
    """Subscribers registered before a broadcast returns receive it or a later one."""
    hub = NotificationHub(queue_size=1)

    async def churn() -> None:
        for _ in range(200):
            with hub.subscription():
                await asyncio.sleep(0)

    async def broadcaster() -> None:
        for _ in range(200):
            await hub.broadcast(make_event())
            await asyncio.sleep(0)

    await asyncio.gather(churn(), churn(), broadcaster())
    assert hub.subscriber_count == 0

    subscriber = hub.subscribe()
    await hub.broadcast(make_event())
    assert subscriber.pending == 1
