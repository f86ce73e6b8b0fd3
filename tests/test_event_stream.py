"""Event-stream generator tests."""

import asyncio
from datetime import UTC, datetime

import pytest

from serve_live.events.hub import NotificationHub
from serve_live.events.types import FilesChanged


async def wait_for_subscribers(hub: NotificationHub, count: int) -> None:
    async with asyncio.timeout(1.0):
        while hub.subscriber_count != count:
            await asyncio.sleep(0.001)


def files_changed() -> FilesChanged:
    return FilesChanged(timestamp=datetime.now(UTC))


@pytest.mark.asyncio
async def test_stream_writes_files_changed_record() -> None:
    """Each notification becomes one record with the event name and empty data."""
    hub = NotificationHub()
    stream = hub.create_sse_generator()
    pending = asyncio.ensure_future(stream.__anext__())
    await wait_for_subscribers(hub, 1)

    await hub.broadcast(files_changed())
    sse = await asyncio.wait_for(pending, timeout=1.0)

    wire = sse.encode().decode()
    assert wire.endswith("\n\n")
    lines = wire.splitlines()
    assert "event: files-changed" in lines
    assert [line.rstrip() for line in lines if line.startswith("data")] == ["data:"]
    assert not any(line.startswith(("id:", "retry:")) for line in lines)

    await stream.aclose()
    assert hub.subscriber_count == 0


@pytest.mark.asyncio
async def test_stream_yields_one_record_per_notification() -> None:
    hub = NotificationHub()
    stream = hub.create_sse_generator()
    first = asyncio.ensure_future(stream.__anext__())
    await wait_for_subscribers(hub, 1)

    for _ in range(3):
        await hub.broadcast(files_changed())

    records = [await asyncio.wait_for(first, timeout=1.0)]
    records.append(await asyncio.wait_for(stream.__anext__(), timeout=1.0))
    records.append(await asyncio.wait_for(stream.__anext__(), timeout=1.0))
    assert [r.event for r in records] == ["files-changed"] * 3

    await stream.aclose()


@pytest.mark.asyncio
async def test_cancelled_stream_unsubscribes() -> None:
    """Cancelling the task serving a client removes its subscriber."""
    hub = NotificationHub()

    async def consume() -> None:
        async for _ in hub.create_sse_generator():
            pass

    task = asyncio.create_task(consume())
    await wait_for_subscribers(hub, 1)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert hub.subscriber_count == 0
    assert await hub.broadcast(files_changed()) == 0


@pytest.mark.asyncio
async def test_disconnect_does_not_affect_other_streams() -> None:
    hub = NotificationHub()
    leaving = hub.create_sse_generator()
    staying = hub.create_sse_generator()
    leaving_next = asyncio.ensure_future(leaving.__anext__())
    staying_next = asyncio.ensure_future(staying.__anext__())
    await wait_for_subscribers(hub, 2)

    leaving_next.cancel()
    with pytest.raises(asyncio.CancelledError):
        await leaving_next
    await wait_for_subscribers(hub, 1)

    assert await hub.broadcast(files_changed()) == 1
    sse = await asyncio.wait_for(staying_next, timeout=1.0)
    assert sse.event == "files-changed"

    await staying.aclose()
    assert hub.subscriber_count == 0
