# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Event stream publisher: heartbeats, notifications and resumption."""

from __future__ import annotations

import anyio
import orjson
import pytest

from hostmcp.server.events import EventPublisher
from hostmcp.server.sessions import SessionStore


async def _wait_for_subscriber(publisher: EventPublisher, session_id: str) -> None:
    with anyio.fail_after(2):
        while publisher.subscriber_count(session_id) == 0:
            await anyio.sleep(0.005)


@pytest.mark.anyio
async def test_idle_stream_emits_ping_events() -> None:
    store = SessionStore()
    await store.get_or_create("s")
    publisher = EventPublisher(store, heartbeat_interval=0.02)

    stream = publisher.open("s")
    try:
        with anyio.fail_after(2):
            first = await stream.__anext__()
            second = await stream.__anext__()
    finally:
        await stream.aclose()

    assert (first.event, first.data) == ("ping", "{}")
    assert int(second.id) == int(first.id) + 1
    session = await store.get("s")
    assert session.last_event_id == int(second.id)


@pytest.mark.anyio
async def test_published_notifications_are_delivered_as_messages() -> None:
    store = SessionStore()
    await store.get_or_create("s")
    publisher = EventPublisher(store, heartbeat_interval=10)
    received = []

    async def consume() -> None:
        stream = publisher.open("s")
        try:
            received.append(await stream.__anext__())
        finally:
            await stream.aclose()

    async with anyio.create_task_group() as tg:
        tg.start_soon(consume)
        await _wait_for_subscriber(publisher, "s")
        event_id = await publisher.publish("s", "notifications/tools/list_changed")

    [event] = received
    assert event.event == "message"
    assert int(event.id) == event_id
    assert orjson.loads(event.data) == {"jsonrpc": "2.0", "method": "notifications/tools/list_changed"}
    assert publisher.subscriber_count("s") == 0


@pytest.mark.anyio
async def test_event_ids_are_monotonic_across_pings_and_messages() -> None:
    store = SessionStore()
    await store.get_or_create("s")
    publisher = EventPublisher(store, heartbeat_interval=0.01)

    first = await publisher.publish("s", "a")
    stream = publisher.open("s")
    try:
        with anyio.fail_after(2):
            ping = await stream.__anext__()
    finally:
        await stream.aclose()
    last = await publisher.publish("s", "b", {"n": 1})

    assert first < int(ping.id) < last
    assert (await store.get("s")).last_event_id == last


@pytest.mark.anyio
async def test_reconnect_with_last_event_id_replays_missed_notifications() -> None:
    store = SessionStore()
    await store.get_or_create("s")
    publisher = EventPublisher(store, heartbeat_interval=10, replay_buffer=10)

    ids = [await publisher.publish("s", f"n/{i}") for i in range(3)]

    stream = publisher.open("s", last_event_id=str(ids[0]))
    try:
        with anyio.fail_after(2):
            replayed = [await stream.__anext__(), await stream.__anext__()]
    finally:
        await stream.aclose()

    assert [int(event.id) for event in replayed] == ids[1:]
    assert [orjson.loads(event.data)["method"] for event in replayed] == ["n/1", "n/2"]


@pytest.mark.anyio
async def test_replay_buffer_is_bounded() -> None:
    store = SessionStore()
    publisher = EventPublisher(store, heartbeat_interval=0.01, replay_buffer=2)

    for i in range(5):
        await publisher.publish("s", f"n/{i}")

    stream = publisher.open("s", last_event_id="0")
    try:
        with anyio.fail_after(2):
            events = [await stream.__anext__() for _ in range(3)]
    finally:
        await stream.aclose()

    assert [event.event for event in events] == ["message", "message", "ping"]
    assert [int(event.id) for event in events] == [4, 5, 6]


@pytest.mark.anyio
async def test_close_ends_open_streams() -> None:
    store = SessionStore()
    publisher = EventPublisher(store, heartbeat_interval=10)
    finished = anyio.Event()

    async def consume() -> None:
        async for _ in publisher.open("s"):
            pass
        finished.set()

    async with anyio.create_task_group() as tg:
        tg.start_soon(consume)
        await _wait_for_subscriber(publisher, "s")
        publisher.close("s")
        with anyio.fail_after(2):
            await finished.wait()

    assert publisher.subscriber_count("s") == 0


@pytest.mark.anyio
async def test_counter_resumes_from_session_last_event_id() -> None:
    store = SessionStore()
    await store.get_or_create("s")

    def seed(session) -> None:
        session.last_event_id = 41

    await store.update("s", seed)
    publisher = EventPublisher(store)

    assert await publisher.publish("s", "x") == 42


@pytest.mark.anyio
async def test_streams_for_unknown_sessions_leave_no_channel_behind() -> None:
    store = SessionStore()
    publisher = EventPublisher(store, heartbeat_interval=0.01)

    for i in range(20):
        stream = publisher.open(f"ghost-{i}")
        try:
            with anyio.fail_after(2):
                await stream.__anext__()
        finally:
            await stream.aclose()

    assert not any(f"ghost-{i}" in publisher for i in range(20))


@pytest.mark.anyio
async def test_channel_of_live_session_survives_stream_close() -> None:
    store = SessionStore()
    await store.get_or_create("s")
    publisher = EventPublisher(store, heartbeat_interval=0.01)

    stream = publisher.open("s")
    try:
        with anyio.fail_after(2):
            await stream.__anext__()
    finally:
        await stream.aclose()

    assert "s" in publisher


@pytest.mark.anyio
async def test_prune_drops_orphaned_channels_only() -> None:
    store = SessionStore()
    await store.get_or_create("live")
    publisher = EventPublisher(store)

    await publisher.publish("live", "a")
    await publisher.publish("orphan", "b")

    assert publisher.prune() == ["orphan"]
    assert "orphan" not in publisher
    assert "live" in publisher
