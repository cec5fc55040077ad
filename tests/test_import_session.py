import asyncio

import pytest
from stream_helpers import FakeReader, photo_payload, sse

from core.services.import_session import ImportSession
from core.services.interfaces import (
    ImportCompleted,
    ImportFailed,
    ImportProgress,
    ImportStarted,
    ImportState,
    ItemAdded,
)


async def _drain(session, source, on_notice=None):
    items, notices = session.start(source)
    seen = []
    async for notice in notices:
        seen.append(notice)
        if on_notice is not None:
            on_notice(session, notice)
    return items, seen


def test_full_stream_reaches_done(full_stream):
    session = ImportSession()
    reader = FakeReader(full_stream)

    items, seen = asyncio.run(_drain(session, reader))

    assert [type(n) for n in seen] == [
        ImportStarted,
        ItemAdded,
        ImportProgress,
        ItemAdded,
        ImportProgress,
        ImportCompleted,
    ]
    assert seen[0] == ImportStarted(total=3)
    assert seen[3].count == 2
    assert seen[-1] == ImportCompleted(loaded=2, failed=1, received=2)
    assert session.state is ImportState.DONE
    assert session.expected_total == 3
    assert [p.id for p in items] == ["simpro_1", "simpro_2"]
    assert reader.closed


def test_stream_split_into_arbitrary_chunks(full_stream):
    blob = b"".join(full_stream)
    chunks = [blob[i : i + 7] for i in range(0, len(blob), 7)]

    result = asyncio.run(ImportSession().run(chunks))

    assert result.ok
    assert len(result.items) == 2
    assert (result.loaded, result.failed) == (2, 1)


def test_error_event_keeps_received_items():
    stream = [
        sse("start", {"total": 5}),
        sse("photo", photo_payload(1)),
        sse("error", {"code": "UNEXPECTED", "message": "SimPRO went away"}),
        sse("photo", photo_payload(2)),
    ]
    session = ImportSession()

    items, seen = asyncio.run(_drain(session, FakeReader(stream)))

    assert seen[-1] == ImportFailed(message="SimPRO went away", code="UNEXPECTED", received=1)
    assert session.state is ImportState.ERROR
    assert len(items) == 1
    assert session.result().message == "SimPRO went away"


def test_transport_failure_mid_stream():
    stream = [sse("start", {"total": 2}) + sse("photo", photo_payload(1)), sse("done", {})]
    session = ImportSession()
    reader = FakeReader(stream, fail_after=1)

    items, seen = asyncio.run(_drain(session, reader))

    assert isinstance(seen[-1], ImportFailed)
    assert seen[-1].code == "TRANSPORT"
    assert seen[-1].message == "connection reset"
    assert session.state is ImportState.ERROR
    assert len(items) == 1
    assert reader.closed


def test_stream_ending_without_done_is_an_error():
    result = asyncio.run(ImportSession().run([sse("photo", photo_payload(1))]))

    assert result.state is ImportState.ERROR
    assert len(result.items) == 1
    assert "ended" in result.message


def test_cancel_stops_notifications_and_closes_reader():
    stream = [
        sse("photo", photo_payload(1)) + sse("photo", photo_payload(2)),
        sse("photo", photo_payload(3)),
        sse("done", {"loaded": 3}),
    ]
    session = ImportSession()
    reader = FakeReader(stream)

    def cancel_on_first_item(s, notice):
        if isinstance(notice, ItemAdded):
            s.cancel()

    items, seen = asyncio.run(_drain(session, reader, cancel_on_first_item))

    assert len(seen) == 1
    assert len(items) == 1
    assert session.state is ImportState.CANCELLED
    assert reader.reads == 1
    assert reader.closed


def test_cancel_before_reading_reads_nothing(full_stream):
    session = ImportSession()
    reader = FakeReader(full_stream)
    items, notices = session.start(reader)
    session.cancel()

    async def consume():
        return [n async for n in notices]

    assert asyncio.run(consume()) == []
    assert reader.reads == 0
    assert session.state is ImportState.CANCELLED
    assert len(items) == 0


def test_events_after_done_are_ignored():
    stream = [sse("done", {"loaded": 0}) + sse("photo", photo_payload(1))]

    result = asyncio.run(ImportSession().run(stream))

    assert result.ok
    assert result.items == ()


def test_session_cannot_be_restarted(full_stream):
    session = ImportSession()
    asyncio.run(session.run(full_stream))

    with pytest.raises(RuntimeError):
        session.start(full_stream)


def test_run_forwards_notices_to_listener(full_stream):
    received = []

    asyncio.run(ImportSession().run(full_stream, received.append))

    assert len(received) == 6


def test_item_view_is_read_only(full_stream):
    session = ImportSession()
    asyncio.run(session.run(full_stream))
    view = session.items

    assert not hasattr(view, "append")
    with pytest.raises(TypeError):
        view[0] = None  # type: ignore[index]
    assert view[:1] == (view[0],)
    assert view.snapshot() == tuple(view)


async def _wait_for_items(session, count):
    while len(session.items) < count:
        await asyncio.sleep(0.005)


def test_cancel_abandons_read_on_quiet_stream():
    session = ImportSession()
    reader = FakeReader([sse("photo", photo_payload(1))], stall=True)

    async def scenario():
        task = asyncio.create_task(session.run(reader))
        await asyncio.wait_for(_wait_for_items(session, 1), 1)
        await asyncio.sleep(0.05)
        session.cancel()
        return await asyncio.wait_for(task, 1)

    result = asyncio.run(scenario())

    assert result.state is ImportState.CANCELLED
    assert [p.id for p in result.items] == ["simpro_1"]
    assert reader.closed


def test_task_cancellation_ends_in_cancelled_state():
    session = ImportSession()
    reader = FakeReader([sse("photo", photo_payload(1))], stall=True)

    async def scenario():
        task = asyncio.create_task(session.run(reader))
        await asyncio.wait_for(_wait_for_items(session, 1), 1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    assert session.state is ImportState.CANCELLED
    assert session.state.is_terminal
    assert len(session.items) == 1
    assert reader.closed
