"""Import session driving a photo event stream to completion.

A session owns the item list for one import. Callers drive it by iterating
the notifications returned from `start`; the only suspension point is the
read of the next chunk from the source. Decoding and notification dispatch
run to completion between reads, so notifications arrive strictly in stream
order. A pending read is raced against `cancel`, so a stream that has
gone quiet can still be cancelled.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable, Sequence
from typing import overload

from loguru import logger

from core.models import (
    DoneEvent,
    ErrorEvent,
    ItemEvent,
    ProgressEvent,
    ReportPhoto,
    StartEvent,
    StreamEvent,
)
from core.services.frame_decoder import FrameDecoder
from core.services.interfaces import (
    ImportCompleted,
    ImportFailed,
    ImportNotice,
    ImportProgress,
    ImportResult,
    ImportStarted,
    ImportState,
    ItemAdded,
    StreamTransportError,
)

ChunkSource = AsyncIterable[bytes] | Iterable[bytes]


class ItemListView(Sequence[ReportPhoto]):
    """Read-only view over a session's append-only item list."""

    def __init__(self, items: list[ReportPhoto]) -> None:
        self._items = items

    @overload
    def __getitem__(self, index: int) -> ReportPhoto: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[ReportPhoto, ...]: ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return tuple(self._items[index])
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def snapshot(self) -> tuple[ReportPhoto, ...]:
        """Copy of the items received so far."""
        return tuple(self._items)

    def __repr__(self) -> str:
        return f"ItemListView({len(self._items)} items)"


async def _aiter_sync(chunks: Iterable[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk


def _as_async(source: ChunkSource) -> AsyncIterator[bytes]:
    if hasattr(source, "__aiter__"):
        return source.__aiter__()  # type: ignore[union-attr]
    return _aiter_sync(source)  # type: ignore[arg-type]


_END_OF_STREAM = object()
_CANCELLED = object()


async def _next_chunk(reader: AsyncIterator[bytes]) -> bytes | object:
    try:
        return await reader.__anext__()
    except StopAsyncIteration:
        return _END_OF_STREAM


async def _abandon(*tasks: asyncio.Future) -> None:
    """Cancel `tasks` and wait until they have finished unwinding."""
    for task in tasks:
        task.cancel()
    await asyncio.wait(set(tasks))
    for task in tasks:
        if not task.cancelled():
            task.exception()


class ImportSession:
    """One-shot import of a photo event stream.

    State moves `IDLE -> STREAMING -> {DONE | ERROR | CANCELLED}` and never
    back; create a new session to retry.
    """

    def __init__(self, decoder: FrameDecoder | None = None) -> None:
        self._decoder = decoder or FrameDecoder()
        self._items: list[ReportPhoto] = []
        self._view = ItemListView(self._items)
        self._state = ImportState.IDLE
        self._cancelled = False
        self._cancel_event = asyncio.Event()
        self._expected_total: int | None = None
        self._message: str | None = None
        self._loaded = 0
        self._failed = 0

    @property
    def state(self) -> ImportState:
        return self._state

    @property
    def items(self) -> ItemListView:
        return self._view

    @property
    def expected_total(self) -> int | None:
        """Total announced by the start event, if one arrived."""
        return self._expected_total

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Request cancellation; abandons a pending read and closes the reader."""
        if not self._state.is_terminal:
            self._cancelled = True
            self._cancel_event.set()

    def start(self, source: ChunkSource) -> tuple[ItemListView, AsyncIterator[ImportNotice]]:
        """Begin streaming from `source`.

        Returns the live item view and an async iterator of notifications.
        Nothing is read until the iterator is consumed.
        """
        if self._state is not ImportState.IDLE:
            raise RuntimeError(f"Import session already {self._state.value}")
        self._state = ImportState.STREAMING
        return self._view, self._stream(_as_async(source))

    async def run(
        self,
        source: ChunkSource,
        listener: Callable[[ImportNotice], None] | None = None,
    ) -> ImportResult:
        """Drain the session, forwarding each notification to `listener`."""
        _, notices = self.start(source)
        async for notice in notices:
            if listener is not None:
                listener(notice)
        return self.result()

    def result(self) -> ImportResult:
        """Current outcome with a snapshot of the items."""
        return ImportResult(
            state=self._state,
            items=self._view.snapshot(),
            message=self._message,
            loaded=self._loaded,
            failed=self._failed,
        )

    async def _stream(self, reader: AsyncIterator[bytes]) -> AsyncIterator[ImportNotice]:
        try:
            while not self._state.is_terminal:
                if self._cancelled:
                    self._mark_cancelled()
                    return
                try:
                    chunk = await self._read(reader)
                except asyncio.CancelledError:
                    self._mark_cancelled()
                    raise
                except (StreamTransportError, OSError) as ex:
                    logger.error("Import stream read failed: {}", ex)
                    yield self._fail(str(ex) or "Failed to fetch photos", "TRANSPORT")
                    return
                if chunk is _END_OF_STREAM:
                    logger.warning(
                        "Import stream ended before completion ({} items)", len(self._items)
                    )
                    yield self._fail("Import stream ended before completion", "STREAM_ENDED")
                    return
                if self._cancelled:
                    self._mark_cancelled()
                    return

                for event in self._decoder.push(chunk):
                    if self._cancelled:
                        self._mark_cancelled()
                        return
                    notice = self._apply(event)
                    if notice is not None:
                        yield notice
                    if self._state.is_terminal:
                        break
        finally:
            if not self._state.is_terminal:
                self._mark_cancelled()
            await self._close(reader)

    async def _read(self, reader: AsyncIterator[bytes]) -> bytes | object:
        """Next chunk, `_END_OF_STREAM`, or `_CANCELLED` if `cancel` won the race."""
        read = asyncio.ensure_future(_next_chunk(reader))
        cancel_wait = asyncio.ensure_future(self._cancel_event.wait())
        try:
            await asyncio.wait({read, cancel_wait}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            await _abandon(read, cancel_wait)
            raise
        if read.done():
            cancel_wait.cancel()
            return read.result()
        await _abandon(read, cancel_wait)
        return _CANCELLED

    def _apply(self, event: StreamEvent) -> ImportNotice | None:
        if isinstance(event, StartEvent):
            self._expected_total = event.total
            logger.info("Import started: {} photos expected", event.total)
            return ImportStarted(total=event.total)
        if isinstance(event, ItemEvent):
            self._items.append(event.item)
            return ItemAdded(item=event.item, count=len(self._items))
        if isinstance(event, ProgressEvent):
            return ImportProgress(loaded=event.loaded, total=event.total, failed=event.failed)
        if isinstance(event, DoneEvent):
            self._state = ImportState.DONE
            self._loaded = event.loaded
            self._failed = event.failed
            logger.info(
                "Import done: loaded={} failed={} received={}",
                event.loaded,
                event.failed,
                len(self._items),
            )
            return ImportCompleted(
                loaded=event.loaded, failed=event.failed, received=len(self._items)
            )
        if isinstance(event, ErrorEvent):
            logger.error("Import reported error [{}]: {}", event.code, event.message)
            return self._fail(event.message, event.code)
        return None

    def _fail(self, message: str, code: str | None) -> ImportFailed:
        self._state = ImportState.ERROR
        self._message = message
        return ImportFailed(message=message, code=code, received=len(self._items))

    def _mark_cancelled(self) -> None:
        self._state = ImportState.CANCELLED
        logger.info("Import cancelled after {} items", len(self._items))

    @staticmethod
    async def _close(reader: AsyncIterator[bytes]) -> None:
        aclose = getattr(reader, "aclose", None)
        if aclose is not None:
            await aclose()
