"""Incremental decoder for the photo import event stream.

The stream is a sequence of text frames separated by a blank line. Each frame
carries an optional ``event: <name>`` line and a ``data: <json>`` line. The
decoder accepts chunks split at arbitrary byte offsets, including in the
middle of a UTF-8 sequence, and yields the same events regardless of where the
splits fall. CRLF line endings are accepted.
"""

from __future__ import annotations

import codecs
from datetime import datetime
import json
from typing import Any

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

FRAME_DELIMITER = "\n\n"
DEFAULT_EVENT_NAME = "message"
ITEM_EVENT_NAMES = frozenset({"photo", "item"})


def parse_acquisition_date(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp from the stream; None when absent or invalid."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.warning("Invalid dateAdded: {}", value)
        return None


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _split_frame(frame: str) -> tuple[str, str | None]:
    """Return (event name, data text) for a single frame.

    The first ``event:`` line and the last ``data:`` line are significant.
    """
    event_name: str | None = None
    data: str | None = None
    for raw_line in frame.split("\n"):
        line = raw_line.rstrip("\r")
        if line.startswith("event:"):
            if event_name is None:
                event_name = line[len("event:") :].strip()
        elif line.startswith("data:"):
            data = line[len("data:") :].strip()
    return event_name or DEFAULT_EVENT_NAME, data


def build_event(name: str, payload: dict[str, Any]) -> StreamEvent | None:
    """Map a parsed payload onto a typed event, or None when it is not recognized."""
    if name == "start":
        job_id = payload.get("jobId")
        return StartEvent(
            total=_as_int(payload.get("total")),
            job_id=_as_int(job_id) if job_id is not None else None,
        )
    if name in ITEM_EVENT_NAMES:
        photo_id = payload.get("id")
        if photo_id is None or photo_id == "":
            logger.debug("Dropping {} frame without id", name)
            return None
        return ItemEvent(
            ReportPhoto(
                id=str(photo_id),
                name=str(payload.get("name") or ""),
                content_ref=str(payload.get("url") or ""),
                size=_as_int(payload.get("size")),
                acquisition_date=parse_acquisition_date(payload.get("dateAdded")),
            )
        )
    if name == "progress":
        return ProgressEvent(
            loaded=_as_int(payload.get("loaded")),
            total=_as_int(payload.get("total")),
            failed=_as_int(payload.get("failed")),
        )
    if name == "done":
        total = payload.get("total")
        return DoneEvent(
            loaded=_as_int(payload.get("loaded")),
            failed=_as_int(payload.get("failed")),
            total=_as_int(total) if total is not None else None,
        )
    if name == "error":
        code = payload.get("code")
        return ErrorEvent(
            message=str(payload.get("message") or "Failed to load photos"),
            code=str(code) if code else None,
        )
    return None


class FrameDecoder:
    """Turns raw stream chunks into typed events."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Text received after the last complete frame."""
        return self._buffer

    def push(self, chunk: bytes | str) -> list[StreamEvent]:
        """Append `chunk` and return the events of every frame it completes."""
        if isinstance(chunk, str):
            self._buffer += chunk
        else:
            self._buffer += self._decoder.decode(chunk)
        # CRLF line endings frame the same as LF. A lone trailing "\r" stays
        # buffered until the next chunk shows whether a "\n" follows it.
        self._buffer = self._buffer.replace("\r\n", "\n")

        frames = self._buffer.split(FRAME_DELIMITER)
        self._buffer = frames.pop()

        events: list[StreamEvent] = []
        for frame in frames:
            if not frame.strip():
                continue
            event = self._decode_frame(frame)
            if event is not None:
                events.append(event)
        return events

    def _decode_frame(self, frame: str) -> StreamEvent | None:
        name, data = _split_frame(frame)
        if not data:
            logger.debug("Dropping {} frame without data", name)
            return None
        try:
            payload = json.loads(data)
        except ValueError as ex:
            logger.debug("Dropping {} frame with malformed JSON: {}", name, ex)
            return None
        if not isinstance(payload, dict):
            logger.debug("Dropping {} frame with non-object payload", name)
            return None
        return build_event(name, payload)
