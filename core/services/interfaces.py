"""Core service interfaces and shared data structures.

This module defines the import session's state machine, the notifications it
emits to callers, its final result, and the transport error raised by chunk
sources.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from core.models import ReportPhoto


class StreamTransportError(Exception):
    """Raised by a chunk source when the import stream cannot be read.

    Covers non-success HTTP statuses, a missing body and read failures in the
    middle of the stream.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ImportState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    DONE = "done"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ImportState.DONE, ImportState.ERROR, ImportState.CANCELLED)


@dataclass(frozen=True)
class ImportStarted:
    """The remote side announced how many photos it will try to send.

    Attributes:
        total: Number of candidate attachments.
    """

    total: int


@dataclass(frozen=True)
class ItemAdded:
    """A photo was appended to the session's item list.

    Attributes:
        item: The new photo.
        count: Length of the item list after the append.
    """

    item: ReportPhoto
    count: int


@dataclass(frozen=True)
class ImportProgress:
    """Advisory progress reported by the remote side.

    `loaded` may lag behind the actual item list length.
    """

    loaded: int
    total: int
    failed: int = 0


@dataclass(frozen=True)
class ImportCompleted:
    """Summary emitted when the stream reports completion.

    Attributes:
        loaded: Photos the remote side reports as sent.
        failed: Attachments the remote side failed to fetch.
        received: Photos actually appended by this session.
    """

    loaded: int
    failed: int
    received: int


@dataclass(frozen=True)
class ImportFailed:
    """The session ended in error; already received items are kept.

    Attributes:
        message: Human-readable reason, suitable for display.
        code: Remote error code, or a local one such as "TRANSPORT".
        received: Photos appended before the failure.
    """

    message: str
    code: str | None
    received: int


ImportNotice = Union[ImportStarted, ItemAdded, ImportProgress, ImportCompleted, ImportFailed]


@dataclass(frozen=True)
class ImportResult:
    """Final state of a drained session.

    Attributes:
        state: Terminal state reached.
        items: Snapshot of the item list.
        message: Error message when `state` is ERROR.
        loaded: Remote `loaded` count from the completion summary.
        failed: Remote `failed` count from the completion summary.
    """

    state: ImportState
    items: tuple[ReportPhoto, ...]
    message: str | None = None
    loaded: int = 0
    failed: int = 0

    @property
    def ok(self) -> bool:
        return self.state is ImportState.DONE
