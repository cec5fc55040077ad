"""Core domain models for report photos, stream events, groups and pages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Union

UNDATED_KEY = "undated"
ALL_KEY = "all"


@dataclass(frozen=True)
class ReportPhoto:
    """A single photo reported by the import stream."""

    id: str
    name: str
    content_ref: str
    size: int = 0
    acquisition_date: datetime | None = None


# Stream events


@dataclass(frozen=True)
class StartEvent:
    total: int
    job_id: int | None = None


@dataclass(frozen=True)
class ItemEvent:
    item: ReportPhoto


@dataclass(frozen=True)
class ProgressEvent:
    loaded: int
    total: int
    failed: int = 0


@dataclass(frozen=True)
class DoneEvent:
    loaded: int
    failed: int = 0
    total: int | None = None


@dataclass(frozen=True)
class ErrorEvent:
    message: str
    code: str | None = None


StreamEvent = Union[StartEvent, ItemEvent, ProgressEvent, DoneEvent, ErrorEvent]


@dataclass(frozen=True)
class PhotoGroup:
    """Photos sharing one acquisition-day key, in first-occurrence order."""

    key: str
    label: str | None
    items: tuple[ReportPhoto, ...] = ()


# Layout


@dataclass(frozen=True)
class LayoutConstants:
    """Fixed page geometry used by the layout engine.

    Values are opaque heights in the renderer's units. No validation is
    performed; `header_height + row_height <= page_capacity` is assumed.
    """

    page_capacity: int = 1035
    row_height: int = 270
    header_height: int = 34
    group_gap: int = 36
    row_capacity: int = 3


@dataclass(frozen=True)
class DateHeader:
    label: str


@dataclass(frozen=True)
class ContentRow:
    items: tuple[ReportPhoto, ...]


LayoutItem = Union[DateHeader, ContentRow]


@dataclass(frozen=True)
class Page:
    """One printable page of layout items."""

    items: tuple[LayoutItem, ...] = field(default_factory=tuple)
    used_height: int = 0
