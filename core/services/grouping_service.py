"""Date grouping for report photos.

Photos are bucketed by the calendar day of their acquisition date. Groups are
created in order of first occurrence in the input; reordering is a separate,
explicit step (see `core.services.sort_service`).
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, tzinfo

from core.models import ALL_KEY, UNDATED_KEY, PhotoGroup, ReportPhoto

_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def local_day(value: datetime, tz: tzinfo | None = None) -> date:
    """Calendar day of `value` in `tz` (system local time when None).

    Naive datetimes are taken to be local already.
    """
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(tz).date()


def day_key(value: datetime | None, tz: tzinfo | None = None) -> str:
    """ISO day key for `value`, or "undated"."""
    if value is None:
        return UNDATED_KEY
    return local_day(value, tz).isoformat()


def format_day_label(day: date) -> str:
    """Long-form label, e.g. "Monday, 3 March 2025"."""
    return f"{_WEEKDAYS[day.weekday()]}, {day.day} {_MONTHS[day.month - 1]} {day.year}"


def filter_by_date_range(
    items: Iterable[ReportPhoto],
    date_from: date | None,
    date_to: date | None,
    tz: tzinfo | None = None,
) -> list[ReportPhoto]:
    """Keep items whose day falls within [date_from, date_to].

    Either bound may be None. Undated items are always kept.
    """
    items = list(items)
    if date_from is None and date_to is None:
        return items
    kept: list[ReportPhoto] = []
    for item in items:
        if item.acquisition_date is None:
            kept.append(item)
            continue
        day = local_day(item.acquisition_date, tz)
        if date_from is not None and day < date_from:
            continue
        if date_to is not None and day > date_to:
            continue
        kept.append(item)
    return kept


class DateGrouper:
    """Partitions photos into day groups.

    Args:
        enabled: When False, `group` returns a single unlabeled group.
        tz: Timezone used to derive the calendar day of aware timestamps.
    """

    def __init__(self, enabled: bool = True, tz: tzinfo | None = None) -> None:
        self.enabled = enabled
        self.tz = tz

    def group(self, items: Iterable[ReportPhoto]) -> list[PhotoGroup]:
        snapshot = tuple(items)
        if not self.enabled:
            return [PhotoGroup(key=ALL_KEY, label=None, items=snapshot)]

        buckets: dict[str, list[ReportPhoto]] = {}
        for item in snapshot:
            buckets.setdefault(day_key(item.acquisition_date, self.tz), []).append(item)

        groups: list[PhotoGroup] = []
        for key, members in buckets.items():
            label = None
            if key != UNDATED_KEY:
                label = format_day_label(local_day(members[0].acquisition_date, self.tz))
            groups.append(PhotoGroup(key=key, label=label, items=tuple(members)))
        return groups
