"""Page layout for grouped report photos.

Packs date headers and fixed-height photo rows onto pages of fixed capacity
in a single greedy pass. A date header is only placed where its first row
also fits, so a header never ends up alone at the bottom of a page.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from loguru import logger

from core.models import (
    ContentRow,
    DateHeader,
    LayoutConstants,
    LayoutItem,
    Page,
    PhotoGroup,
    ReportPhoto,
)


def chunk_rows(items: Sequence[ReportPhoto], row_capacity: int) -> list[ContentRow]:
    """Split `items` into consecutive rows of at most `row_capacity`."""
    return [
        ContentRow(items=tuple(items[i : i + row_capacity]))
        for i in range(0, len(items), row_capacity)
    ]


class _PageBuilder:
    """Accumulates the current page and the running used height."""

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self.pages: list[Page] = []
        self.current: list[LayoutItem] = []
        self.used = 0

    def fits(self, height: int) -> bool:
        # An empty page accepts anything so layout always makes progress
        return self.used == 0 or self.used + height <= self.capacity

    def place(self, item: LayoutItem, height: int) -> None:
        self.current.append(item)
        self.used += height

    def flush(self) -> None:
        if not self.current:
            return
        self.pages.append(Page(items=tuple(self.current), used_height=self.used))
        self.current = []
        self.used = 0


class PageLayoutEngine:
    """Deterministic paginator for photo groups."""

    def __init__(self, constants: LayoutConstants | None = None) -> None:
        self.constants = constants or LayoutConstants()

    def layout(
        self,
        groups: Iterable[PhotoGroup],
        constants: LayoutConstants | None = None,
        show_dates: bool = True,
    ) -> list[Page]:
        """Lay `groups` out onto pages.

        Args:
            groups: Groups in display order. Empty groups are skipped.
            constants: Geometry override for this call.
            show_dates: Emit a date header before each labeled group.

        Returns:
            Pages in order; never contains an empty page.
        """
        c = constants or self.constants
        groups = [g for g in groups if g.items]
        builder = _PageBuilder(c.page_capacity)

        for index, group in enumerate(groups):
            if show_dates and group.label:
                if not builder.fits(c.header_height + c.row_height):
                    builder.flush()
                builder.place(DateHeader(label=group.label), c.header_height)

            for row in chunk_rows(group.items, c.row_capacity):
                if not builder.fits(c.row_height):
                    builder.flush()
                builder.place(row, c.row_height)

            is_last = index == len(groups) - 1
            if not is_last and builder.used > 0 and builder.used + c.group_gap < c.page_capacity:
                builder.used += c.group_gap

        builder.flush()
        logger.debug(
            "Laid out {} groups onto {} pages", len(groups), len(builder.pages)
        )
        return builder.pages


def layout_pages(
    groups: Iterable[PhotoGroup],
    constants: LayoutConstants | None = None,
    show_dates: bool = True,
) -> list[Page]:
    """Functional shorthand for `PageLayoutEngine().layout(...)`."""
    return PageLayoutEngine(constants).layout(groups, show_dates=show_dates)
