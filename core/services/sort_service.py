"""Ordering of `PhotoGroup` lists.

Grouping keeps first-occurrence order. Reports may instead list days
chronologically; this service applies that ordering without touching the
items inside each group.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from core.models import UNDATED_KEY, PhotoGroup


class GroupOrder(str, Enum):
    FIRST_SEEN = "first_seen"
    CHRONOLOGICAL = "chronological"

    @classmethod
    def parse(cls, value: str | None) -> GroupOrder:
        """Return the member named by `value` (case-insensitive); default FIRST_SEEN."""
        if not value:
            return cls.FIRST_SEEN
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown group order: {value!r}") from exc


class SortService:
    """Provides ordering utilities for `PhotoGroup` lists."""

    def order(self, groups: Iterable[PhotoGroup], order: GroupOrder) -> list[PhotoGroup]:
        """Return groups in the requested order.

        Chronological order sorts dated groups by day key ascending and puts
        the undated group last. The sort is stable.
        """
        groups = list(groups)
        if order is GroupOrder.FIRST_SEEN:
            return groups

        # ISO day keys sort lexically; the leading flag pushes undated last
        return sorted(groups, key=lambda g: (g.key == UNDATED_KEY, g.key))
