"""ViewModel for orchestrating the photo import, grouping and page layout."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date, tzinfo
from pathlib import Path

from loguru import logger

from app.viewmodels.page_vm import pages_to_dict
from core.models import LayoutConstants, Page, PhotoGroup, ReportPhoto
from core.rules.engine import ReportTemplates, RuleEngine
from core.services.grouping_service import DateGrouper, filter_by_date_range
from core.services.import_session import ChunkSource, ImportSession
from core.services.interfaces import ImportNotice, ImportResult
from core.services.layout_service import PageLayoutEngine
from core.services.sort_service import GroupOrder, SortService


@dataclass
class ReportOptions:
    """Report display options.

    Attributes:
        show_dates: Group photos by day and print a header per day.
        group_order: Order of day groups.
        date_from: Inclusive lower day bound; undated photos are always kept.
        date_to: Inclusive upper day bound.
        tz: Timezone used to derive calendar days (local when None).
    """

    show_dates: bool = True
    group_order: GroupOrder = GroupOrder.FIRST_SEEN
    date_from: date | None = None
    date_to: date | None = None
    tz: tzinfo | None = None


class ReportVM:
    """Main report view-model.

    Owns the current photo list. Pages are rebuilt explicitly through
    `build_pages` whenever photos or options change.
    """

    def __init__(
        self,
        repo=None,
        constants: LayoutConstants | None = None,
        options: ReportOptions | None = None,
        sorter: SortService | None = None,
        rules: RuleEngine | None = None,
    ) -> None:
        """Create a ReportVM.

        Args:
            repo: Repository with a `save(path, document)` method.
            constants: Page geometry (defaults to `LayoutConstants()`).
            options: Display options (defaults to `ReportOptions()`).
            sorter: Group ordering service (defaults to `SortService`).
            rules: Template rule engine (defaults to `RuleEngine`).
        """
        self._repo = repo
        self._engine = PageLayoutEngine(constants)
        self._sorter = sorter or SortService()
        self._rules = rules or RuleEngine()
        self.options = options or ReportOptions()
        self.photos: list[ReportPhoto] = []
        self.templates = ReportTemplates()
        self.session: ImportSession | None = None
        self.last_result: ImportResult | None = None

    @property
    def constants(self) -> LayoutConstants:
        return self._engine.constants

    async def import_stream(
        self,
        source: ChunkSource,
        listener: Callable[[ImportNotice], None] | None = None,
    ) -> ImportResult:
        """Run a fresh import session and replace the photo list with its items.

        Items received before a failure or cancellation are kept.
        """
        self.session = ImportSession()
        result = await self.session.run(source, listener)
        self.last_result = result
        self.photos = list(result.items)
        if result.ok:
            self.templates = self._rules.execute(self.photos)
        else:
            self.templates = ReportTemplates()
            logger.warning(
                "Import ended in {} with {} photos: {}",
                result.state.value,
                len(self.photos),
                result.message,
            )
        return result

    def cancel_import(self) -> None:
        """Cancel the running import, if any."""
        if self.session is not None:
            self.session.cancel()

    def add_photos(self, photos: list[ReportPhoto]) -> None:
        self.photos.extend(photos)

    def remove_photo(self, photo_id: str) -> None:
        self.photos = [p for p in self.photos if p.id != photo_id]

    def rename_photo(self, photo_id: str, name: str) -> None:
        self.photos = [replace(p, name=name) if p.id == photo_id else p for p in self.photos]

    def build_groups(self) -> list[PhotoGroup]:
        """Filter, group and order a snapshot of the current photos."""
        opts = self.options
        photos = filter_by_date_range(tuple(self.photos), opts.date_from, opts.date_to, opts.tz)
        groups = DateGrouper(enabled=opts.show_dates, tz=opts.tz).group(photos)
        return self._sorter.order(groups, opts.group_order)

    def build_pages(self) -> list[Page]:
        """Lay out the current photos onto pages."""
        return self._engine.layout(self.build_groups(), show_dates=self.options.show_dates)

    def export_pages(self, path: str | Path) -> Path:
        """Write the current page list to `path` via the repository."""
        if self._repo is None:
            raise RuntimeError("ReportVM has no page repository")
        return self._repo.save(path, pages_to_dict(self.build_pages()))

    @property
    def photo_count(self) -> int:
        """Number of photos currently in the report."""
        return len(self.photos)
