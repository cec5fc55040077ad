"""Lightweight view model wrapper around `ReportPhoto`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

from core.models import ReportPhoto


@dataclass
class PhotoVM:
    """Expose convenient properties for the renderer."""

    record: ReportPhoto

    @property
    def caption(self) -> str:
        """Photo name without its file extension."""
        name = self.record.name
        stem = PurePosixPath(name).stem
        return stem if stem else name

    def numbered_caption(self, index: int) -> str:
        """Caption prefixed with the photo's position in the report."""
        return f"{index}. {self.caption}"

    @property
    def size_bytes(self) -> int:
        """File size in bytes (fallback to 0 when missing)."""
        return int(self.record.size or 0)

    @property
    def date_iso(self) -> str | None:
        """Acquisition timestamp in ISO format, if known."""
        dt = self.record.acquisition_date
        return dt.isoformat() if dt else None
