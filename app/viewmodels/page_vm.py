"""Renderer-facing serialization of laid-out pages."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from app.viewmodels.photo_vm import PhotoVM
from core.models import ContentRow, DateHeader, Page


def pages_to_dict(pages: Iterable[Page]) -> dict[str, Any]:
    """Serialize `pages`, numbering photos across the whole report in page order."""
    index = 0
    out_pages: list[dict[str, Any]] = []
    for page in pages:
        items: list[dict[str, Any]] = []
        for item in page.items:
            if isinstance(item, DateHeader):
                items.append({"type": "dateHeader", "label": item.label})
                continue
            if not isinstance(item, ContentRow):
                continue
            photos = []
            for photo in item.items:
                index += 1
                vm = PhotoVM(photo)
                photos.append(
                    {
                        "index": index,
                        "id": photo.id,
                        "name": photo.name,
                        "caption": vm.numbered_caption(index),
                        "url": photo.content_ref,
                        "size": vm.size_bytes,
                        "dateAdded": vm.date_iso,
                    }
                )
            items.append({"type": "photoRow", "photos": photos})
        out_pages.append({"used_height": page.used_height, "items": items})
    return {"photo_count": index, "pages": out_pages}
