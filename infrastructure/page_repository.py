"""JSON persistence of laid-out photo pages for the document renderer."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from loguru import logger


class JsonPageRepository:
    """Save and load serialized page lists as JSON files."""

    def save(self, json_path: str | Path, document: dict[str, Any]) -> Path:
        """Write `document` to `json_path`, creating parent directories."""
        path = Path(json_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(document, f, ensure_ascii=False, indent=2)
        logger.info(
            "Wrote {} pages ({} photos) to {}",
            len(document.get("pages", [])),
            document.get("photo_count", 0),
            path,
        )
        return path

    def load(self, json_path: str | Path) -> dict[str, Any]:
        """Read a document previously written by `save`."""
        path = Path(json_path)
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict) or "pages" not in data:
            raise ValueError(f"Not a page document: {path}")
        return data
