"""
Local JSON cache of the RNC record list.

Keeps the dashboard usable when the cloud store is unreachable and lets a
session resume with the last imported data.
"""

import json
import logging
import os
from datetime import datetime
from pathlib import Path

from ..models import RNCRecord

logger = logging.getLogger(__name__)

CACHE_VERSION = 1


class LocalCache:
    """Read/write the record list as JSON at `path`."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> list[RNCRecord]:
        """Return cached records; [] when the file is missing or unreadable."""
        if not self.path.is_file():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError):
            logger.exception("Error loading cached RNCs from %s", self.path)
            return []

        # Older caches stored the bare list
        items = payload.get("records", []) if isinstance(payload, dict) else payload
        if not isinstance(items, list):
            logger.warning("Unexpected cache payload in %s, ignoring", self.path)
            return []

        records = []
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                records.append(RNCRecord.from_dict(item))
            except (TypeError, ValueError):
                logger.warning("Skipping malformed cached record: %r", item)
        logger.info("Loaded %d cached RNCs from %s", len(records), self.path)
        return records

    def save(self, records: list[RNCRecord]) -> bool:
        """Write records atomically. Empty lists are not written.

        Returns True when the file was written.
        """
        if not records:
            return False

        payload = {
            "version": CACHE_VERSION,
            "saved_at": datetime.now().isoformat(timespec="seconds"),
            "records": [r.to_dict() for r in records],
        }
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(temp_path, self.path)
        except OSError:
            logger.exception("Error saving RNC cache to %s", self.path)
            if temp_path.exists():
                temp_path.unlink()
            return False

        logger.info("Saved %d RNCs to local cache", len(records))
        return True

    def clear(self) -> None:
        """Remove the cache file if present."""
        try:
            self.path.unlink()
            logger.info("Local RNC cache cleared")
        except FileNotFoundError:
            pass
