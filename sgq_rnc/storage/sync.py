"""
In-memory RNC record set kept in sync with the local cache and, when
configured, the Firestore collection.

Writes go to the local cache first and are then pushed to the cloud. Cloud
snapshots are merged over the cached records, except for numbers with local
changes still waiting to be pushed. Without a repository, or when the cloud
fails, the store keeps working from the cache alone.
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable

from ..exceptions import StorageError
from ..models import RNCRecord
from ..transforms import clean_batch, merge_records
from .firestore import FirestoreRepository
from .local_cache import LocalCache

logger = logging.getLogger(__name__)


class RncStore:
    def __init__(self, cache: LocalCache, repository: FirestoreRepository | None = None):
        self.cache = cache
        self.repository = repository
        self.last_sync: datetime | None = None
        self.last_error: str | None = None
        self.is_syncing = False

        self._records: list[RNCRecord] = []
        self._pending: set[str] = set()
        self._lock = threading.RLock()
        self._unsubscribe: Callable[[], None] | None = None
        self._clearing = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def cloud_enabled(self) -> bool:
        return self.repository is not None

    @property
    def is_listening(self) -> bool:
        return self._unsubscribe is not None

    @property
    def records(self) -> list[RNCRecord]:
        with self._lock:
            return list(self._records)

    @property
    def pending(self) -> list[str]:
        """Numbers changed locally and not yet confirmed by the cloud."""
        with self._lock:
            return sorted(self._pending)

    # ------------------------------------------------------------------
    # Loading and realtime sync
    # ------------------------------------------------------------------
    def load_cached(self) -> list[RNCRecord]:
        """Replace the in-memory set with the local cache contents."""
        cached = self.cache.load()
        with self._lock:
            self._records = cached
        return self.records

    def start_realtime(self) -> bool:
        """Subscribe to cloud snapshots. Returns False in cache-only mode."""
        if self.repository is None or self._unsubscribe is not None:
            return False
        try:
            self._unsubscribe = self.repository.subscribe(self.apply_cloud_snapshot)
        except Exception as exc:
            logger.exception("Could not start realtime RNC listener")
            self.last_error = str(exc)
            return False
        logger.info("Realtime RNC listener started")
        return True

    def stop_realtime(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            logger.info("Realtime RNC listener stopped")

    def apply_cloud_snapshot(self, cloud_records: list[RNCRecord]) -> None:
        """Merge a cloud snapshot over the local set and refresh the cache."""
        with self._lock:
            if self._clearing:
                logger.debug("Ignoring snapshot of %d RNCs during clear", len(cloud_records))
                return
            incoming = [r for r in cloud_records if r.number not in self._pending]
            self._records = merge_records(self._records, incoming)
            self.last_sync = datetime.now()
            self.cache.save(self._records)

    def pull(self) -> bool:
        """One-off fetch of the cloud collection, merged like a snapshot."""
        if self.repository is None:
            return False
        try:
            cloud_records = self.repository.fetch_all()
        except StorageError as exc:
            self.last_error = str(exc)
            logger.warning("Cloud fetch failed, using local cache")
            return False
        self.apply_cloud_snapshot(cloud_records)
        return True

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def ingest(self, new_records: list[RNCRecord]) -> dict:
        """Clean, merge (last write wins), cache and push a batch of records.

        Returns
        -------
        Dict with: received, added, updated, total, synced
        """
        cleaned = clean_batch(new_records)
        with self._lock:
            stored = {r.number: r for r in self._records}
            cleaned = [_keep_timestamps(r, stored.get(r.number)) for r in cleaned]
            known = set(stored)
            self._records = merge_records(self._records, cleaned)
            self._pending.update(r.number for r in cleaned)
            self.cache.save(self._records)
            total = len(self._records)

        added = sum(1 for r in cleaned if r.number not in known)
        summary = {
            "received": len(new_records),
            "added": added,
            "updated": len(cleaned) - added,
            "total": total,
            "synced": self._push(cleaned) if cleaned else False,
        }
        logger.info(
            "Ingested %d records (%d new, %d updated), store holds %d",
            len(cleaned), summary["added"], summary["updated"], total,
        )
        return summary

    def save_all(self) -> bool:
        """Write the whole set to the cache and push it to the cloud.

        Returns True when the cloud accepted the write.
        """
        records = self.records
        self.cache.save(records)
        return self._push(records)

    def clear(self) -> None:
        """Drop every record locally and in the cloud.

        The realtime listener is paused while the cloud collection is
        deleted page by page; snapshots of the half-deleted collection
        would otherwise merge the remaining documents back.
        """
        was_listening = self.is_listening
        self.stop_realtime()
        with self._lock:
            self._clearing = True
            self._records = []
            self._pending.clear()
        self.cache.clear()
        try:
            if self.repository is not None:
                self.repository.delete_all()
        except StorageError as exc:
            self.last_error = str(exc)
            logger.warning("Cloud delete failed; local data was cleared")
        finally:
            with self._lock:
                self._clearing = False
        if was_listening:
            self.start_realtime()

    def _push(self, records: list[RNCRecord]) -> bool:
        if self.repository is None or not records:
            return False

        self.is_syncing = True
        try:
            self.repository.upsert_many(records)
        except StorageError as exc:
            self.last_error = str(exc)
            logger.warning(
                "Cloud unavailable, keeping %d records in local cache", len(records)
            )
            return False
        finally:
            self.is_syncing = False

        with self._lock:
            self._pending.difference_update(r.number for r in records)
            self.last_sync = datetime.now()
            self.last_error = None
        return True


def _keep_timestamps(record: RNCRecord, previous: RNCRecord | None) -> RNCRecord:
    """Carry the store-managed timestamps of the record being replaced."""
    if previous is None:
        return record
    return replace(
        record,
        created_at=record.created_at or previous.created_at,
        updated_at=record.updated_at or previous.updated_at,
    )
