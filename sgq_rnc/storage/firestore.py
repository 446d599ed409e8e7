"""
Cloud persistence of RNC records in a Google Cloud Firestore collection.

Documents are keyed by RNC number and use camelCase field names
(``openDate``, ``updatedAt``...) so the collection stays readable by the
web client that shares it. Dates are stored as midnight in
config.TIMEZONE and read back in that zone.
"""

import logging
from datetime import date, datetime
from typing import Callable

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore

from ..config import BATCH_SIZE, COLLECTION_NAME, TIMEZONE
from ..exceptions import StorageError
from ..models import DATE_FIELDS, RNCRecord

logger = logging.getLogger(__name__)

# record attribute -> document field
FIELD_MAP = {
    "id": "id",
    "number": "number",
    "description": "description",
    "sector": "sector",
    "type": "type",
    "status": "status",
    "open_date": "openDate",
    "close_date": "closeDate",
    "deadline": "deadline",
    "responsible": "responsible",
    "cause": "cause",
    "action": "action",
    "supplier": "supplier",
    "product": "product",
    "batch": "batch",
    "days": "days",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}
_REVERSE_FIELD_MAP = {v: k for k, v in FIELD_MAP.items()}


def document_id(record: RNCRecord) -> str:
    """Firestore-safe document id for a record ('/' is not allowed in ids)."""
    return record.id.replace("/", "_")


def _date_to_timestamp(value: date | None) -> datetime | None:
    if value is None:
        return None
    return datetime(value.year, value.month, value.day, tzinfo=TIMEZONE)


def _timestamp_to_date(value):
    # Firestore returns UTC timestamps; the calendar day is the local one
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(TIMEZONE).date()
    return value


def record_to_document(record: RNCRecord) -> dict:
    """Serialise a record to a Firestore document body.

    Store-managed timestamps are left out; upsert_many sets them.
    """
    doc = {}
    for attr, field in FIELD_MAP.items():
        if attr in ("created_at", "updated_at"):
            continue
        value = getattr(record, attr)
        if attr in DATE_FIELDS:
            value = _date_to_timestamp(value)
        doc[field] = value
    return doc


def document_to_record(data: dict) -> RNCRecord:
    """Rebuild a record from a Firestore document body."""
    attrs = {_REVERSE_FIELD_MAP[k]: v for k, v in data.items() if k in _REVERSE_FIELD_MAP}
    for name in DATE_FIELDS:
        if name in attrs:
            attrs[name] = _timestamp_to_date(attrs[name])
    return RNCRecord.from_dict(attrs)


def _chunks(items: list, size: int):
    for i in range(0, len(items), size):
        yield items[i:i + size]


class FirestoreRepository:
    """Bulk upsert, realtime subscription and bulk delete over one collection."""

    def __init__(self, client, collection: str = COLLECTION_NAME, batch_size: int = BATCH_SIZE):
        self.client = client
        self.collection_name = collection
        self.batch_size = batch_size

    @classmethod
    def from_settings(cls, settings: dict) -> "FirestoreRepository":
        """Build a repository from config.get_firestore_settings() output."""
        if settings.get("credentials"):
            client = firestore.Client.from_service_account_json(
                settings["credentials"], project=settings["project_id"]
            )
        else:
            client = firestore.Client(project=settings["project_id"])
        logger.info(
            "Firestore project: %s, collection: %s",
            settings["project_id"], settings["collection"],
        )
        return cls(client, collection=settings["collection"])

    @property
    def collection(self):
        return self.client.collection(self.collection_name)

    def subscribe(self, on_data: Callable[[list[RNCRecord]], None]) -> Callable[[], None]:
        """Listen to the collection, newest update first.

        `on_data` receives the full record list on every snapshot, from the
        listener's background thread. Returns a callable that stops the
        listener.
        """
        query = self.collection.order_by("updatedAt", direction=firestore.Query.DESCENDING)

        def _on_snapshot(docs, changes, read_time):
            try:
                records = [document_to_record(d.to_dict()) for d in docs]
            except Exception:
                logger.exception("Error decoding realtime RNC snapshot")
                return
            logger.info("Realtime snapshot: %d RNCs at %s", len(records), read_time)
            on_data(records)

        watch = query.on_snapshot(_on_snapshot)
        return watch.unsubscribe

    def fetch_all(self) -> list[RNCRecord]:
        """One-off read of every record in the collection."""
        try:
            return [document_to_record(d.to_dict()) for d in self.collection.stream()]
        except google_exceptions.GoogleAPIError as exc:
            logger.exception("Error fetching RNCs from Firestore")
            raise StorageError(f"Could not fetch RNCs: {exc}") from exc

    def upsert_many(self, records: list[RNCRecord]) -> int:
        """Write records in batches of `batch_size`, merging into existing documents.

        ``updatedAt`` is set to the server time on every write; ``createdAt``
        keeps the record's value or becomes the server time for records that
        were never stored.

        Returns the number of records written. Raises StorageError on failure.
        """
        if not records:
            return 0

        written = 0
        try:
            for chunk in _chunks(records, self.batch_size):
                batch = self.client.batch()
                for record in chunk:
                    doc = record_to_document(record)
                    doc["updatedAt"] = firestore.SERVER_TIMESTAMP
                    doc["createdAt"] = record.created_at or firestore.SERVER_TIMESTAMP
                    ref = self.collection.document(document_id(record))
                    batch.set(ref, doc, merge=True)
                batch.commit()
                written += len(chunk)
        except google_exceptions.GoogleAPIError as exc:
            logger.exception("Error upserting RNCs to Firestore after %d writes", written)
            raise StorageError(f"Could not upsert RNCs: {exc}") from exc

        logger.info("Synced %d records to Firestore", written)
        return written

    def delete_all(self) -> int:
        """Delete every document, one page of `batch_size` at a time.

        Returns the number of documents deleted. Raises StorageError on failure.
        """
        deleted = 0
        try:
            while True:
                docs = list(self.collection.limit(self.batch_size).stream())
                if not docs:
                    break
                batch = self.client.batch()
                for doc in docs:
                    batch.delete(doc.reference)
                batch.commit()
                deleted += len(docs)
                logger.info("Deleted batch of %d records", len(docs))
        except google_exceptions.GoogleAPIError as exc:
            logger.exception("Error deleting RNCs from Firestore")
            raise StorageError(f"Could not delete RNCs: {exc}") from exc

        logger.info("All RNCs deleted from Firestore (%d)", deleted)
        return deleted
