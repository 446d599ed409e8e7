"""Persistence: local JSON cache, Firestore repository and the sync store."""

import logging

from google.auth.exceptions import GoogleAuthError

from ..config import CACHE_PATH, get_firestore_settings
from ..exceptions import ConfigurationError
from .firestore import FirestoreRepository
from .local_cache import LocalCache
from .sync import RncStore

logger = logging.getLogger(__name__)


def build_store(cache_path=None, firestore_settings: dict | None = None) -> RncStore:
    """Wire a store from configuration.

    Falls back to cache-only mode when Firestore settings are missing.
    """
    cache = LocalCache(cache_path or CACHE_PATH)
    try:
        settings = get_firestore_settings(firestore_settings)
    except ConfigurationError as exc:
        logger.warning("%s; running with local cache only", exc)
        return RncStore(cache)
    try:
        repository = FirestoreRepository.from_settings(settings)
    except (GoogleAuthError, OSError, ValueError):
        logger.exception("Could not create Firestore client; running with local cache only")
        return RncStore(cache)
    return RncStore(cache, repository)


__all__ = ["FirestoreRepository", "LocalCache", "RncStore", "build_store"]
