from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from datastore.base import ReadingStore, StoreError
from datastore.memory import InMemoryReadingStore
from datastore.mongo import MongoReadingStore
from settings import get_settings

logger = logging.getLogger(__name__)


@lru_cache
def build_default_store(backend: Optional[str] = None) -> ReadingStore:
    """Factory that wires the configured reading store."""
    settings = get_settings()
    selected = settings.store_backend if backend is None else backend
    if selected == "memory":
        logger.info("Using in-memory reading store", extra={"store_backend": selected})
        return InMemoryReadingStore()

    try:
        client: MongoClient = MongoClient(
            settings.mongodb_uri,
            tz_aware=True,
            serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
        )
    except PyMongoError as exc:
        raise StoreError(
            f"Invalid MongoDB configuration: {exc}", operation="connect"
        ) from exc
    store = MongoReadingStore(client, database=settings.mongodb_database)
    logger.info(
        "Using MongoDB reading store",
        extra={"store_backend": selected, "database": store.database.name},
    )
    return store
