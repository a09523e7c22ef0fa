"""Blob store for uploaded print files, backed by a Django storage backend."""
import logging
import os

from django.core.files.storage import Storage, default_storage

logger = logging.getLogger(__name__)


class BlobStore:
    def __init__(self, storage: Storage | None = None):
        self.storage = storage or default_storage

    def put(self, key: str, content) -> str:
        """Stores ``content`` under ``key`` and returns the key actually used."""
        return self.storage.save(key, content)

    def exists(self, key: str) -> bool:
        return self.storage.exists(key)

    def delete(self, key: str) -> bool:
        """Best-effort delete. Returns False instead of raising on failure."""
        try:
            self.storage.delete(key)
        except Exception:  # noqa: BLE001
            logger.warning("could not delete blob %s", key, exc_info=True)
            return False
        return True

    def available_name(self, directory: str, name: str, taken=()) -> str:
        """First of ``name``, ``stem (1).ext``, ``stem (2).ext``... not in use."""
        stem, ext = os.path.splitext(name)
        candidate, n = name, 0
        while candidate in taken or self.storage.exists(f"{directory}/{candidate}"):
            n += 1
            candidate = f"{stem} ({n}){ext}"
        return candidate


def default_blob_store() -> BlobStore:
    return BlobStore()
