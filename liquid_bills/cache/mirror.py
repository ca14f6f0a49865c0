"""
Local Cache Mirror

Keeps the last known good bill collection as one serialized blob under a
fixed key. The blob paints the UI immediately on start-up and is the
snapshot optimistic updates roll back to.

Serialization is canonical (same collection, same bytes), so a fresh remote
fetch can be compared with the cached blob by plain string equality. This is
a full-collection comparison, which is fine for one person's bills but does
not scale to large collections.
"""

from typing import Optional

import structlog
from pydantic import TypeAdapter, ValidationError

from liquid_bills.cache.blob_store import BlobStore
from liquid_bills.models.bill import Bill


logger = structlog.get_logger(__name__)

_BILLS = TypeAdapter(list[Bill])


class LocalCacheMirror:
    """Client-side copy of the full bill collection."""

    def __init__(self, store: BlobStore, key: str):
        self._store = store
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    @staticmethod
    def serialize(bills: list[Bill]) -> str:
        """Canonical JSON for a collection (camelCase field names)."""
        return _BILLS.dump_json(bills, by_alias=True).decode("utf-8")

    def read_blob(self) -> Optional[str]:
        return self._store.get(self._key)

    def load(self) -> Optional[list[Bill]]:
        """
        Load the cached collection.

        Returns None when nothing is cached or the blob cannot be parsed;
        a corrupt blob is logged and otherwise ignored.
        """
        blob = self.read_blob()
        if blob is None:
            return None
        try:
            return _BILLS.validate_json(blob)
        except ValidationError as e:
            logger.error("cache_parse_failed", key=self._key, error=str(e))
            return None

    def save(self, bills: list[Bill]) -> str:
        """Replace the cached collection; returns the blob written."""
        blob = self.serialize(bills)
        self._store.set(self._key, blob)
        return blob

    def restore(self, blob: Optional[str]) -> None:
        """Put back a blob previously returned by `read_blob` / `save`."""
        if blob is not None:
            self._store.set(self._key, blob)

    def is_current(self, bills: list[Bill]) -> bool:
        """Whether `bills` serializes to exactly the cached blob."""
        return self.read_blob() == self.serialize(bills)
