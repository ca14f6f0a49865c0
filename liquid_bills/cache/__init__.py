"""Local cache of the bill collection."""

from liquid_bills.cache.blob_store import BlobStore, FileBlobStore, InMemoryBlobStore
from liquid_bills.cache.mirror import LocalCacheMirror

__all__ = [
    "BlobStore",
    "FileBlobStore",
    "InMemoryBlobStore",
    "LocalCacheMirror",
]
