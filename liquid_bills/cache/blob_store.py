"""
Local key-value blob stores.

Synchronous get/set of whole string blobs by key. A write either replaces
the previous blob completely or leaves it untouched.
"""

import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union


class BlobStore(ABC):
    """String-keyed store of text blobs."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the blob stored under `key`, or None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Replace the blob stored under `key`."""


class InMemoryBlobStore(BlobStore):
    def __init__(self):
        self._blobs: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    def set(self, key: str, value: str) -> None:
        self._blobs[key] = value


class FileBlobStore(BlobStore):
    """
    One UTF-8 file per key inside `directory`.

    Writes go to a temporary file in the same directory which then replaces
    the target with `os.replace`, so readers never see a half-written blob.
    """

    _UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")

    def __init__(self, directory: Union[str, Path]):
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        return self._directory / f"{self._UNSAFE.sub('_', key)}.json"

    def get(self, key: str) -> Optional[str]:
        try:
            return self.path_for(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        target = self.path_for(key)
        fd, tmp_path = tempfile.mkstemp(dir=self._directory, prefix=f".{target.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(tmp_path, target)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
