"""Filesystem blob store for audio, image and video artifacts."""

from __future__ import annotations

import os
import re
from pathlib import Path

from reelforge.errors import StoreError
from reelforge.ports import BlobStore

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class LocalBlobStore(BlobStore):
    """Blobs stored as files named by their key."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key) or key in {".", ".."}:
            raise StoreError(f"Invalid blob key: {key!r}")
        return self.directory / key

    def put(self, key: str, data: bytes) -> None:
        path = self._path(key)
        tmp = path.with_name(f".{path.name}.tmp")
        try:
            tmp.write_bytes(data)
            os.replace(tmp, path)
        except OSError as e:
            raise StoreError(f"Failed to write blob {key}: {e}") from e

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            raise StoreError(f"Failed to read blob {key}: {e}") from e

    def exists(self, key: str) -> bool:
        return self._path(key).exists()

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
