"""Blob storage for uploaded client documents (local disk backend)."""

import hashlib
import logging
from pathlib import Path
from typing import Protocol

from services.errors import DuplicateBlobError

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    """Write-once blob storage keyed by path."""

    async def put(self, path: str, data: bytes, content_type: str) -> str: ...

    async def exists(self, path: str) -> bool: ...


class LocalDiskBlobStore:
    """Stores blobs under ``{root_dir}/{bucket}/{path}`` and never overwrites."""

    def __init__(self, root_dir: str | Path, bucket: str = "client-documents"):
        self.bucket = bucket
        self._root = (Path(root_dir) / bucket).resolve()

    def _full_path(self, path: str) -> Path:
        full_path = (self._root / path).resolve()
        # Storage keys come from sanitized segments, but never trust them blindly
        if not full_path.is_relative_to(self._root):
            raise ValueError(f"Storage path escapes bucket root: {path}")
        return full_path

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        """
        Write a blob at ``path``.

        Args:
            path: Storage key (e.g., "{owner_id}/{client}/{section}/{stored_name}")
            data: File content
            content_type: MIME type (kept for interface parity with object stores)

        Returns:
            The storage key that was written

        Raises:
            DuplicateBlobError: If a blob already exists at path
            OSError: If directory creation or file write fails
        """
        full_path = self._full_path(path)

        # Create parent directories if they don't exist
        full_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(full_path, "xb") as f:
                f.write(data)
        except FileExistsError as e:
            raise DuplicateBlobError(path) from e

        logger.debug(
            "Stored %s (%d bytes, %s, sha256=%s)",
            path,
            len(data),
            content_type,
            hashlib.sha256(data).hexdigest(),
        )
        return path

    async def exists(self, path: str) -> bool:
        """Check whether a blob exists at ``path``."""
        return self._full_path(path).is_file()
