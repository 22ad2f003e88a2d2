"""Local filesystem object store.

Drop-in replacement for SupabaseStorage: same list()/download()/upload()
interface, but objects live under ``{root}/{key}`` on disk. Used for local
development and by the test-suite.
"""

from __future__ import annotations

import asyncio
import mimetypes
import os
from datetime import datetime, timezone
from pathlib import Path

from ..errors import ObjectExistsError, ObjectNotFoundError, StorageError
from .schemas import StorageObject

_DEFAULT_ROOT = Path(__file__).resolve().parents[3] / "data" / "storage"


class LocalObjectStore:
    """Object store backed by a directory tree."""

    def __init__(self, root: str | Path | None = None, public_base_url: str = "/files"):
        if root is None:
            root = os.getenv("MEDWALLET_STORAGE_DIR", str(_DEFAULT_ROOT))
        self.root = Path(root)
        self._public_base_url = public_base_url.rstrip("/")

    def credentials_error(self) -> str | None:
        """Always None: the local store needs no credentials."""
        return None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def list(self, prefix: str, limit: int = 100) -> list[StorageObject]:
        """List files and folders directly under *prefix*.

        A missing prefix lists as empty, like an empty bucket folder.
        """
        folder = self._path(prefix) if prefix else self.root
        if not folder.is_dir():
            return []

        objects: list[StorageObject] = []
        for entry in sorted(folder.iterdir(), key=lambda p: p.name):
            if entry.name.endswith(".tmp"):
                continue
            if entry.is_dir():
                objects.append(StorageObject(name=entry.name, is_folder=True))
                continue
            stat = entry.stat()
            stamp = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat()
            objects.append(
                StorageObject(
                    name=entry.name,
                    content_type=mimetypes.guess_type(entry.name)[0] or "application/octet-stream",
                    size=stat.st_size,
                    created_at=stamp,
                    updated_at=stamp,
                )
            )
        return objects

    async def download(self, key: str) -> bytes:
        path = self._path(key)
        if not path.is_file():
            raise ObjectNotFoundError(f"Object not found: {key}", key=key, status_code=404)
        return await asyncio.to_thread(path.read_bytes)

    async def upload(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        upsert: bool = False,
    ) -> str:
        """Write *data* to ``{root}/{key}`` (atomically: write .tmp then rename)."""
        path = self._path(key)
        if path.exists() and not upsert:
            raise ObjectExistsError(f"Object already exists: {key}", key=key, status_code=409)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(path.name + ".tmp")
            await asyncio.to_thread(tmp.write_bytes, data)
            os.replace(tmp, path)
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {e}", key=key) from e
        return key

    async def remove(self, keys: list[str]) -> None:
        for key in keys:
            path = self._path(key)
            if not path.is_file():
                raise ObjectNotFoundError(f"Object not found: {key}", key=key, status_code=404)
            path.unlink()

    def public_url(self, key: str) -> str:
        return f"{self._public_base_url}/{key}"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _path(self, key: str) -> Path:
        """Map a key to a path, refusing keys that escape the root."""
        path = (self.root / key.strip("/")).resolve()
        root = self.root.resolve()
        if path != root and root not in path.parents:
            raise StorageError(f"Key escapes storage root: {key}", key=key)
        return path
