"""Supabase Storage client.

Provides an async HTTP client for the Supabase Storage REST API: listing by
prefix, download, upload with overwrite-or-fail semantics, removal and
public URL resolution.
"""

from __future__ import annotations

import logging
import os
from urllib.parse import quote

import httpx

from ..errors import ObjectExistsError, ObjectNotFoundError, StorageError
from .schemas import StorageObject

logger = logging.getLogger(__name__)


class SupabaseStorage:
    """Async Supabase Storage client for a single bucket."""

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        bucket: str = "new",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._url = (url or os.getenv("SUPABASE_URL", "")).rstrip("/")
        self._key = key or os.getenv("SUPABASE_KEY", "")
        self.bucket = bucket
        self._timeout = timeout
        self._transport = transport

    def credentials_error(self) -> str | None:
        """Check if credentials are configured. Returns error message if not."""
        if not self._url or not self._key:
            return "Supabase credentials not configured (SUPABASE_URL, SUPABASE_KEY)"
        return None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _headers(self, extra: dict | None = None) -> dict:
        headers = {
            "apikey": self._key,
            "Authorization": f"Bearer {self._key}",
        }
        if extra:
            headers.update(extra)
        return headers

    def _object_url(self, key: str) -> str:
        return f"{self._url}/storage/v1/object/{self.bucket}/{quote(key)}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def _send(self, method: str, url: str, *, key: str | None = None, **kwargs) -> httpx.Response:
        """Send one request and translate failures into StorageError."""
        try:
            async with self._client() as client:
                response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise StorageError(f"{method} {url} failed: {e}", key=key) from e

        if response.is_success:
            return response

        detail = response.text
        status = response.status_code
        # Supabase reports missing objects as 400 with a not_found body
        if status == 404 or (status == 400 and "not_found" in detail.lower().replace(" ", "_")):
            raise ObjectNotFoundError(f"Object not found: {key}", key=key, status_code=status)
        if status == 409 or "duplicate" in detail.lower():
            raise ObjectExistsError(f"Object already exists: {key}", key=key, status_code=status)
        raise StorageError(
            f"{method} {key or url} failed with HTTP {status}: {detail[:200]}",
            key=key,
            status_code=status,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def list(self, prefix: str, limit: int = 100) -> list[StorageObject]:
        """List the immediate children of *prefix*, following pagination.

        Args:
            prefix: Folder path inside the bucket (e.g. "users/demo-user")
            limit: Page size

        Returns:
            Listed objects; folders have ``is_folder`` set
        """
        url = f"{self._url}/storage/v1/object/list/{self.bucket}"
        objects: list[StorageObject] = []
        offset = 0

        while True:
            response = await self._send(
                "POST",
                url,
                key=prefix,
                json={
                    "prefix": prefix,
                    "limit": limit,
                    "offset": offset,
                    "sortBy": {"column": "name", "order": "asc"},
                },
                headers=self._headers(),
            )
            page = response.json() or []
            objects.extend(StorageObject.from_supabase(item) for item in page)
            if len(page) < limit:
                break
            offset += limit

        logger.debug("Listed %d object(s) under %s", len(objects), prefix)
        return objects

    async def download(self, key: str) -> bytes:
        """Download an object's raw bytes."""
        response = await self._send(
            "GET",
            self._object_url(key),
            key=key,
            headers=self._headers(),
        )
        return response.content

    async def upload(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        upsert: bool = False,
    ) -> str:
        """Upload *data* to *key*.

        Raises:
            ObjectExistsError: If the key exists and *upsert* is False
        """
        await self._send(
            "POST",
            self._object_url(key),
            key=key,
            content=data,
            headers=self._headers(
                {
                    "Content-Type": content_type,
                    "Cache-Control": "max-age=3600",
                    "x-upsert": "true" if upsert else "false",
                }
            ),
        )
        logger.info("Uploaded %s (%d bytes, upsert=%s)", key, len(data), upsert)
        return key

    async def remove(self, keys: list[str]) -> None:
        """Delete objects from the bucket."""
        if not keys:
            return
        await self._send(
            "DELETE",
            f"{self._url}/storage/v1/object/{self.bucket}",
            key=keys[0],
            json={"prefixes": keys},
            headers=self._headers(),
        )
        logger.info("Removed %d object(s)", len(keys))

    def public_url(self, key: str) -> str:
        """Public URL of *key* (the bucket must be public)."""
        return f"{self._url}/storage/v1/object/public/{self.bucket}/{quote(key)}"
