"""Supabase PostgREST document client.

The alternate backend: rows keyed by ``id`` in a table, read and written
whole through ``/rest/v1/{table}``.
"""

from __future__ import annotations

import os

import httpx

from ..errors import ObjectNotFoundError, StorageError


class DocumentStore:
    """Async PostgREST client with get/upsert/delete by key."""

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._url = (url or os.getenv("SUPABASE_URL", "")).rstrip("/")
        self._key = key or os.getenv("SUPABASE_KEY", "")
        self._timeout = timeout
        self._transport = transport

    def credentials_error(self) -> str | None:
        """Check if credentials are configured. Returns error message if not."""
        if not self._url or not self._key:
            return "Supabase credentials not configured (SUPABASE_URL, SUPABASE_KEY)"
        return None

    def _headers(self, extra: dict | None = None) -> dict:
        headers = {
            "apikey": self._key,
            "Authorization": f"Bearer {self._key}",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    async def _request(self, method: str, table: str, key: str, **kwargs) -> httpx.Response:
        url = f"{self._url}/rest/v1/{table}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response
        except httpx.HTTPStatusError as e:
            raise StorageError(
                f"{method} {table}/{key} failed with HTTP {e.response.status_code}: {e.response.text[:200]}",
                key=key,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise StorageError(f"{method} {table}/{key} failed: {e}", key=key) from e

    async def get(self, table: str, key: str) -> dict:
        """Read one row by id.

        Raises:
            ObjectNotFoundError: If no row has this id
        """
        response = await self._request(
            "GET",
            table,
            key,
            params={"id": f"eq.{key}", "select": "*"},
            headers=self._headers(),
        )
        rows = response.json()
        if not rows:
            raise ObjectNotFoundError(f"{table}/{key} not found", key=key, status_code=404)
        return rows[0]

    async def upsert(self, table: str, row: dict) -> dict:
        """Insert or replace a row (matched on its ``id``)."""
        key = str(row.get("id", ""))
        response = await self._request(
            "POST",
            table,
            key,
            json=row,
            headers=self._headers(
                {
                    "Content-Type": "application/json",
                    "Prefer": "resolution=merge-duplicates,return=representation",
                }
            ),
        )
        rows = response.json()
        return rows[0] if rows else row

    async def delete(self, table: str, key: str) -> bool:
        """Delete a row. Returns True if a row was removed."""
        response = await self._request(
            "DELETE",
            table,
            key,
            params={"id": f"eq.{key}"},
            headers=self._headers({"Prefer": "return=representation"}),
        )
        return bool(response.json())
