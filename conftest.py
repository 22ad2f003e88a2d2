"""Shared pytest fixtures: a local object store in tmp_path and helpers around it."""

from __future__ import annotations

import json

import pytest

from medwallet.errors import StorageError
from medwallet.records import KeyValueStore, RecordCache, RecordStore
from medwallet.storage import LocalObjectStore

PUBLIC_BASE = "https://cdn.test/files"


class FailingStorage:
    """Wraps a store and fails selected operations with StorageError."""

    def __init__(self, inner: LocalObjectStore):
        self.inner = inner
        self.fail_list = False
        self.fail_upload = False
        self.fail_download: set[str] = set()
        self.fail_list_prefixes: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    async def list(self, prefix: str, limit: int = 100):
        self.calls.append(("list", prefix))
        if self.fail_list or prefix in self.fail_list_prefixes:
            raise StorageError(f"listing {prefix} refused", key=prefix)
        return await self.inner.list(prefix, limit)

    async def download(self, key: str) -> bytes:
        self.calls.append(("download", key))
        if key in self.fail_download:
            raise StorageError(f"download {key} refused", key=key)
        return await self.inner.download(key)

    async def upload(self, key, data, content_type="application/octet-stream", upsert=False):
        self.calls.append(("upload", key))
        if self.fail_upload:
            raise StorageError(f"upload {key} refused", key=key)
        return await self.inner.upload(key, data, content_type, upsert)

    async def remove(self, keys):
        return await self.inner.remove(keys)

    def public_url(self, key: str) -> str:
        return self.inner.public_url(key)


@pytest.fixture
def storage(tmp_path) -> LocalObjectStore:
    return LocalObjectStore(tmp_path / "storage", public_base_url=PUBLIC_BASE)


@pytest.fixture
def failing(storage) -> FailingStorage:
    return FailingStorage(storage)


@pytest.fixture
def store(storage) -> RecordStore:
    return RecordStore(storage)


@pytest.fixture
def cache() -> RecordCache:
    return RecordCache(KeyValueStore())


@pytest.fixture
def put_json(storage):
    """Write a raw JSON (or any text) blob straight into the store."""

    async def _put(key: str, payload) -> None:
        text = payload if isinstance(payload, str) else json.dumps(payload)
        await storage.upload(key, text.encode("utf-8"), "application/json", upsert=True)

    return _put
