"""Wiring of storage, record, cache and medication services."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ...medications import MedicationTracker
from ...protocols import ObjectStorage, RecordBackend
from ...records import (
    DocumentRecordStore,
    KeyValueStore,
    RecordCache,
    RecordStore,
    RecordSync,
)
from ...storage import DocumentStore, LocalObjectStore, SupabaseStorage
from ..config import APIConfig

logger = logging.getLogger(__name__)


@dataclass
class Wallet:
    """Everything the routers need, built once per process."""

    config: APIConfig
    storage: ObjectStorage
    records: RecordStore
    backend: RecordBackend
    kv: KeyValueStore
    cache: RecordCache
    sync: RecordSync
    medications: MedicationTracker

    @property
    def max_concurrency(self) -> int | None:
        return self.config.max_concurrency or None


def build_storage(config: APIConfig) -> ObjectStorage:
    if config.storage_backend == "local":
        return LocalObjectStore(config.local_storage_dir, public_base_url=config.public_base_url)
    if config.storage_backend == "supabase":
        storage = SupabaseStorage(bucket=config.bucket, timeout=config.request_timeout)
        cred_error = storage.credentials_error()
        if cred_error:
            logger.warning(cred_error)
        return storage
    raise ValueError(f"Unknown storage backend: {config.storage_backend!r}")


def build_wallet(config: APIConfig, storage: ObjectStorage | None = None) -> Wallet:
    """Assemble the services described by *config*.

    Args:
        config: API configuration
        storage: Pre-built object storage (tests); built from config if None
    """
    storage = storage or build_storage(config)
    records = RecordStore(storage)

    backend: RecordBackend = records
    if config.record_backend == "documents":
        documents = DocumentStore(timeout=config.request_timeout)
        cred_error = documents.credentials_error()
        if cred_error:
            logger.warning(cred_error)
        backend = DocumentRecordStore(documents, table=config.patients_table)
    elif config.record_backend != "storage":
        raise ValueError(f"Unknown record backend: {config.record_backend!r}")

    kv = KeyValueStore(Path(config.cache_path) if config.cache_path else None)
    cache = RecordCache(kv)
    logger.info(
        "Wallet ready: storage=%s records=%s cache=%s",
        config.storage_backend,
        config.record_backend,
        config.cache_path or "memory",
    )
    return Wallet(
        config=config,
        storage=storage,
        records=records,
        backend=backend,
        kv=kv,
        cache=cache,
        sync=RecordSync(backend, cache, assets=records),
        medications=MedicationTracker(storage, max_concurrency=config.max_concurrency or None),
    )


# Global instance (singleton pattern for FastAPI dependency injection)
_wallet: Wallet | None = None


def init_wallet(config: APIConfig, storage: ObjectStorage | None = None) -> Wallet:
    """Create and set the global wallet. Call once during startup."""
    global _wallet
    _wallet = build_wallet(config, storage)
    return _wallet


def get_wallet() -> Wallet:
    """Get the global wallet instance (used by FastAPI Depends)."""
    if _wallet is None:
        raise RuntimeError("Wallet services not initialised; call init_wallet() first")
    return _wallet
