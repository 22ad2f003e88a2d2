"""Object storage and document backends for medwallet.

- SupabaseStorage: Supabase Storage REST client (the hosted backend)
- LocalObjectStore: filesystem drop-in with the same interface
- DocumentStore: PostgREST table client (alternate record backend)
- keys: the one place storage paths are built

Usage:
    from medwallet.storage import LocalObjectStore, AssetKind, asset_key

    store = LocalObjectStore("data/storage")
    await store.upload(asset_key(scope, pid, AssetKind.PHOTO), jpeg_bytes, "image/jpeg", upsert=True)
"""

from .documents import DocumentStore
from .keys import (
    AssetKind,
    asset_key,
    asset_prefix,
    is_medication_blob,
    is_record_blob,
    medication_scope,
    record_scope,
    safe_file_name,
)
from .local import LocalObjectStore
from .schemas import StorageObject
from .supabase import SupabaseStorage

__all__ = [
    # Backends
    "SupabaseStorage",
    "LocalObjectStore",
    "DocumentStore",
    "StorageObject",
    # Keys
    "AssetKind",
    "asset_key",
    "asset_prefix",
    "is_record_blob",
    "is_medication_blob",
    "record_scope",
    "medication_scope",
    "safe_file_name",
]
