"""Patient aggregation for the admin and doctor views.

Reconstructs full patient views from scattered per-identity storage
objects: list the record blobs in a scope, fetch and parse each one, then
resolve the photo, uploaded files and medical documents stored under the
record's identity. Per-record work runs concurrently; a failing record is
logged and dropped without affecting its siblings.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Iterable
from typing import TypeVar

from ..errors import ParseError, StorageError
from ..storage.keys import AssetKind, is_record_blob
from ..storage.schemas import StorageObject
from .schemas import MedicalDocumentRef, PatientRecord, UploadedFileRef
from .store import AssetRef, RecordStore, parse_record

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def gather_bounded(
    awaitables: Iterable[Awaitable[T]],
    max_concurrency: int | None = None,
) -> list[T]:
    """Await everything and return results in input order.

    With *max_concurrency* set (> 0), at most that many awaitables are in
    flight at once; otherwise all run at the same time.
    """
    items = list(awaitables)
    if not max_concurrency or max_concurrency <= 0:
        return await asyncio.gather(*items)

    semaphore = asyncio.Semaphore(max_concurrency)

    async def _run(aw: Awaitable[T]) -> T:
        async with semaphore:
            return await aw

    return await asyncio.gather(*(_run(aw) for aw in items))


def record_blobs(objects: Iterable[StorageObject]) -> list[StorageObject]:
    """Keep only record blobs, in listing order."""
    return [obj for obj in objects if not obj.is_folder and is_record_blob(obj.name)]


async def load_patients(
    store: RecordStore,
    scope: str,
    *,
    max_concurrency: int | None = None,
) -> list[PatientRecord]:
    """Load every patient record stored under *scope*.

    Args:
        store: Record store over the object storage backend
        scope: Prefix holding the record blobs (e.g. "users/demo-user")
        max_concurrency: Optional bound on records processed at once

    Returns:
        One record per successfully parsed blob, in listing order

    Raises:
        StorageError: If the scope itself cannot be listed
    """
    blobs = record_blobs(await store.storage.list(scope))
    logger.info("Found %d record blob(s) under %s", len(blobs), scope)

    results = await gather_bounded(
        (_load_one(store, scope, blob.name) for blob in blobs),
        max_concurrency,
    )
    patients = [record for record in results if record is not None]

    dropped = len(blobs) - len(patients)
    if dropped:
        logger.warning("Dropped %d of %d record blob(s) under %s", dropped, len(blobs), scope)
    return patients


async def _load_one(store: RecordStore, scope: str, name: str) -> PatientRecord | None:
    """Fetch, parse and resolve one blob. Returns None on failure."""
    key = f"{scope}/{name}"
    try:
        raw = await store.storage.download(key)
        record = parse_record(raw, key)
    except (StorageError, ParseError) as e:
        logger.warning("Skipping %s: %s", key, e)
        return None

    if not record.id:
        # Assets are stored under the record id; there is nothing to resolve
        logger.warning("Record %s has no id, listing it without stored files", key)
        return record

    await resolve_assets(store, scope, record)
    logger.debug("Processed patient %s from %s", record.id, key)
    return record


async def resolve_assets(store: RecordStore, scope: str, record: PatientRecord) -> PatientRecord:
    """Merge the record's stored photo, uploads and documents into it.

    Each lookup is independent; one that fails is logged and leaves the
    corresponding stored field untouched.
    """
    photo, uploads, documents = await asyncio.gather(
        store.photo_url(record.id, scope),
        store.list_assets(record.id, AssetKind.UPLOAD, scope),
        store.list_assets(record.id, AssetKind.MEDICAL_DOCUMENT, scope),
        return_exceptions=True,
    )

    if isinstance(photo, BaseException):
        _log_resolution_failure(record.id, "photo", photo)
    elif photo:
        record.profile_photo = photo

    if isinstance(uploads, BaseException):
        _log_resolution_failure(record.id, "uploads", uploads)
    else:
        record.uploaded_files = merge_by_url(
            record.uploaded_files,
            [
                UploadedFileRef(
                    name=ref.name,
                    url=ref.url,
                    type=ref.content_type,
                    uploaded_at=ref.uploaded_at,
                )
                for ref in uploads
            ],
        )

    if isinstance(documents, BaseException):
        _log_resolution_failure(record.id, "medical documents", documents)
    else:
        history = record.medical_history
        history.medical_documents = merge_by_url(
            history.medical_documents,
            [_document_ref(ref) for ref in documents],
        )

    return record


def merge_by_url(stored: list[T], resolved: list[T]) -> list[T]:
    """Union of two ref lists keyed by ``url``; resolved entries win.

    Stored order is kept, new resolved entries are appended.
    """
    by_url = {ref.url: ref for ref in resolved}
    merged = [by_url.pop(ref.url, ref) for ref in stored]
    merged.extend(by_url.values())
    return merged


def _document_ref(ref: AssetRef) -> MedicalDocumentRef:
    return MedicalDocumentRef(
        title=ref.name,
        url=ref.url,
        type=ref.content_type,
        uploaded_at=ref.uploaded_at,
    )


def _log_resolution_failure(patient_id: str, what: str, error: BaseException) -> None:
    # Cancellation and interpreter exits are not per-record failures
    if not isinstance(error, Exception):
        raise error
    logger.warning("Could not resolve %s for patient %s: %s", what, patient_id, error)
