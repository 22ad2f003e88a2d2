"""Single-record synchronisation between the remote backend and the cache.

Reads go cache-first for an instant answer, then remote; remote results
overwrite the cache. Edits start from the cached record (the remote one
when the cache is cold) and are written to the cache before the remote
write is attempted, and a failing remote write is logged and ignored: the
cache is as authoritative as the remote store (single-device use).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from ..errors import MedWalletError, RecordNotFoundError, StorageError
from ..protocols import RecordBackend
from ..storage.keys import AssetKind
from .cache import RecordCache
from .schemas import (
    MedicalDocumentRef,
    PatientRecord,
    UploadedFileRef,
    default_record,
)
from .store import RecordStore

logger = logging.getLogger(__name__)

LoadSource = Literal["remote", "created", "cache", "default"]


@dataclass
class LoadResult:
    """A loaded record and where it came from."""

    record: PatientRecord
    source: LoadSource


class RecordSync:
    """Keeps one user's record in step between the backend and the cache.

    Args:
        backend: Where records are read from and written to
        cache: Local mirror
        assets: Object-storage record store used for file uploads; defaults
            to *backend* when that is a RecordStore
    """

    def __init__(
        self,
        backend: RecordBackend,
        cache: RecordCache,
        assets: RecordStore | None = None,
    ):
        self.backend = backend
        self.cache = cache
        if assets is None and isinstance(backend, RecordStore):
            assets = backend
        self.assets = assets

    def cached(self, patient_id: str) -> PatientRecord | None:
        """Cached record for an instant first paint (no remote call)."""
        return self.cache.read_cache(patient_id)

    async def load(self, patient_id: str) -> LoadResult:
        """Fetch the record, creating it on first access.

        Never raises: when the backend is unreachable the cached record is
        returned, or the default record if nothing is cached.
        """
        try:
            record = await self.backend.get_record(patient_id)
            self.cache.write_cache(patient_id, record)
            return LoadResult(record=record, source="remote")
        except RecordNotFoundError:
            logger.info("No stored record for %s, creating default", patient_id)
            try:
                record = default_record(patient_id)
                await self.backend.put_record(patient_id, record)
                self.cache.write_cache(patient_id, record)
                return LoadResult(record=record, source="created")
            except MedWalletError as e:
                logger.warning("Failed to create record for %s: %s", patient_id, e)
        except MedWalletError as e:
            logger.warning("Failed to fetch record for %s: %s", patient_id, e)

        cached = self.cache.read_cache(patient_id)
        if cached is not None:
            return LoadResult(record=cached, source="cache")
        return LoadResult(record=default_record(patient_id), source="default")

    async def update(self, patient_id: str, updates: dict[str, Any]) -> PatientRecord:
        """Apply a partial edit.

        The edit is merged onto the cached record, or onto the remote one
        when nothing is cached. The merged record is cached before the
        remote write; a remote StorageError is logged and swallowed.
        """
        current, writable = await self._current(patient_id)
        return await self._write(patient_id, current.with_updates(updates), writable)

    async def _current(self, patient_id: str) -> tuple[PatientRecord, bool]:
        """Base record for an edit, and whether it may be written remotely.

        A record that could not be read (backend unreachable or blob
        malformed) is replaced by the default, which must not overwrite
        the remote copy.
        """
        cached = self.cache.read_cache(patient_id)
        if cached is not None:
            return cached, True
        try:
            return await self.backend.get_record(patient_id), True
        except RecordNotFoundError:
            return default_record(patient_id), True
        except MedWalletError as e:
            logger.warning("Could not read record for %s before editing: %s", patient_id, e)
            return default_record(patient_id), False

    async def _write(self, patient_id: str, record: PatientRecord, remote: bool) -> PatientRecord:
        record.id = patient_id
        self.cache.write_cache(patient_id, record)
        if not remote:
            logger.warning("Edit to %s kept in cache only; remote copy was not readable", patient_id)
            return record

        try:
            await self.backend.put_record(patient_id, record)
        except StorageError as e:
            logger.warning("Remote update for %s failed, kept in cache: %s", patient_id, e)
        return record

    async def save(self, patient_id: str, record: PatientRecord) -> str:
        """Explicit save of the whole record.

        Raises:
            StorageError: If the remote write fails (the cache is still updated)
        """
        record.id = patient_id
        self.cache.write_cache(patient_id, record)
        return await self.backend.put_record(patient_id, record)

    async def attach_file(
        self,
        patient_id: str,
        kind: AssetKind,
        filename: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> PatientRecord:
        """Upload a file and reference it from the record.

        Photos also become the profile photo; medical documents are added
        to the medical history.

        Raises:
            StorageError: If the upload fails (the record is left unchanged)
        """
        if self.assets is None:
            raise StorageError("File uploads need an object storage backend")

        url = await self.assets.upload_asset(patient_id, kind, filename, data, content_type)
        current, writable = await self._current(patient_id)

        updates: dict[str, Any] = {
            "uploaded_files": [
                *current.uploaded_files,
                UploadedFileRef(name=filename, url=url, type=kind.value),
            ]
        }
        if kind is AssetKind.PHOTO:
            updates["profile_photo"] = url
        elif kind is AssetKind.MEDICAL_DOCUMENT:
            history = current.medical_history.model_copy(deep=True)
            history.medical_documents.append(
                MedicalDocumentRef(title=filename, url=url, type=content_type)
            )
            updates["medical_history"] = history

        logger.info("Attached %s (%s) to %s", filename, kind.value, patient_id)
        return await self._write(patient_id, current.with_updates(updates), writable)
