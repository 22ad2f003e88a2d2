"""Record store adapters.

Translate "get/put patient record", "upload asset" and "list assets" into
calls against an object storage backend (RecordStore) or a PostgREST
table (DocumentRecordStore). Single attempt, no retries: every remote
failure surfaces as a StorageError and the caller decides what to do.
"""

from __future__ import annotations

import json
import logging

from pydantic import BaseModel, Field, ValidationError

from ..errors import ObjectNotFoundError, ParseError, RecordNotFoundError
from ..protocols import ObjectStorage
from ..storage.documents import DocumentStore
from ..storage.keys import (
    USERS_NAMESPACE,
    AssetKind,
    asset_key,
    asset_prefix,
    blob_timestamp,
    is_record_blob,
    photo_name,
    record_scope,
)
from .schemas import PatientRecord, utc_now_iso

logger = logging.getLogger(__name__)


class AssetRef(BaseModel):
    """A stored asset resolved to its public URL."""

    name: str = Field(..., description="Object name inside its folder")
    key: str = Field(..., description="Full storage key")
    url: str = Field(..., description="Public URL")
    content_type: str = Field("application/octet-stream")
    uploaded_at: str = Field("")


def parse_record(raw: bytes | str, key: str | None = None) -> PatientRecord:
    """Parse one record blob.

    Raises:
        ParseError: If the blob is not JSON or does not fit the record shape
    """
    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise ParseError(f"Malformed JSON in {key}: {e}", key=key) from e
    if not isinstance(data, dict):
        raise ParseError(f"Record blob {key} is not a JSON object", key=key)
    try:
        return PatientRecord.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"Invalid record in {key}: {e.error_count()} error(s)", key=key) from e


class RecordStore:
    """Patient records as timestamped JSON blobs in object storage."""

    def __init__(self, storage: ObjectStorage, namespace: str = USERS_NAMESPACE):
        self.storage = storage
        self.namespace = namespace

    def scope_for(self, owner_id: str) -> str:
        return record_scope(owner_id, self.namespace)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    async def get_record(self, patient_id: str) -> PatientRecord:
        """Fetch the newest record blob stored for *patient_id*.

        Raises:
            RecordNotFoundError: If the scope holds no record blob
            ParseError: If the newest blob is malformed
            StorageError: On remote failure
        """
        scope = self.scope_for(patient_id)
        blobs = [
            obj.name
            for obj in await self.storage.list(scope)
            if not obj.is_folder and is_record_blob(obj.name)
        ]
        if not blobs:
            raise RecordNotFoundError(patient_id)

        latest = max(blobs, key=lambda name: (blob_timestamp(name), name))
        key = f"{scope}/{latest}"
        try:
            raw = await self.storage.download(key)
        except ObjectNotFoundError as e:
            raise RecordNotFoundError(patient_id) from e

        record = parse_record(raw, key)
        if not record.id:
            record.id = patient_id
        return record

    async def put_record(self, patient_id: str, record: PatientRecord) -> str:
        """Write *record* as a new blob and return its key."""
        data = record.to_storage()
        data["id"] = patient_id
        data["updated_at"] = utc_now_iso()
        key = asset_key(self.scope_for(patient_id), patient_id, AssetKind.RECORD)
        await self.storage.upload(
            key,
            json.dumps(data).encode("utf-8"),
            content_type="application/json",
            upsert=True,
        )
        logger.info("Stored record for %s at %s", patient_id, key)
        return key

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    async def upload_asset(
        self,
        patient_id: str,
        kind: AssetKind,
        filename: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Upload an asset and return its public URL.

        Photos overwrite the previous photo; other kinds get a fresh
        timestamped key and fail if it is taken.
        """
        if kind in (AssetKind.RECORD, AssetKind.MEDICATION):
            raise ValueError(f"{kind.value} is not an uploadable asset kind")
        key = asset_key(self.scope_for(patient_id), patient_id, kind, filename)
        await self.storage.upload(
            key,
            data,
            content_type=content_type,
            upsert=kind is AssetKind.PHOTO,
        )
        return self.storage.public_url(key)

    async def list_assets(
        self,
        patient_id: str,
        kind: AssetKind,
        scope: str | None = None,
    ) -> list[AssetRef]:
        """List a patient's uploads or medical documents.

        Args:
            patient_id: Record identity
            kind: AssetKind.UPLOAD or AssetKind.MEDICAL_DOCUMENT
            scope: Owner scope; defaults to the patient's own scope
        """
        if kind not in (AssetKind.UPLOAD, AssetKind.MEDICAL_DOCUMENT):
            raise ValueError(f"Cannot list {kind.value} assets")
        prefix = asset_prefix(scope or self.scope_for(patient_id), patient_id, kind)
        refs = []
        for obj in await self.storage.list(prefix):
            if obj.is_folder:
                continue
            key = f"{prefix}/{obj.name}"
            refs.append(
                AssetRef(
                    name=obj.name,
                    key=key,
                    url=self.storage.public_url(key),
                    content_type=obj.content_type,
                    uploaded_at=obj.created_at,
                )
            )
        return refs

    async def photo_url(self, patient_id: str, scope: str | None = None) -> str | None:
        """Public URL of the profile photo, or None if none is stored."""
        scope = scope or self.scope_for(patient_id)
        prefix = asset_prefix(scope, patient_id, AssetKind.PHOTO)
        wanted = photo_name(patient_id)
        for obj in await self.storage.list(prefix):
            if obj.name == wanted and not obj.is_folder:
                return self.storage.public_url(f"{prefix}/{wanted}")
        return None


class DocumentRecordStore:
    """Patient records as rows of a PostgREST table (alternate backend)."""

    def __init__(self, documents: DocumentStore, table: str = "patients"):
        self.documents = documents
        self.table = table

    async def get_record(self, patient_id: str) -> PatientRecord:
        try:
            row = await self.documents.get(self.table, patient_id)
        except ObjectNotFoundError as e:
            raise RecordNotFoundError(patient_id) from e
        try:
            return PatientRecord.model_validate(row)
        except ValidationError as e:
            raise ParseError(f"Invalid record row {self.table}/{patient_id}", key=patient_id) from e

    async def put_record(self, patient_id: str, record: PatientRecord) -> str:
        row = record.to_storage()
        row["id"] = patient_id
        row["updated_at"] = utc_now_iso()
        await self.documents.upsert(self.table, row)
        return f"{self.table}/{patient_id}"

    async def delete_record(self, patient_id: str) -> bool:
        return await self.documents.delete(self.table, patient_id)
