"""Medication timetable stored as one JSON blob per medication."""

from __future__ import annotations

import logging
import uuid

from pydantic import ValidationError

from ..errors import ParseError, StorageError
from ..protocols import ObjectStorage
from ..records.aggregate import gather_bounded
from ..records.schemas import utc_now_iso
from ..storage.keys import AssetKind, asset_key, is_medication_blob, medication_scope
from .schemas import Medication, MedicationForm

logger = logging.getLogger(__name__)


class MedicationTracker:
    """CRUD over ``medication-timetable/{user_id}/{id}_medication.json``."""

    def __init__(self, storage: ObjectStorage, max_concurrency: int | None = None):
        self.storage = storage
        self.max_concurrency = max_concurrency

    async def list(self, user_id: str) -> list[Medication]:
        """All medications of *user_id*, oldest first.

        Unreadable blobs are logged and skipped.

        Raises:
            StorageError: If the timetable folder cannot be listed
        """
        scope = medication_scope(user_id)
        names = [
            obj.name
            for obj in await self.storage.list(scope)
            if not obj.is_folder and is_medication_blob(obj.name)
        ]
        loaded = await gather_bounded(
            (self._load(f"{scope}/{name}") for name in names),
            self.max_concurrency,
        )
        medications = [m for m in loaded if m is not None]
        medications.sort(key=lambda m: m.created_at)
        return medications

    async def get(self, user_id: str, medication_id: str) -> Medication:
        """Read one medication.

        Raises:
            ObjectNotFoundError: If it does not exist
            ParseError: If the stored blob is unreadable
        """
        key = asset_key(medication_scope(user_id), user_id, AssetKind.MEDICATION, medication_id)
        raw = await self.storage.download(key)
        try:
            return Medication.model_validate_json(raw)
        except ValidationError as e:
            raise ParseError(f"Invalid medication blob {key}", key=key) from e

    async def save(
        self,
        user_id: str,
        form: MedicationForm,
        medication_id: str | None = None,
    ) -> Medication:
        """Create a medication, or replace an existing one when *medication_id* is given.

        Raises:
            ObjectNotFoundError: If *medication_id* does not exist
        """
        created_at = utc_now_iso()
        if medication_id is not None:
            existing = await self.get(user_id, medication_id)
            created_at = existing.created_at
        else:
            medication_id = str(uuid.uuid4())

        medication = Medication(
            **form.model_dump(),
            id=medication_id,
            user_id=user_id,
            created_at=created_at,
            updated_at=utc_now_iso(),
        )
        key = asset_key(medication_scope(user_id), user_id, AssetKind.MEDICATION, medication_id)
        await self.storage.upload(
            key,
            medication.model_dump_json(indent=2).encode("utf-8"),
            content_type="application/json",
            upsert=True,
        )
        logger.info("Saved medication %s for %s", medication_id, user_id)
        return medication

    async def delete(self, user_id: str, medication_id: str) -> None:
        """Remove a medication.

        Raises:
            ObjectNotFoundError: If it does not exist
        """
        key = asset_key(medication_scope(user_id), user_id, AssetKind.MEDICATION, medication_id)
        await self.get(user_id, medication_id)
        await self.storage.remove([key])
        logger.info("Deleted medication %s for %s", medication_id, user_id)

    async def _load(self, key: str) -> Medication | None:
        try:
            return Medication.model_validate_json(await self.storage.download(key))
        except (StorageError, ParseError, ValidationError) as e:
            logger.warning("Skipping medication blob %s: %s", key, e)
            return None

