"""Local persistent key-value storage and the record cache mirror."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from .schemas import PatientRecord

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "patientData_"


class KeyValueStore:
    """String key-value store with in-memory cache and optional JSON-file persistence.

    When ``path`` is provided, the whole store is persisted as one JSON
    object in that file; every mutation is written through to disk.

    When ``path`` is ``None`` (the default), the store is purely in-memory
    (tests).
    """

    def __init__(self, path: Path | None = None):
        self._items: dict[str, str] = {}
        self._path = path

        if self._path is not None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._load()

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    def _load(self) -> None:
        """Load the backing file, starting empty if it is missing or unreadable."""
        assert self._path is not None
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Failed to read key-value file %s, starting empty", self._path)
            return
        if isinstance(data, dict):
            self._items = {str(k): str(v) for k, v in data.items()}
            logger.info("Loaded %d key(s) from %s", len(self._items), self._path)

    def _save(self) -> None:
        """Atomically persist the store to disk (write .tmp then rename)."""
        if self._path is None:
            return
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(self._items, indent=2), encoding="utf-8")
        os.replace(tmp, self._path)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value
        self._save()

    def remove(self, key: str) -> bool:
        """Remove a key. Returns True if it existed."""
        if key in self._items:
            del self._items[key]
            self._save()
            return True
        return False

    def keys(self) -> list[str]:
        return list(self._items)


class RecordCache:
    """Mirror of patient records in the local key-value store."""

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    @staticmethod
    def key_for(patient_id: str) -> str:
        return f"{CACHE_KEY_PREFIX}{patient_id}"

    def read_cache(self, patient_id: str) -> PatientRecord | None:
        """Cached record, or None on a miss. Corrupt entries count as a miss."""
        raw = self.kv.get(self.key_for(patient_id))
        if raw is None:
            return None
        try:
            return PatientRecord.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable cache entry for %s", patient_id)
            return None

    def write_cache(self, patient_id: str, record: PatientRecord) -> None:
        self.kv.set(self.key_for(patient_id), record.model_dump_json())

    def evict(self, patient_id: str) -> bool:
        return self.kv.remove(self.key_for(patient_id))
