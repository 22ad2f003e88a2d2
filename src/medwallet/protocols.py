"""Protocol definitions for medwallet storage backends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .records.schemas import PatientRecord
    from .storage.schemas import StorageObject


@runtime_checkable
class ObjectStorage(Protocol):
    """Protocol defining the interface for object storage backends.

    Both SupabaseStorage and LocalObjectStore implement this interface,
    allowing them to be used interchangeably by the record store, the
    aggregation routine and the medication tracker.
    """

    async def list(self, prefix: str, limit: int = 100) -> list[StorageObject]:
        """List the immediate children of *prefix* (files and folders)."""
        ...

    async def download(self, key: str) -> bytes:
        """Download an object's raw bytes.

        Raises:
            ObjectNotFoundError: If no object is stored under *key*.
            StorageError: On any other failure.
        """
        ...

    async def upload(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        upsert: bool = False,
    ) -> str:
        """Store *data* under *key* and return the key.

        Raises:
            ObjectExistsError: If *key* exists and *upsert* is False.
            StorageError: On any other failure.
        """
        ...

    async def remove(self, keys: list[str]) -> None:
        """Delete the given keys."""
        ...

    def public_url(self, key: str) -> str:
        """Resolve the public URL for *key* (no remote call)."""
        ...


@runtime_checkable
class RecordBackend(Protocol):
    """Anything that can get and put a whole patient record by identity."""

    async def get_record(self, patient_id: str) -> PatientRecord:
        """Fetch a record. Raises RecordNotFoundError when absent."""
        ...

    async def put_record(self, patient_id: str, record: PatientRecord) -> str:
        """Persist a record and return its storage key."""
        ...
