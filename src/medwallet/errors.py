"""Exception hierarchy shared by the storage, record and API layers."""

from __future__ import annotations


class MedWalletError(Exception):
    """Base class for all medwallet errors."""


class StorageError(MedWalletError):
    """Raised when a listing, download, upload or delete call fails remotely."""

    def __init__(self, message: str, *, key: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.key = key
        self.status_code = status_code


class ObjectNotFoundError(StorageError):
    """Raised when a storage object or document row does not exist."""


class ObjectExistsError(StorageError):
    """Raised when uploading without upsert to a key that is already taken."""


class ParseError(MedWalletError):
    """Raised when a stored blob is not a valid JSON record."""

    def __init__(self, message: str, *, key: str | None = None):
        super().__init__(message)
        self.key = key


class RecordNotFoundError(MedWalletError):
    """Raised when a patient has no stored record yet."""

    def __init__(self, patient_id: str):
        super().__init__(f"No record stored for patient {patient_id}")
        self.patient_id = patient_id


class AccessDeniedError(MedWalletError):
    """Raised when the session role may not perform an operation."""
