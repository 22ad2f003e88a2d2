"""Storage key construction.

Every object path used by medwallet is built here, so the record blob, the
profile photo and the per-kind asset folders of one patient always agree on
the identity segment.

Layout::

    users/{owner}/{epoch_ms}_data.json
    users/{owner}/files/{patient_id}_person.jpg
    users/{owner}/files/{patient_id}/uploads/{epoch_ms}-{name}
    users/{owner}/files/{patient_id}/medical_documents/{epoch_ms}-{name}
    medication-timetable/{user_id}/{medication_id}_medication.json
"""

from __future__ import annotations

import time
from enum import Enum

RECORD_SUFFIX = "_data.json"
MEDICATION_SUFFIX = "_medication.json"
PHOTO_SUFFIX = "_person.jpg"

USERS_NAMESPACE = "users"
MEDICATION_NAMESPACE = "medication-timetable"


class AssetKind(str, Enum):
    """Kinds of objects stored for a patient."""

    RECORD = "record"
    PHOTO = "profile-photo"
    UPLOAD = "uploads"
    MEDICAL_DOCUMENT = "medical-documents"
    MEDICATION = "medication"


# Folder names under files/{patient_id}/
_ASSET_FOLDERS = {
    AssetKind.UPLOAD: "uploads",
    AssetKind.MEDICAL_DOCUMENT: "medical_documents",
}


def _segment(value: str, what: str) -> str:
    """Validate a single path segment."""
    if not value or "/" in value or value in (".", "..") or "\\" in value:
        raise ValueError(f"Invalid {what} for storage key: {value!r}")
    return value


def now_ms() -> int:
    """Current time in epoch milliseconds (used as blob name prefix)."""
    return int(time.time() * 1000)


def record_scope(owner_id: str, namespace: str = USERS_NAMESPACE) -> str:
    """Scope prefix under which an owner's record blobs live."""
    return f"{namespace}/{_segment(owner_id, 'owner id')}"


def medication_scope(user_id: str) -> str:
    """Scope prefix for a user's medication timetable."""
    return f"{MEDICATION_NAMESPACE}/{_segment(user_id, 'user id')}"


def record_blob_name(timestamp_ms: int | None = None) -> str:
    return f"{timestamp_ms if timestamp_ms is not None else now_ms()}{RECORD_SUFFIX}"


def is_record_blob(name: str) -> bool:
    return name.endswith(RECORD_SUFFIX)


def is_medication_blob(name: str) -> bool:
    return name.endswith(MEDICATION_SUFFIX)


def blob_timestamp(name: str) -> int:
    """Leading epoch-ms of a timestamped blob name, or -1 if there is none."""
    head = name.split("_", 1)[0]
    return int(head) if head.isdigit() else -1


def asset_prefix(scope: str, patient_id: str, kind: AssetKind) -> str:
    """Folder that holds objects of *kind* for one patient (for listing)."""
    if kind in (AssetKind.RECORD, AssetKind.MEDICATION):
        return scope
    if kind is AssetKind.PHOTO:
        return f"{scope}/files"
    return f"{scope}/files/{_segment(patient_id, 'patient id')}/{_ASSET_FOLDERS[kind]}"


def asset_key(
    scope: str,
    patient_id: str,
    kind: AssetKind,
    name: str = "",
    timestamp_ms: int | None = None,
) -> str:
    """Full object key for one stored object.

    Args:
        scope: Owner scope (see :func:`record_scope` / :func:`medication_scope`).
        patient_id: Identity of the record the object belongs to.
        kind: What the object is.
        name: Original file name (uploads, documents) or object name
            (records, medications). Ignored for photos.
        timestamp_ms: Override the time prefix (tests, deterministic seeds).

    Returns:
        The storage key.
    """
    pid = _segment(patient_id, "patient id")

    if kind is AssetKind.PHOTO:
        return f"{scope}/files/{pid}{PHOTO_SUFFIX}"
    if kind is AssetKind.RECORD:
        return f"{scope}/{_segment(name, 'blob name') if name else record_blob_name(timestamp_ms)}"
    if kind is AssetKind.MEDICATION:
        return f"{scope}/{_segment(name, 'medication id')}{MEDICATION_SUFFIX}"

    stamp = timestamp_ms if timestamp_ms is not None else now_ms()
    return f"{asset_prefix(scope, pid, kind)}/{stamp}-{_segment(name, 'file name')}"


def safe_file_name(filename: str | None, fallback: str = "upload") -> str:
    """Reduce a client-supplied file name to a usable key segment.

    Directory parts are dropped; names left empty, or that are only dots,
    become *fallback*.
    """
    base = (filename or "").replace("\\", "/").rsplit("/", 1)[-1].strip()
    if not base.strip("."):
        return fallback
    return base


def photo_name(patient_id: str) -> str:
    """Object name (not key) of a patient's profile photo inside ``files/``."""
    return f"{_segment(patient_id, 'patient id')}{PHOTO_SUFFIX}"
