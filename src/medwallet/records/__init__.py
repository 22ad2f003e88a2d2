"""Patient records: schemas, store adapters, aggregation, cache and sync.

Usage:
    from medwallet.records import RecordStore, load_patients

    store = RecordStore(LocalObjectStore("data/storage"))
    patients = await load_patients(store, "users/demo-user")
"""

from .aggregate import gather_bounded, load_patients, resolve_assets
from .cache import KeyValueStore, RecordCache
from .filters import filter_patients
from .schemas import (
    Address,
    BloodGroup,
    ContactInfo,
    EmergencyContact,
    Gender,
    HabitStatus,
    MaritalStatus,
    MedicalDocumentRef,
    MedicalHistory,
    PatientRecord,
    Surgery,
    UploadedFileRef,
    default_record,
)
from .store import AssetRef, DocumentRecordStore, RecordStore, parse_record
from .sync import LoadResult, RecordSync

__all__ = [
    # Stores
    "RecordStore",
    "DocumentRecordStore",
    "AssetRef",
    "parse_record",
    # Aggregation
    "load_patients",
    "resolve_assets",
    "gather_bounded",
    "filter_patients",
    # Cache mirror
    "KeyValueStore",
    "RecordCache",
    "RecordSync",
    "LoadResult",
    # Schemas
    "PatientRecord",
    "ContactInfo",
    "Address",
    "EmergencyContact",
    "MedicalHistory",
    "Surgery",
    "HabitStatus",
    "UploadedFileRef",
    "MedicalDocumentRef",
    "Gender",
    "BloodGroup",
    "MaritalStatus",
    "default_record",
]
