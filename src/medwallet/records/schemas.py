"""Pydantic schemas for patient records.

Field names are snake_case. Every model also accepts camelCase keys (the
form editor's naming) and can emit them with ``by_alias=True``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel, to_snake


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class WalletModel(BaseModel):
    """Base model accepting both snake_case and camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class BloodGroup(str, Enum):
    A_POS = "A+"
    A_NEG = "A-"
    B_POS = "B+"
    B_NEG = "B-"
    AB_POS = "AB+"
    AB_NEG = "AB-"
    O_POS = "O+"
    O_NEG = "O-"


class MaritalStatus(str, Enum):
    SINGLE = "Single"
    MARRIED = "Married"
    DIVORCED = "Divorced"
    WIDOWED = "Widowed"


# =============================================================================
# Contact info
# =============================================================================


class Address(WalletModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""

    def one_line(self) -> str:
        """``street, city, state zip`` as printed on exports."""
        return f"{self.street}, {self.city}, {self.state} {self.zip}"


class EmergencyContact(WalletModel):
    name: str = ""
    phone: str = ""
    relationship: str = ""


class ContactInfo(WalletModel):
    phone_number: str = ""
    email: str = ""
    address: Address = Field(default_factory=Address)
    emergency_contact: EmergencyContact = Field(default_factory=EmergencyContact)


# =============================================================================
# Medical history
# =============================================================================


class Surgery(WalletModel):
    name: str = ""
    date: str = ""


class HabitStatus(WalletModel):
    """Smoking / alcohol: whether the habit is present and how often."""

    status: bool = False
    frequency: str = ""


class UploadedFileRef(WalletModel):
    """A file the patient uploaded, resolved to a public URL."""

    name: str = Field(..., description="Original or stored file name")
    url: str = Field(..., description="Public URL of the stored object")
    type: str = Field(
        "application/octet-stream",
        description="MIME type or upload kind tag",
    )
    uploaded_at: str = Field(default_factory=utc_now_iso)


class MedicalDocumentRef(WalletModel):
    """A medical document attached to the patient's history."""

    title: str = Field(..., description="Document title (file name)")
    url: str = Field(..., description="Public URL of the stored object")
    type: str = Field("", description="MIME type, when known")
    uploaded_at: str = Field(default_factory=utc_now_iso)


class MedicalHistory(WalletModel):
    past_illnesses: list[str] = Field(default_factory=list)
    surgeries: list[Surgery] = Field(default_factory=list)
    allergies: list[str] = Field(default_factory=list)
    chronic_diseases: list[str] = Field(default_factory=list)
    family_medical_history: str = ""
    smoking: HabitStatus = Field(default_factory=HabitStatus)
    alcohol: HabitStatus = Field(default_factory=HabitStatus)
    disabilities: list[str] = Field(default_factory=list)
    genetic_conditions: list[str] = Field(default_factory=list)
    medical_documents: list[MedicalDocumentRef] = Field(default_factory=list)


# =============================================================================
# Patient record
# =============================================================================


class PatientRecord(WalletModel):
    """The whole patient record, persisted as one JSON blob."""

    id: str = Field("", description="Stable identity; keys every storage location")
    full_name: str = ""
    date_of_birth: str = ""
    gender: Gender = Gender.MALE
    blood_group: BloodGroup = BloodGroup.A_POS
    marital_status: MaritalStatus = MaritalStatus.SINGLE
    national_id: str = ""
    profile_photo: str = ""
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    medical_history: MedicalHistory = Field(default_factory=MedicalHistory)
    uploaded_files: list[UploadedFileRef] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = ""

    def with_updates(self, updates: dict[str, Any]) -> PatientRecord:
        """Return a copy with top-level fields replaced by *updates*.

        Keys may be camelCase or snake_case. Nested objects are replaced
        whole, not merged.
        """
        data = self.model_dump()
        for key, value in updates.items():
            data[to_snake(key)] = value
        return PatientRecord.model_validate(data)

    def to_storage(self) -> dict[str, Any]:
        """JSON-ready snake_case dict, the shape stored in record blobs."""
        return self.model_dump(mode="json")


def default_record(patient_id: str) -> PatientRecord:
    """The record shown when nothing is stored or reachable."""
    return PatientRecord(id=patient_id)
