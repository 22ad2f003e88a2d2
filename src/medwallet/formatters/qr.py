"""QR payload for emergency access.

The payload is a reduced, camelCase JSON view of the record: identity and
demographics, contact info and medical history. Uploaded files and medical
documents are left out.
"""

from __future__ import annotations

import json
from io import BytesIO

import qrcode

from ..records.schemas import ContactInfo, MedicalHistory, PatientRecord

_BASIC_FIELDS = (
    "full_name",
    "date_of_birth",
    "gender",
    "blood_group",
    "marital_status",
    "national_id",
    "profile_photo",
)


def qr_view(record: PatientRecord) -> dict:
    """The reduced view encoded into the QR code."""
    basic = record.model_dump(mode="json", by_alias=True, include=set(_BASIC_FIELDS))
    return {
        "basicInfo": basic,
        "contactInfo": record.contact_info.model_dump(mode="json", by_alias=True),
        "medicalHistory": record.medical_history.model_dump(
            mode="json",
            by_alias=True,
            exclude={"medical_documents"},
        ),
    }


def to_qr_payload(record: PatientRecord) -> str:
    return json.dumps(qr_view(record), separators=(",", ":"))


def parse_qr_payload(payload: str) -> PatientRecord:
    """Rebuild a record from a scanned payload (reduced view fields only).

    Raises:
        ValueError: If the payload is not a QR view produced by to_qr_payload
    """
    data = json.loads(payload)
    if not isinstance(data, dict) or "basicInfo" not in data:
        raise ValueError("Not a medical wallet QR payload")
    return PatientRecord.model_validate(
        {
            **data["basicInfo"],
            "contact_info": ContactInfo.model_validate(data.get("contactInfo") or {}),
            "medical_history": MedicalHistory.model_validate(data.get("medicalHistory") or {}),
        }
    )


def render_qr_png(payload: str, box_size: int = 10, border: int = 4) -> bytes:
    """Render *payload* as a PNG QR code."""
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    image = qr.make_image()
    buffer = BytesIO()
    image.save(buffer)
    return buffer.getvalue()
