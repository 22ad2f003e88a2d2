"""Display filters for the aggregated patient list."""

from __future__ import annotations

from collections.abc import Iterable

from .schemas import BloodGroup, Gender, MaritalStatus, PatientRecord


def filter_patients(
    records: Iterable[PatientRecord],
    search: str | None = None,
    gender: Gender | None = None,
    blood_group: BloodGroup | None = None,
    marital_status: MaritalStatus | None = None,
) -> list[PatientRecord]:
    """Filter records by name substring and exact demographic matches.

    A blank or None filter does not constrain the result.
    """
    needle = (search or "").strip().lower()
    matches = []
    for record in records:
        if needle and needle not in record.full_name.lower():
            continue
        if gender and record.gender != gender:
            continue
        if blood_group and record.blood_group != blood_group:
            continue
        if marital_status and record.marital_status != marital_status:
            continue
        matches.append(record)
    return matches
