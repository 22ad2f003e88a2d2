"""Pydantic schemas for the medication timetable."""

from __future__ import annotations

from pydantic import Field

from ..records.schemas import WalletModel, utc_now_iso


class MedicationForm(WalletModel):
    """Editable medication fields."""

    name: str = Field(..., description="Medication name", min_length=1)
    dosage: str = Field("", description="Dosage (e.g., '500mg')")
    frequency: str = Field("", description="Frequency (e.g., 'twice daily')")
    schedule: list[str] = Field(
        default_factory=list,
        description="Times of day to take it (e.g., ['08:00', '20:00'])",
    )
    next_refill: str = Field("", description="Next refill date (YYYY-MM-DD)")


class Medication(MedicationForm):
    """A stored medication entry."""

    id: str = Field(..., description="Medication identifier")
    user_id: str = Field(..., description="Owner of the timetable")
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)
