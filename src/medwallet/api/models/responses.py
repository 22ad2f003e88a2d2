"""API response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ...medications import Medication
from ...records import PatientRecord


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    storage_backend: str = Field(..., description="Object storage in use")
    record_backend: str = Field(..., description="Where records are persisted")
    storage_configured: bool = Field(..., description="Whether credentials are present")


class SessionResponse(BaseModel):
    """Current session context."""

    user_id: str
    role: str
    is_authenticated: bool


class PatientListResponse(BaseModel):
    """Aggregated patient list."""

    patients: list[PatientRecord]
    total: int
    scope: str
    error: str | None = Field(None, description="Error message if loading failed")


class PatientResponse(BaseModel):
    """A single record and where it was read from."""

    patient: PatientRecord
    source: str = Field(..., description="remote, created, cache or default")


class SaveResponse(BaseModel):
    """Response after an explicit save."""

    success: bool
    key: str | None = Field(None, description="Storage key of the written record")
    patient: PatientRecord


class MedicationListResponse(BaseModel):
    """A user's medication timetable."""

    medications: list[Medication]
    total: int
    error: str | None = Field(None, description="Error message if loading failed")
