"""API request and response models."""

from .requests import SignInRequest, UpdatePatientRequest
from .responses import (
    HealthResponse,
    MedicationListResponse,
    PatientListResponse,
    PatientResponse,
    SaveResponse,
    SessionResponse,
)

__all__ = [
    # Requests
    "SignInRequest",
    "UpdatePatientRequest",
    # Responses
    "HealthResponse",
    "SessionResponse",
    "PatientListResponse",
    "PatientResponse",
    "SaveResponse",
    "MedicationListResponse",
]
