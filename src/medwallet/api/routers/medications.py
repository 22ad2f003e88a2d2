"""Medication timetable endpoints for the session user."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from ...errors import StorageError
from ...medications import Medication, MedicationForm
from ...session import SessionContext
from ..dependencies import get_session
from ..models.responses import MedicationListResponse
from ..services import Wallet, get_wallet

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/medications", tags=["medications"])


def _signed_in(session: SessionContext) -> str:
    if not session.is_authenticated:
        raise HTTPException(status_code=401, detail="Not signed in")
    return session.user_id


@router.get("", response_model=MedicationListResponse)
async def list_medications(
    wallet: Wallet = Depends(get_wallet),
    session: SessionContext = Depends(get_session),
) -> MedicationListResponse:
    """List the user's medications, oldest first."""
    user_id = _signed_in(session)
    try:
        medications = await wallet.medications.list(user_id)
    except StorageError as e:
        logger.error("Failed to load medications for %s: %s", user_id, e)
        return MedicationListResponse(medications=[], total=0, error=str(e))
    return MedicationListResponse(medications=medications, total=len(medications))


@router.post("", response_model=Medication, status_code=201)
async def add_medication(
    form: MedicationForm,
    wallet: Wallet = Depends(get_wallet),
    session: SessionContext = Depends(get_session),
) -> Medication:
    """Add a medication to the timetable."""
    return await wallet.medications.save(_signed_in(session), form)


@router.put("/{medication_id}", response_model=Medication)
async def edit_medication(
    medication_id: str,
    form: MedicationForm,
    wallet: Wallet = Depends(get_wallet),
    session: SessionContext = Depends(get_session),
) -> Medication:
    """Replace an existing medication's fields."""
    return await wallet.medications.save(_signed_in(session), form, medication_id=medication_id)


@router.delete("/{medication_id}", status_code=204)
async def delete_medication(
    medication_id: str,
    wallet: Wallet = Depends(get_wallet),
    session: SessionContext = Depends(get_session),
) -> None:
    """Remove a medication."""
    await wallet.medications.delete(_signed_in(session), medication_id)
