"""Patient record endpoints.

Admins and doctors browse the aggregated patient list; every role can
load, edit and export the records it may access (users: their own).
"""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response

from ...errors import StorageError
from ...formatters import pdf_filename, render_qr_png, to_pdf, to_qr_payload
from ...records import (
    BloodGroup,
    Gender,
    MaritalStatus,
    PatientRecord,
    filter_patients,
    load_patients,
)
from ...session import Role, SessionContext
from ...storage import AssetKind, safe_file_name
from ..dependencies import get_session, require_patient_access
from ..models.requests import UpdatePatientRequest
from ..models.responses import PatientListResponse, PatientResponse, SaveResponse
from ..services import Wallet, get_wallet

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["patients"])

_UPLOAD_KINDS = {AssetKind.PHOTO, AssetKind.UPLOAD, AssetKind.MEDICAL_DOCUMENT}


@router.get("", response_model=PatientListResponse)
async def list_patients(
    owner: str | None = Query(None, description="Scope owner (defaults to the admin scope)"),
    search: str | None = Query(None, description="Search by patient name"),
    gender: Gender | None = Query(None),
    blood_group: BloodGroup | None = Query(None),
    marital_status: MaritalStatus | None = Query(None),
    wallet: Wallet = Depends(get_wallet),
    session: SessionContext = Depends(get_session),
) -> PatientListResponse:
    """Aggregate every record stored in a scope, then apply display filters."""
    session.require(Role.ADMIN, Role.DOCTOR)

    scope = wallet.records.scope_for(owner or wallet.config.admin_scope_owner)
    try:
        patients = await load_patients(
            wallet.records,
            scope,
            max_concurrency=wallet.max_concurrency,
        )
    except StorageError as e:
        logger.error("Failed to load patients under %s: %s", scope, e)
        return PatientListResponse(patients=[], total=0, scope=scope, error=str(e))

    patients = filter_patients(
        patients,
        search=search,
        gender=gender,
        blood_group=blood_group,
        marital_status=marital_status,
    )
    return PatientListResponse(patients=patients, total=len(patients), scope=scope)


@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: str,
    wallet: Wallet = Depends(get_wallet),
    session: SessionContext = Depends(get_session),
) -> PatientResponse:
    """Load a record: remote first, then cache, then the default record."""
    require_patient_access(patient_id, session)
    result = await wallet.sync.load(patient_id)
    return PatientResponse(patient=result.record, source=result.source)


@router.patch("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: str,
    request: UpdatePatientRequest,
    wallet: Wallet = Depends(get_wallet),
    session: SessionContext = Depends(get_session),
) -> PatientResponse:
    """Apply a partial edit (cached immediately, remote write best-effort)."""
    require_patient_access(patient_id, session)
    try:
        record = await wallet.sync.update(patient_id, request.updates)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return PatientResponse(patient=record, source="cache")


@router.put("/{patient_id}", response_model=SaveResponse)
async def save_patient(
    patient_id: str,
    record: PatientRecord,
    wallet: Wallet = Depends(get_wallet),
    session: SessionContext = Depends(get_session),
) -> SaveResponse:
    """Save the whole record. A failing remote write is reported as 502."""
    require_patient_access(patient_id, session)
    key = await wallet.sync.save(patient_id, record)
    return SaveResponse(success=True, key=key, patient=record)


@router.post("/{patient_id}/files", response_model=PatientResponse, status_code=201)
async def upload_patient_file(
    patient_id: str,
    kind: AssetKind = Query(AssetKind.UPLOAD, description="profile-photo, uploads or medical-documents"),
    file: UploadFile = File(...),
    wallet: Wallet = Depends(get_wallet),
    session: SessionContext = Depends(get_session),
) -> PatientResponse:
    """Upload a file and reference it from the record."""
    require_patient_access(patient_id, session)
    if kind not in _UPLOAD_KINDS:
        raise HTTPException(status_code=422, detail=f"Cannot upload files of kind {kind.value}")

    data = await file.read()
    if len(data) > wallet.config.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large ({len(data) / 1024 / 1024:.1f} MB)",
        )
    if kind is AssetKind.PHOTO and not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=422, detail="Profile photo must be an image")

    try:
        record = await wallet.sync.attach_file(
            patient_id,
            kind,
            safe_file_name(file.filename),
            data,
            file.content_type or "application/octet-stream",
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return PatientResponse(patient=record, source="cache")


@router.get("/{patient_id}/qr")
async def get_patient_qr(
    patient_id: str,
    format: Literal["json", "png"] = Query("json"),
    wallet: Wallet = Depends(get_wallet),
    session: SessionContext = Depends(get_session),
) -> Response:
    """Emergency-access QR payload, as JSON or as a PNG image."""
    require_patient_access(patient_id, session)
    result = await wallet.sync.load(patient_id)
    payload = to_qr_payload(result.record)
    if format == "png":
        return Response(content=render_qr_png(payload), media_type="image/png")
    return Response(content=payload, media_type="application/json")


@router.get("/{patient_id}/pdf")
async def get_patient_pdf(
    patient_id: str,
    wallet: Wallet = Depends(get_wallet),
    session: SessionContext = Depends(get_session),
) -> Response:
    """PDF export of the record."""
    require_patient_access(patient_id, session)
    result = await wallet.sync.load(patient_id)
    title = "Medical Wallet" if session.role is Role.USER else "Patient Medical Record"
    return Response(
        content=to_pdf(result.record, title=title),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{pdf_filename(result.record)}"',
        },
    )
