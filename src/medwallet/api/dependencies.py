"""FastAPI dependencies: wallet services and the request's session context."""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException

from ..session import Role, SessionContext
from .services import Wallet, get_wallet


def get_session(
    wallet: Wallet = Depends(get_wallet),
    x_user_id: str | None = Header(None),
    x_user_role: str | None = Header(None),
) -> SessionContext:
    """Session from ``X-User-Id`` / ``X-User-Role`` headers, else the stored one."""
    if x_user_id or x_user_role:
        try:
            role = Role(x_user_role or Role.USER.value)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown role: {x_user_role}")
        return SessionContext(
            user_id=x_user_id or wallet.config.default_user_id,
            role=role,
            is_authenticated=True,
        )
    return SessionContext.load(wallet.kv)


def require_patient_access(patient_id: str, session: SessionContext) -> None:
    """403 unless *session* may read and edit *patient_id*'s record."""
    if not session.is_authenticated:
        raise HTTPException(status_code=401, detail="Not signed in")
    if not session.can_access(patient_id):
        raise HTTPException(status_code=403, detail="Not allowed to access this record")
