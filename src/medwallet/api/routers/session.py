"""Session endpoints: read, sign in and sign out of the stored session."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ...session import SessionContext
from ..dependencies import get_session
from ..models.requests import SignInRequest
from ..models.responses import SessionResponse
from ..services import Wallet, get_wallet

router = APIRouter(prefix="/session", tags=["session"])


def _to_response(session: SessionContext) -> SessionResponse:
    return SessionResponse(
        user_id=session.user_id,
        role=session.role.value,
        is_authenticated=session.is_authenticated,
    )


@router.get("", response_model=SessionResponse)
async def read_session(session: SessionContext = Depends(get_session)) -> SessionResponse:
    """Return the session the request runs as."""
    return _to_response(session)


@router.post("", response_model=SessionResponse)
async def sign_in(
    request: SignInRequest,
    wallet: Wallet = Depends(get_wallet),
) -> SessionResponse:
    """Store a signed-in session for the given role and user."""
    session = SessionContext(user_id=request.user_id, role=request.role, is_authenticated=True)
    session.save(wallet.kv)
    return _to_response(session)


@router.delete("", response_model=SessionResponse)
async def sign_out(wallet: Wallet = Depends(get_wallet)) -> SessionResponse:
    """Forget the stored session."""
    SessionContext.clear(wallet.kv)
    return _to_response(SessionContext.load(wallet.kv))
