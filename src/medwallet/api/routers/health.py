"""Health check endpoint."""

from fastapi import APIRouter, Depends

from ... import __version__
from ..models.responses import HealthResponse
from ..services import Wallet, get_wallet

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(wallet: Wallet = Depends(get_wallet)) -> HealthResponse:
    """Check API health status."""
    credentials_error = getattr(wallet.storage, "credentials_error", lambda: None)()
    return HealthResponse(
        status="ok",
        version=__version__,
        storage_backend=wallet.config.storage_backend,
        record_backend=wallet.config.record_backend,
        storage_configured=credentials_error is None,
    )
