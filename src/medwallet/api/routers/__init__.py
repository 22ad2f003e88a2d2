"""API routers."""

from .health import router as health_router
from .medications import router as medications_router
from .patients import router as patients_router
from .session import router as session_router

__all__ = [
    "health_router",
    "medications_router",
    "patients_router",
    "session_router",
]
