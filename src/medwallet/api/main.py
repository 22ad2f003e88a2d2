"""FastAPI application factory for the medwallet API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.staticfiles import StaticFiles

from .. import __version__
from ..errors import (
    AccessDeniedError,
    ObjectNotFoundError,
    ParseError,
    RecordNotFoundError,
    StorageError,
)
from ..protocols import ObjectStorage
from .config import APIConfig, get_config, set_config
from .routers import health_router, medications_router, patients_router, session_router
from .services import get_wallet, init_wallet

logger = logging.getLogger(__name__)

load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    wallet = get_wallet()
    logger.info(
        "medwallet API starting (storage=%s, records=%s)",
        wallet.config.storage_backend,
        wallet.config.record_backend,
    )
    yield
    logger.info("Shutting down...")


def _register_error_handlers(app: FastAPI) -> None:
    """Map medwallet errors to HTTP status codes."""

    def _handler(status_code: int):
        async def handle(request: Request, exc: Exception) -> JSONResponse:
            if status_code >= 500:
                logger.error("%s %s failed: %s", request.method, request.url.path, exc)
            return JSONResponse(status_code=status_code, content={"detail": str(exc)})

        return handle

    # Starlette picks the handler of the most specific class in the MRO
    app.add_exception_handler(AccessDeniedError, _handler(403))
    app.add_exception_handler(RecordNotFoundError, _handler(404))
    app.add_exception_handler(ObjectNotFoundError, _handler(404))
    app.add_exception_handler(ParseError, _handler(502))
    app.add_exception_handler(StorageError, _handler(502))


def create_app(config: APIConfig | None = None, storage: ObjectStorage | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Optional configuration. If None, loads from environment.
        storage: Optional pre-built object storage (tests).

    Returns:
        Configured FastAPI application
    """
    if config is None:
        config = get_config()
    else:
        set_config(config)

    wallet = init_wallet(config, storage)

    app = FastAPI(
        title="Medical Wallet API",
        description="Patient records, emergency QR codes and PDF exports",
        version=__version__,
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=config.cors_allow_credentials,
        allow_methods=config.cors_allow_methods,
        allow_headers=config.cors_allow_headers,
    )

    _register_error_handlers(app)

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(session_router, prefix="/api")
    app.include_router(patients_router, prefix="/api")
    app.include_router(medications_router, prefix="/api")

    # Serve the local object store the way Supabase serves public objects
    if config.storage_backend == "local" and config.public_base_url.startswith("/"):
        files_dir = Path(getattr(wallet.storage, "root", config.local_storage_dir))
        files_dir.mkdir(parents=True, exist_ok=True)
        app.mount(config.public_base_url, StaticFiles(directory=str(files_dir)), name="files")

    return app


def main():
    """Entry point for the medwallet-serve command."""
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = get_config()
    uvicorn.run(
        "medwallet.api.main:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=config.debug,
    )


if __name__ == "__main__":
    main()
