"""API configuration settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class APIConfig:
    """Configuration for the medwallet API."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # CORS settings
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = field(default_factory=lambda: ["*"])
    cors_allow_headers: list[str] = field(default_factory=lambda: ["*"])

    # Storage settings
    # Supabase credentials are read from the environment:
    # - SUPABASE_URL: project URL (https://<ref>.supabase.co)
    # - SUPABASE_KEY: anon or service key
    storage_backend: str = "supabase"  # supabase | local
    bucket: str = "new"
    local_storage_dir: str = "data/storage"
    public_base_url: str = "/files"
    record_backend: str = "storage"  # storage | documents
    patients_table: str = "patients"
    request_timeout: float = 30.0

    # Cache mirror / session flags
    cache_path: str = "data/cache.json"

    # Identity
    default_user_id: str = "demo-user"
    admin_scope_owner: str = "demo-user"

    # Limits (0 = unbounded fan-out)
    max_concurrency: int = 0
    max_upload_bytes: int = 10 * 1024 * 1024

    @classmethod
    def from_env(cls) -> APIConfig:
        """Load configuration from environment variables."""
        return cls(
            host=os.getenv("MEDWALLET_HOST", "0.0.0.0"),
            port=int(os.getenv("MEDWALLET_PORT", "8000")),
            debug=_flag("MEDWALLET_DEBUG", ""),
            cors_origins=os.getenv("MEDWALLET_CORS_ORIGINS", "*").split(","),
            storage_backend=os.getenv("MEDWALLET_STORAGE_BACKEND", "supabase").lower(),
            bucket=os.getenv("SUPABASE_BUCKET", "new"),
            local_storage_dir=os.getenv("MEDWALLET_STORAGE_DIR", "data/storage"),
            public_base_url=os.getenv("MEDWALLET_PUBLIC_BASE_URL", "/files"),
            record_backend=os.getenv("MEDWALLET_RECORD_BACKEND", "storage").lower(),
            patients_table=os.getenv("MEDWALLET_PATIENTS_TABLE", "patients"),
            request_timeout=float(os.getenv("MEDWALLET_REQUEST_TIMEOUT", "30")),
            cache_path=os.getenv("MEDWALLET_CACHE_PATH", "data/cache.json"),
            default_user_id=os.getenv("MEDWALLET_DEFAULT_USER", "demo-user"),
            admin_scope_owner=os.getenv("MEDWALLET_ADMIN_SCOPE", "demo-user"),
            max_concurrency=int(os.getenv("MEDWALLET_MAX_CONCURRENCY", "0")),
            max_upload_bytes=int(os.getenv("MEDWALLET_MAX_UPLOAD_BYTES", str(10 * 1024 * 1024))),
        )


# Global config instance
_config: APIConfig | None = None


def get_config() -> APIConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = APIConfig.from_env()
    return _config


def set_config(config: APIConfig) -> None:
    """Replace the global configuration (used by create_app and tests)."""
    global _config
    _config = config
