"""Configuration loaded from SHEETSYNC_* environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class SheetSettings(BaseSettings):
    """sheetsync settings shared by the editor and the content service.

    All fields are read from environment variables with the ``SHEETSYNC_``
    prefix.  For example, ``SHEETSYNC_DEBOUNCE_SECONDS=0.5`` maps to
    ``debounce_seconds``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SHEETSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"
    log_json: bool = False
    """Emit one JSON object per log line instead of the coloured text format."""

    # -- Local data ------------------------------------------------------------
    data_root: str = "./data"
    """Root directory for the editor's local state and image store."""

    data_prefix: str | None = None
    """Optional namespace inserted into local paths (``{data_root}/{data_prefix}/...``).

    Lets several profiles share one data root, like separate browser profiles.
    """

    blob_store: Literal["local", "s3", "memory"] = "local"

    # S3 (only when blob_store = "s3")
    s3_endpoint: str | None = None
    s3_bucket: str | None = None
    s3_region: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: SecretStr | None = None
    s3_path_style: bool = False

    # -- Sync ------------------------------------------------------------------
    remote_url: str | None = None
    """Base URL of the content service.  Cloud sync is disabled when unset."""

    session_token: SecretStr | None = None
    """Opaque session credential sent as a cookie on every remote call."""

    debounce_seconds: float = Field(default=2.0, gt=0)
    push_max_retries: int = Field(default=3, ge=0)
    """Retries for a failed push.  ``0`` makes sync strictly best-effort."""

    retry_base_seconds: float = Field(default=1.0, gt=0)
    request_timeout: float = Field(default=10.0, gt=0)

    # -- Server ----------------------------------------------------------------
    database_url: str | None = None
    """PostgreSQL connection string (psycopg).  Required by ``sheetsync serve``."""

    host: str = "127.0.0.1"
    port: int = 3001
    cookie_name: str = "sheetsync_session"

    frontend_url: str | None = None
    """Browser origin allowed to call the service with credentials (CORS)."""


@lru_cache(maxsize=1)
def get_settings() -> SheetSettings:
    """Return a cached settings instance.

    Call ``get_settings.cache_clear()`` in tests to force a re-read after
    overriding env vars.
    """
    return SheetSettings()
