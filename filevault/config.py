# Filename: filevault/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from pathlib import Path
from typing import Literal


class Settings(BaseSettings):
    # Core
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    app_name: str = "FileVault"
    app_version: str = "0.1.0"

    secret_key: str = Field(..., description="JWT secret key - required")
    access_token_expire_minutes: int = 1440
    jwt_algorithm: str = "HS256"

    database_url: str = Field(..., description="Database connection string")

    # Blob store ("memory" keeps ciphertext in-process, "local" writes under storage_path/blobs)
    blob_backend: Literal["memory", "local"] = "memory"
    storage_path: Path = Path("./data")
    blob_latency_ms: int = 1000
    blob_timeout_seconds: float = 10.0
    blob_retry_backoff_seconds: float = 0.5

    max_upload_size_mb: int = 2048

    # Base used when building share link URLs
    public_base_url: str = "http://localhost:8000"

    cors_allow_origins: str = "*"
    cors_allow_credentials: bool = True
    cors_allow_methods: str = "*"
    cors_allow_headers: str = "*"

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="FILEVAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
