"""Configuration management.

This module defines a ``Settings`` class that reads configuration values
from environment variables and provides sensible defaults.  ``.env``
support is implemented by loading files from the repository root in a
defined order without overriding variables that are already set.

Settings are frozen once constructed.  The module-level ``settings``
instance is built at import time and handed to the services explicitly
by the API layer; nothing else should mutate it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# -----------------------------------------------------------------------------
# .env loading
#
# Prefer a .env in the repository root but allow fallback to whatever
# python-dotenv discovers from the current working directory.  As a last
# resort, a .env in the backend directory may be used.

_THIS_FILE = Path(__file__).resolve()
_REPO_ROOT = _THIS_FILE.parents[3]
_ROOT_ENV = _REPO_ROOT / ".env"

_candidate_envs: list[str] = []
if _ROOT_ENV.exists():
    _candidate_envs.append(str(_ROOT_ENV))

_FOUND_ENV = find_dotenv(usecwd=True)
if _FOUND_ENV and _FOUND_ENV not in _candidate_envs:
    _candidate_envs.append(_FOUND_ENV)

_LOCAL_ENV = (_THIS_FILE.parents[2] / ".env").as_posix()
if os.path.exists(_LOCAL_ENV) and _LOCAL_ENV not in _candidate_envs:
    _candidate_envs.append(_LOCAL_ENV)

for _env_path in _candidate_envs:
    load_dotenv(dotenv_path=_env_path, override=False)


DELETE_MODES = ("hard", "soft")
STORAGE_BACKENDS = ("minio", "filesystem")


class Settings(BaseSettings):
    """Application settings.

    Any attribute defined here can be overridden by setting the
    corresponding environment variable.
    """

    model_config = SettingsConfigDict(
        env_file=tuple(_candidate_envs) if _candidate_envs else (".env",),
        case_sensitive=True,
        extra="ignore",
        frozen=True,
    )

    # API
    PROJECT_NAME: str = "Receipt Keeper"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = Field(default="development")
    LOG_LEVEL: str = Field(default="INFO")

    # Database
    DATABASE_URL: Optional[str] = Field(default=None)
    DB_ECHO: bool = Field(default=False)
    # Use a local SQLite file when DATABASE_URL is unset (development only)
    DB_DEV_FALLBACK_SQLITE: bool = Field(default=False)
    # Create missing tables at startup instead of running Alembic
    DB_CREATE_TABLES_ON_STARTUP: bool = Field(default=False)

    # Auth
    JWT_SECRET: str = Field(default="your-secret-key-change-in-production")
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_EXPIRE_HOURS: int = Field(default=24, gt=0)
    BCRYPT_ROUNDS: int = Field(default=10, ge=4, le=31)

    # Receipts
    RECEIPT_DELETE_MODE: str = Field(default="hard")
    MAX_PAGE_SIZE: int = Field(default=100, gt=0)

    # Storage
    STORAGE_BACKEND: str = Field(default="minio")
    MINIO_ENDPOINT: str = Field(default="localhost:9000")
    MINIO_ACCESS_KEY: str = Field(default="minioadmin")
    MINIO_SECRET_KEY: str = Field(default="minioadmin")
    MINIO_BUCKET_NAME: str = Field(default="receipts")
    MINIO_USE_SSL: bool = Field(default=False)
    STORAGE_DIRECTORY: str = Field(default="./storage")

    # File Upload
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB
    ALLOWED_EXTENSIONS: set[str] = {".jpg", ".jpeg", ".png", ".gif", ".pdf", ".webp"}

    # CORS
    BACKEND_CORS_ORIGINS: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
    )

    # Sentry
    SENTRY_DSN: Optional[str] = Field(default=None)
    SENTRY_TRACES_SAMPLE_RATE: float = Field(default=0.0)
    SENTRY_RELEASE: Optional[str] = Field(default=None)

    @field_validator("RECEIPT_DELETE_MODE", "STORAGE_BACKEND", mode="before")
    @classmethod
    def _lowercase(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("RECEIPT_DELETE_MODE")
    @classmethod
    def _check_delete_mode(cls, v: str) -> str:
        if v not in DELETE_MODES:
            raise ValueError(f"RECEIPT_DELETE_MODE must be one of {DELETE_MODES}")
        return v

    @field_validator("STORAGE_BACKEND")
    @classmethod
    def _check_storage_backend(cls, v: str) -> str:
        if v not in STORAGE_BACKENDS:
            raise ValueError(f"STORAGE_BACKEND must be one of {STORAGE_BACKENDS}")
        return v

    @property
    def is_development(self) -> bool:
        return (self.ENVIRONMENT or "development").lower() == "development"


# Instantiate global settings
settings = Settings()
