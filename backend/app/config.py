"""Centralized application settings loaded from environment variables."""

from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./curriculum.db"
    # Busy timeout for SQLite and pool checkout timeout for other engines.
    DB_TIMEOUT_SECONDS: float = 10.0
    SECRET_KEY: str = "change-me-to-a-random-secret-key"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # JWT
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # Versioning policy
    # Newer versions in these statuses block edits of an active version.
    EDIT_BLOCKING_STATUSES: List[str] = ["draft", "pending_approval", "approved"]
    FORK_SOURCE_STATUSES: List[str] = ["approved", "active"]
    REJECTION_REASON_MIN_LENGTH: int = 10
    REJECTION_REASON_MAX_LENGTH: int = 500

    class Config:
        env_file = str(Path(__file__).resolve().parents[1] / ".env")


settings = Settings()
