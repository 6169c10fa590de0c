"""
Configuration and settings for the honors backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Firebase (Auth + Firestore)
    firebase_project_id: Optional[str] = Field(default=None)
    google_application_credentials: Optional[str] = Field(default=None)

    # Self-hosted document store (any SQLAlchemy URL)
    database_url: Optional[str] = Field(default=None)

    # LLM / Gemini
    gemini_api_key: Optional[str] = Field(default=None)
    gemini_model: str = Field(default="gemini-2.5-flash")

    # Development toggles
    honors_use_in_memory_backends: bool = Field(default=False)

    # Comma-separated emails allowed to change proposal status. Empty means
    # any signed-in member may.
    admin_emails: str = Field(default="")

    identity_resolution_timeout_seconds: float = Field(default=10.0, gt=0)

    def missing_firebase_keys(self) -> list[str]:
        required = {"FIREBASE_PROJECT_ID": self.firebase_project_id}
        return [key for key, value in required.items() if not value]

    @property
    def firebase_configured(self) -> bool:
        return not self.missing_firebase_keys()

    @property
    def admin_email_set(self) -> set[str]:
        return {
            email.strip().lower()
            for email in self.admin_emails.split(",")
            if email.strip()
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
