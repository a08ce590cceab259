"""
Configuration Management for Expense Assets

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FirebaseSettings(BaseSettings):
    """Firebase app, Auth and Storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FIREBASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Web API key used by the Firebase Auth REST endpoints"
    )
    project_id: str = Field(
        ...,
        description="Firebase project ID"
    )
    storage_bucket: str = Field(
        ...,
        description="Default Cloud Storage bucket (e.g. my-app.firebasestorage.app)"
    )
    app_name: str = Field(
        default="[DEFAULT]",
        description="Name of the firebase_admin app instance"
    )
    service_account_path: Optional[str] = Field(
        default=None,
        description="Path to a service account JSON; Application Default Credentials when unset"
    )
    auth_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="HTTP timeout for the Auth REST endpoints"
    )

    @field_validator('service_account_path')
    @classmethod
    def validate_service_account_path(cls, v: Optional[str]) -> Optional[str]:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if v and not Path(v).expanduser().exists():
            import warnings
            warnings.warn(
                f"Firebase service account file not found at {v}. "
                "Make sure it exists before initializing the app."
            )
        return v

    def to_app_options(self) -> dict[str, str]:
        """Options passed to firebase_admin.initialize_app."""
        return {
            "projectId": self.project_id,
            "storageBucket": self.storage_bucket,
        }


class BackendApiSettings(BaseSettings):
    """Companion backend API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BACKEND_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="https://api.gokeystone.org",
        description="Base URL of the backend API (no trailing slash)"
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout for backend calls"
    )

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )

    # Which image source variant to use
    client_platform: Literal["native", "web"] = Field(
        default="native",
        description="'native' reads file:// URIs, 'web' decodes data: URLs"
    )

    # Storage layout
    upload_content_type: str = Field(
        default="image/jpeg",
        description="Content type recorded for uploaded images"
    )
    receipts_prefix: str = Field(
        default="receipts",
        description="Top-level folder for receipt images"
    )
    avatars_prefix: str = Field(
        default="avatars",
        description="Top-level folder for profile pictures"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def firebase(self) -> FirebaseSettings:
        return FirebaseSettings()

    @property
    def backend_api(self) -> BackendApiSettings:
        return BackendApiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid} plus
    {setting_name}_error entries for sections that failed.
    Useful for startup checks.
    """
    results: dict[str, object] = {}
    settings = get_settings()

    for name in ("firebase", "backend_api", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
