"""
Configuration module for the authenticated-request gateway.

This module uses Pydantic Settings to load and validate environment variables
for the remote API location, the credential renewal endpoint, the login
surface used after a session ends, and HTTP timeouts.

Environment variables are loaded from .env file or system environment.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """
    Gateway settings loaded from environment variables.

    Everything the gateway needs to talk to the remote API and to renew its
    access credential is defined here.
    """

    # =========================================================================
    # Remote API
    # =========================================================================

    API_BASE_URL: HttpUrl = Field(
        ...,
        description="Remote API base URL (e.g., https://api.example.com/api)",
    )

    REFRESH_PATH: str = Field(
        default="/auth/refresh",
        description="Path of the credential renewal endpoint, relative to API_BASE_URL",
        min_length=1,
    )

    # =========================================================================
    # Session Surface
    # =========================================================================

    LOGIN_PATH: str = Field(
        default="/login",
        description="Location users are sent to once their session has ended",
        min_length=1,
    )

    CREDENTIALS_FILE: Optional[str] = Field(
        None,
        description="JSON file used to persist credentials (in-memory store when unset)",
    )

    # =========================================================================
    # HTTP Client
    # =========================================================================

    REQUEST_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Overall timeout applied to every outbound request",
        gt=0,
    )

    CONNECT_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Connect timeout applied to every outbound request",
        gt=0,
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # =========================================================================
    # Pydantic Settings Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def api_base_url_str(self) -> str:
        """
        Get the API base URL as string (for HTTP client usage).

        Returns:
            Base URL without trailing slash.
        """
        return str(self.API_BASE_URL).rstrip("/")

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("REFRESH_PATH", "LOGIN_PATH")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """
        Validate that configured paths are absolute.

        Raises:
            ValueError: If the path does not start with '/'
        """
        v = v.strip()
        if not v.startswith("/"):
            raise ValueError(f"Path must start with '/': '{v}'")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalise the log level and reject unknown names."""
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(
                f"LOG_LEVEL must be one of {list(_LOG_LEVELS)}, got: {v}"
            )
        return level


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    Returns:
        Settings instance with all configuration loaded and validated.

    Raises:
        ValidationError: If required environment variables are missing
                        or invalid.
    """
    return Settings()


# =============================================================================
# Configuration Helpers
# =============================================================================

def validate_configuration(settings: Settings) -> dict:
    """
    Validate gateway settings and return a status report.

    Example:
        >>> status = validate_configuration(get_settings())
        >>> if not status["valid"]:
        ...     print(status["errors"])
    """
    errors = []
    warnings = []

    base_url = settings.api_base_url_str
    local = "localhost" in base_url or "127.0.0.1" in base_url

    if base_url.startswith("http://") and not local:
        warnings.append("API_BASE_URL uses plain http; credentials will travel unencrypted")

    if settings.REFRESH_PATH == settings.LOGIN_PATH:
        errors.append("REFRESH_PATH and LOGIN_PATH must differ")

    if settings.CONNECT_TIMEOUT_SECONDS > settings.REQUEST_TIMEOUT_SECONDS:
        warnings.append("CONNECT_TIMEOUT_SECONDS exceeds REQUEST_TIMEOUT_SECONDS")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "api_base_url": base_url,
        "refresh_path": settings.REFRESH_PATH,
    }
