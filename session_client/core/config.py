"""
Client configuration models and helpers.

Centralizes settings so the session layer, the probe script and the tests
share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path

import os

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class EndpointSettings(BaseSettings):
    """Paths of the remote authority endpoints, relative to the API base URL."""

    model_config = SettingsConfigDict(populate_by_name=True)

    login: str = Field("/auth/login", alias="SESSION_LOGIN_PATH")
    register_path: str = Field("/auth/register", alias="SESSION_REGISTER_PATH")
    logout: str = Field("/auth/logout", alias="SESSION_LOGOUT_PATH")
    refresh: str = Field("/auth/refresh", alias="SESSION_REFRESH_PATH")
    me: str = Field("/auth/me", alias="SESSION_ME_PATH")
    forgot_password: str = Field(
        "/auth/forgot-password", alias="SESSION_FORGOT_PASSWORD_PATH"
    )
    reset_password: str = Field(
        "/auth/reset-password", alias="SESSION_RESET_PASSWORD_PATH"
    )
    password_request_otp: str = Field(
        "/auth/password/request-otp", alias="SESSION_PASSWORD_OTP_PATH"
    )
    password_verify_otp: str = Field(
        "/auth/password/verify-otp", alias="SESSION_PASSWORD_VERIFY_PATH"
    )

    @field_validator("*")
    @classmethod
    def _leading_slash(cls, value: str) -> str:
        """Accept paths with or without the leading slash."""
        return value if value.startswith("/") else f"/{value}"


class RenewalSettings(BaseSettings):
    """Timing policy for proactive and reactive credential renewal."""

    model_config = SettingsConfigDict(populate_by_name=True)

    safety_margin_seconds: float = Field(
        60.0,
        alias="SESSION_REFRESH_MARGIN_SECONDS",
        description="Renew this long before the access token expires.",
    )
    timeout_seconds: float = Field(
        8.0,
        alias="SESSION_RENEWAL_TIMEOUT_SECONDS",
        description="Upper bound for a single call to the refresh endpoint.",
    )

    @field_validator("safety_margin_seconds", "timeout_seconds")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value


class SessionSettings(BaseSettings):
    """Root settings object for the session client."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    api_base_url: AnyHttpUrl = Field(
        "http://localhost:3000/api", alias="SESSION_API_URL"
    )
    log_level: str = Field("INFO", alias="SESSION_LOG_LEVEL")
    request_timeout_seconds: float = Field(
        30.0, alias="SESSION_REQUEST_TIMEOUT_SECONDS"
    )
    sign_in_path: str = Field(
        "/login",
        alias="SESSION_SIGN_IN_PATH",
        description="Where the UI should send users once their session ends.",
    )
    profile_cache_path: str = Field(
        "~/.cache/invitation-builder/profile.db",
        alias="SESSION_PROFILE_CACHE_PATH",
        description="SQLite file holding the non-sensitive profile summary.",
    )
    endpoints: EndpointSettings = Field(default_factory=EndpointSettings)
    renewal: RenewalSettings = Field(default_factory=RenewalSettings)

    @field_validator("request_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @property
    def base_url(self) -> str:
        """API base URL without a trailing slash."""
        return str(self.api_base_url).rstrip("/")


@lru_cache()
def get_settings() -> SessionSettings:
    """Return a cached settings object."""
    return SessionSettings()  # type: ignore[call-arg]


__all__ = [
    "EndpointSettings",
    "RenewalSettings",
    "SessionSettings",
    "get_settings",
]
