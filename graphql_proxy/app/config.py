"""
Configuration module for the GraphQL proxy.

This module uses Pydantic Settings to load and validate environment variables
for the upstream endpoints, the outbound HTTP client, the listener and CORS.

Every setting has a default, so the proxy starts with no environment at all.
Values are loaded from a .env file or the system environment.
"""

from functools import lru_cache
from typing import List
from urllib.parse import urlsplit

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_AUTH_URL = "https://platform.zone01.gr/api/auth/signin"
DEFAULT_GRAPHQL_URL = "https://platform.zone01.gr/api/graphql-engine/v1/graphql"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    # =========================================================================
    # Upstream Configuration
    # =========================================================================

    UPSTREAM_AUTH_URL: HttpUrl = Field(
        default=DEFAULT_AUTH_URL,
        description="Upstream sign-in endpoint that /api/auth/signin forwards to",
    )

    UPSTREAM_GRAPHQL_URL: HttpUrl = Field(
        default=DEFAULT_GRAPHQL_URL,
        description="Upstream GraphQL endpoint that /api/graphql forwards to",
    )

    UPSTREAM_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Total timeout for one outbound request",
        gt=0,
        le=300,
    )

    UPSTREAM_CONNECT_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Connect timeout for one outbound request",
        gt=0,
        le=300,
    )

    # =========================================================================
    # Proxy Server Configuration
    # =========================================================================

    PROXY_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the proxy server",
    )

    PROXY_PORT: int = Field(
        default=8080,
        description="Port to bind the proxy server",
        ge=1,
        le=65535,
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # =========================================================================
    # CORS Configuration
    # =========================================================================

    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins ('*' for any)",
    )

    CORS_ALLOW_METHODS: str = Field(
        default="GET, POST, OPTIONS",
        description="Value of the Access-Control-Allow-Methods header",
    )

    CORS_ALLOW_HEADERS: str = Field(
        default="Content-Type, Authorization",
        description="Value of the Access-Control-Allow-Headers header",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def allowed_origins_list(self) -> List[str]:
        """
        Parse and return ALLOWED_ORIGINS as a list.

        Returns:
            List of allowed origins, or empty list if not configured.
        """
        if not self.ALLOWED_ORIGINS:
            return []

        return [
            origin.strip()
            for origin in self.ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]

    @property
    def upstream_auth_url_str(self) -> str:
        """Upstream sign-in URL as a string (for HTTP client usage)."""
        return str(self.UPSTREAM_AUTH_URL)

    @property
    def upstream_graphql_url_str(self) -> str:
        """Upstream GraphQL URL as a string (for HTTP client usage)."""
        return str(self.UPSTREAM_GRAPHQL_URL)

    @property
    def upstream_origin(self) -> str:
        """
        Scheme and host of the GraphQL upstream, used in the startup banner.

        Returns:
            Origin string such as "https://platform.zone01.gr".
        """
        parts = urlsplit(self.upstream_graphql_url_str)
        return f"{parts.scheme}://{parts.netloc}"

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate that LOG_LEVEL names a standard logging level.

        Raises:
            ValueError: If the level is not recognised
        """
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

        level = v.strip().upper()
        if level not in allowed_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {allowed_levels}, got: {v}"
            )

        return level

    @field_validator("CORS_ALLOW_METHODS", "CORS_ALLOW_HEADERS")
    @classmethod
    def validate_header_list(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("CORS header values must not be empty")
        return v.strip()


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    This function is cached so that the settings are loaded only once
    during the application lifecycle.

    Returns:
        Settings instance with all configuration loaded and validated.

    Raises:
        ValidationError: If an environment variable is invalid.

    Example:
        >>> from graphql_proxy.app.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.UPSTREAM_GRAPHQL_URL)
    """
    return Settings()


# =============================================================================
# Configuration Helpers
# =============================================================================

def validate_configuration(settings: Settings) -> dict:
    """
    Check the loaded settings and return a list of warnings.

    Nothing here is fatal; the report's warnings are logged at startup.

    Returns:
        Dictionary with the warnings and the parsed origin list.

    Example:
        >>> status = validate_configuration(get_settings())
        >>> status["warnings"]
        []
    """
    warnings = []

    for name, url in (
        ("UPSTREAM_AUTH_URL", settings.upstream_auth_url_str),
        ("UPSTREAM_GRAPHQL_URL", settings.upstream_graphql_url_str),
    ):
        if url.startswith("http://"):
            warnings.append(f"{name} uses plain http; Authorization headers are sent unencrypted")

    if settings.UPSTREAM_CONNECT_TIMEOUT_SECONDS > settings.UPSTREAM_TIMEOUT_SECONDS:
        warnings.append("UPSTREAM_CONNECT_TIMEOUT_SECONDS exceeds UPSTREAM_TIMEOUT_SECONDS")

    if not settings.allowed_origins_list:
        warnings.append("ALLOWED_ORIGINS is empty; browsers will reject cross-origin calls")

    return {
        "warnings": warnings,
        "allowed_origins": settings.allowed_origins_list,
    }
