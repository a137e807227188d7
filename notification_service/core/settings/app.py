"""Application settings for FastAPI configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["development", "staging", "production", "test"]

# Environments in which unexpected error details may be returned to callers
DEVELOPMENT_ENVIRONMENTS: frozenset[str] = frozenset({"development", "test"})


class AppSettings(BaseSettings):
    """FastAPI application settings.

    Environment variables use APP_ prefix.
    Example: APP_DEBUG=true, APP_ENVIRONMENT=production
    """

    # Service identity
    service_name: str = Field(
        default="notification-service",
        min_length=1,
        max_length=100,
        pattern=r"^[a-z0-9]+(-[a-z0-9]+)*$",
        description="Service name for logging/tracing (lowercase, hyphens allowed)",
    )
    title: str = Field(
        default="Notification Service API",
        min_length=1,
        max_length=200,
        description="API title displayed in documentation",
    )
    description: str = Field(
        default="Dispatches e-mail, push and real-time notifications for internal services",
        description="API description (supports Markdown)",
    )
    version: str = Field(
        default="1.0.0",
        min_length=1,
        max_length=50,
        pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9]+)?$",
        description="API version (semver format)",
    )
    environment: Environment = Field(
        default="development", description="Environment: development|staging|production|test",
    )
    api_prefix: str = Field(
        default="/api/v1",
        min_length=1,
        max_length=255,
        pattern=r"^/.*$",
        description="Base URL prefix for API routes (e.g., /api/v1)",
    )

    # FastAPI toggles
    debug: bool = Field(default=False, description="Enable debug mode")
    docs_url: str | None = Field(default="/docs", description="Swagger UI path")
    redoc_url: str | None = Field(default="/redoc", description="ReDoc path")
    openapi_url: str | None = Field(default="/openapi.json", description="OpenAPI schema path")
    disable_docs: bool = Field(default=False, description="Disable all API documentation")
    root_path: str = Field(
        default="",
        description="Root path for proxy/ingress (set when behind a reverse proxy)",
    )

    # Server configuration
    host: str = Field(
        default="0.0.0.0", min_length=1, max_length=255, description="Server bind host",
    )
    port: int = Field(default=3000, ge=1, le=65535, description="Server port")

    # CORS configuration
    cors_origins: list[str] = Field(
        default_factory=list,
        description="Allowed CORS origins (JSON array)",
    )
    cors_allow_credentials: bool = Field(default=True, description="Allow credentials")
    cors_allow_methods: list[str] = Field(
        default_factory=lambda: ["*"], description="Allowed HTTP methods",
    )
    cors_allow_headers: list[str] = Field(
        default_factory=lambda: ["*"], description="Allowed headers",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @model_validator(mode="after")
    def validate_production_settings(self) -> AppSettings:
        """Refuse debug mode in production."""
        if self.environment == "production" and self.debug:
            msg = "debug must be disabled when environment is production"
            raise ValueError(msg)
        return self

    @property
    def docs_enabled(self) -> bool:
        """Check if API documentation should be served."""
        return not self.disable_docs

    @property
    def exposes_error_details(self) -> bool:
        """Whether unexpected error messages may be returned to callers."""
        return self.debug or self.environment in DEVELOPMENT_ENVIRONMENTS

    def get_docs_url(self) -> str | None:
        return self.docs_url if self.docs_enabled else None

    def get_redoc_url(self) -> str | None:
        return self.redoc_url if self.docs_enabled else None

    def get_openapi_url(self) -> str | None:
        return self.openapi_url if self.docs_enabled else None
