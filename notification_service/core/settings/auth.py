"""Service-to-service authentication settings.

Environment variables use AUTH_ prefix.
Example: AUTH_JWT_SECRET=change-me, AUTH_ALLOWED_SERVICES=billing,accounts
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

WILDCARD_PERMISSION = "*"


class AuthSettings(BaseSettings):
    """JWT verification and caller allow-list configuration.

    Tokens are signed by calling services with a shared secret. The decoded
    caller identifier (``serviceId`` claim, falling back to ``iss``) must be
    present in ``allowed_services``.
    """

    jwt_secret: SecretStr = Field(
        default=SecretStr("change-me"),
        description="Shared secret used to verify service tokens",
    )
    jwt_algorithms: list[str] = Field(
        default_factory=lambda: ["HS256"],
        min_length=1,
        description="Accepted JWT signing algorithms",
    )
    allowed_services: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Caller identifiers allowed to use the service (comma-separated)",
    )
    leeway_seconds: float = Field(
        default=0.0,
        ge=0.0,
        le=300.0,
        description="Clock skew tolerance when checking exp/nbf claims",
    )
    audience: str | None = Field(
        default=None,
        description="Expected aud claim. When unset the audience is not checked",
    )
    issuer: str | None = Field(
        default=None,
        description="Expected iss claim. When unset the issuer is not checked",
    )
    token_ttl_seconds: int = Field(
        default=3600,
        ge=60,
        le=86400,
        description="Lifetime of tokens minted by the issue-token command",
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @field_validator("allowed_services", mode="before")
    @classmethod
    def split_allowed_services(cls, v: Any) -> Any:
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    def is_allowed(self, service_id: str | None) -> bool:
        """Check whether a caller identifier is allow-listed."""
        return bool(service_id) and service_id in self.allowed_services
