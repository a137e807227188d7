"""Email delivery settings for SMTP configuration.

Environment variables use EMAIL_ prefix.
Example: EMAIL_BACKEND=smtp, EMAIL_SMTP_HOST=smtp.example.com
"""

from __future__ import annotations

from typing import Literal

from pydantic import EmailStr, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmailSettings(BaseSettings):
    """Email service configuration.

    Supports two backends:
    - smtp: Standard SMTP/SMTPS delivery
    - console: Log emails instead of sending them (development)
    """

    backend: Literal["smtp", "console"] = Field(
        default="smtp",
        description="Email backend: smtp (production), console (dev)",
    )

    # SMTP Configuration
    smtp_host: str = Field(
        default="localhost",
        min_length=1,
        max_length=255,
        description="SMTP server hostname",
    )
    smtp_port: int = Field(
        default=587,
        ge=1,
        le=65535,
        description="SMTP server port (587 for TLS, 465 for SSL, 25 for plain)",
    )
    smtp_username: str | None = Field(
        default=None,
        max_length=255,
        description="SMTP authentication username",
    )
    smtp_password: SecretStr | None = Field(
        default=None,
        description="SMTP authentication password",
    )

    # TLS/SSL Configuration
    use_tls: bool = Field(
        default=True,
        description="Use STARTTLS (port 587). Set False for SSL (port 465) or plain (port 25)",
    )
    use_ssl: bool = Field(
        default=False,
        description="Use implicit SSL/TLS (port 465). Mutually exclusive with use_tls",
    )
    validate_certs: bool = Field(
        default=True,
        description="Validate SSL/TLS certificates",
    )
    timeout: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="SMTP connection timeout in seconds",
    )
    health_check_timeout: float = Field(
        default=5.0,
        ge=0.5,
        le=60.0,
        description="Timeout for the SMTP reachability probe used by /health",
    )

    # Sender Configuration
    from_email: EmailStr = Field(
        default="noreply@example.com",
        description="Sender email address",
    )
    from_name: str = Field(
        default="Notification Service",
        max_length=100,
        description="Sender display name",
    )

    template_dir: str = Field(
        default="templates/email",
        description="Directory containing email templates (relative to package root)",
    )

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @model_validator(mode="after")
    def validate_tls_ssl_exclusive(self) -> EmailSettings:
        """Ensure TLS and SSL are mutually exclusive."""
        if self.use_tls and self.use_ssl:
            msg = "use_tls and use_ssl are mutually exclusive"
            raise ValueError(msg)
        return self

    @model_validator(mode="after")
    def validate_smtp_auth(self) -> EmailSettings:
        """Require username and password together."""
        has_username = self.smtp_username is not None
        has_password = self.smtp_password is not None
        if has_username != has_password:
            msg = "Both smtp_username and smtp_password must be provided together"
            raise ValueError(msg)
        return self

    @property
    def requires_auth(self) -> bool:
        """Check if SMTP authentication is configured."""
        return self.smtp_username is not None and self.smtp_password is not None

    @property
    def sender(self) -> str:
        """Formatted From header value."""
        return f'"{self.from_name}" <{self.from_email}>'

    def get_smtp_url(self) -> str:
        """Get SMTP URL for debugging (without password)."""
        scheme = "smtps" if self.use_ssl else "smtp"
        auth = f"{self.smtp_username}@" if self.smtp_username else ""
        return f"{scheme}://{auth}{self.smtp_host}:{self.smtp_port}"
