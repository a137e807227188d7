"""Email schemas and data models.

Defines the structure for outgoing messages and delivery results.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, EmailStr, Field


class EmailStatus(StrEnum):
    """Email delivery status."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class EmailMessage(BaseModel):
    """Email message model.

    Represents a rendered message ready for sending.

    Example:
        message = EmailMessage(
            to=["user@example.com"],
            subject="Confirm your account",
            body_html="<p>Hello</p>",
            template_name="accountConfirmation",
        )
    """

    to: list[EmailStr] = Field(
        min_length=1,
        description="Primary recipients",
    )
    subject: str = Field(
        min_length=1,
        max_length=500,
        description="Email subject line",
    )
    body_text: str | None = Field(
        default=None,
        description="Plain text body",
    )
    body_html: str | None = Field(
        default=None,
        description="HTML body",
    )
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Additional email headers",
    )
    template_name: str | None = Field(
        default=None,
        description="Template name used to generate this email",
    )

    def model_post_init(self, __context: Any) -> None:
        """Validate that at least one body type is provided."""
        if self.body_text is None and self.body_html is None:
            msg = "Either body_text or body_html must be provided"
            raise ValueError(msg)


class EmailResult(BaseModel):
    """Result of an email send operation.

    Example:
        result = await client.send(message)
        if result.success:
            logger.info("Email sent", extra={"message_id": result.message_id})
    """

    success: bool = Field(
        description="Whether the email was sent successfully",
    )
    message_id: str | None = Field(
        default=None,
        description="Message ID assigned to the outgoing message",
    )
    status: EmailStatus = Field(
        default=EmailStatus.PENDING,
        description="Delivery status",
    )
    error: str | None = Field(
        default=None,
        description="Error message if failed",
    )
    error_code: str | None = Field(
        default=None,
        description="Error code for programmatic handling",
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the operation completed",
    )
    recipients_accepted: list[str] = Field(
        default_factory=list,
        description="Recipients accepted by the server",
    )
    recipients_rejected: list[str] = Field(
        default_factory=list,
        description="Recipients rejected by the server",
    )
    backend: str = Field(
        default="smtp",
        description="Backend used for sending",
    )

    @classmethod
    def success_result(
        cls,
        message_id: str | None = None,
        recipients: list[str] | None = None,
        backend: str = "smtp",
    ) -> EmailResult:
        """Create a success result."""
        return cls(
            success=True,
            message_id=message_id,
            status=EmailStatus.SENT,
            recipients_accepted=recipients or [],
            backend=backend,
        )

    @classmethod
    def failure_result(
        cls,
        error: str,
        error_code: str | None = None,
        backend: str = "smtp",
    ) -> EmailResult:
        """Create a failure result."""
        return cls(
            success=False,
            status=EmailStatus.FAILED,
            error=error,
            error_code=error_code,
            backend=backend,
        )
