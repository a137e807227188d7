"""Pydantic schemas for the e-mail and push dispatch endpoints."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

EmailTemplateName = Literal["accountConfirmation", "passwordReset", "invoice"]

MAX_MULTICAST_TOKENS = 500


# ============================================================================
# E-mail
# ============================================================================


class SendEmailRequest(BaseModel):
    """Payload for sending a templated transactional e-mail."""

    to: EmailStr = Field(..., description="Recipient address")
    subject: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Subject line",
    )
    template: EmailTemplateName = Field(
        ...,
        description="Template to render",
    )
    context: dict[str, Any] = Field(
        default_factory=dict,
        description="Variables injected into the template",
    )


# ============================================================================
# Push
# ============================================================================


class SendPushRequest(BaseModel):
    """Payload for sending a push notification.

    Exactly one target must be given: ``token`` (one device), ``tokens``
    (multicast) or ``topic``.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    token: str | None = Field(
        default=None,
        min_length=1,
        max_length=4096,
        description="Registration token of one device",
    )
    tokens: list[str] | None = Field(
        default=None,
        min_length=1,
        max_length=MAX_MULTICAST_TOKENS,
        description="Registration tokens for a multicast send",
    )
    topic: str | None = Field(
        default=None,
        min_length=1,
        max_length=900,
        pattern=r"^[a-zA-Z0-9\-_.~%]+$",
        description="Topic name",
    )
    title: str = Field(..., min_length=1, max_length=500, description="Notification title")
    body: str = Field(..., min_length=1, max_length=4000, description="Notification body")
    data: dict[str, str] | None = Field(
        default=None,
        description="String key/value data delivered with the notification",
    )

    @model_validator(mode="after")
    def validate_single_target(self) -> SendPushRequest:
        """Require exactly one of token, tokens and topic."""
        targets = [t for t in (self.token, self.tokens, self.topic) if t is not None]
        if len(targets) != 1:
            msg = "Exactly one of token, tokens or topic must be provided"
            raise ValueError(msg)
        if self.tokens is not None and any(not t for t in self.tokens):
            msg = "tokens must not contain empty values"
            raise ValueError(msg)
        return self
