"""Email delivery infrastructure.

Basic Usage:
    from notification_service.infra.email import EmailService

    service = EmailService.from_settings(get_email_settings())
    result = await service.send_template(
        to="user@example.com",
        subject="Confirm your account",
        template="accountConfirmation",
        context={"name": "Ada", "confirmation_link": "https://..."},
    )
"""

from __future__ import annotations

from .client import BaseEmailClient, ConsoleClient, EmailClient, SMTPClient
from .schemas import EmailMessage, EmailResult, EmailStatus
from .service import EmailService
from .templates import EmailTemplateRenderer

__all__ = [
    "BaseEmailClient",
    "ConsoleClient",
    "EmailClient",
    "EmailMessage",
    "EmailResult",
    "EmailService",
    "EmailStatus",
    "EmailTemplateRenderer",
    "SMTPClient",
]
