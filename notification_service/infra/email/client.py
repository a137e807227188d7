"""Email client for SMTP and console backends.

Provides low-level email sending with two backends:
- SMTP: Production email delivery via aiosmtplib
- Console: Log emails instead of sending them (development, tests)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from datetime import UTC, datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
import logging
import ssl
from typing import TYPE_CHECKING
import uuid

import aiosmtplib

from .schemas import EmailMessage, EmailResult, EmailStatus

if TYPE_CHECKING:
    from notification_service.core.settings.email import EmailSettings

logger = logging.getLogger(__name__)


class BaseEmailClient(ABC):
    """Abstract base class for email clients."""

    backend_name: str = "base"

    @abstractmethod
    async def send(self, message: EmailMessage) -> EmailResult:
        """Send an email message and report the outcome."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the email backend is reachable."""
        ...

    async def close(self) -> None:
        """Release backend resources."""
        return None


class SMTPClient(BaseEmailClient):
    """SMTP email client using aiosmtplib.

    A connection is opened per send. Supports STARTTLS, implicit TLS and
    authentication.

    Example:
        client = SMTPClient(settings)
        result = await client.send(message)
    """

    backend_name = "smtp"

    def __init__(self, settings: EmailSettings) -> None:
        self.settings = settings

        logger.info(
            "SMTP client initialized",
            extra={
                "smtp_url": settings.get_smtp_url(),
                "use_tls": settings.use_tls,
                "use_ssl": settings.use_ssl,
            },
        )

    def _tls_context(self) -> ssl.SSLContext | None:
        if not (self.settings.use_tls or self.settings.use_ssl):
            return None
        context = ssl.create_default_context()
        if not self.settings.validate_certs:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def _smtp(self, timeout: float) -> aiosmtplib.SMTP:
        return aiosmtplib.SMTP(
            hostname=self.settings.smtp_host,
            port=self.settings.smtp_port,
            use_tls=self.settings.use_ssl,  # Implicit TLS
            start_tls=self.settings.use_tls,  # STARTTLS
            tls_context=self._tls_context(),
            timeout=timeout,
        )

    async def health_check(self) -> bool:
        """Connect to the relay and quit immediately."""
        smtp = self._smtp(self.settings.health_check_timeout)
        try:
            await smtp.connect()
            await smtp.quit()
        except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as e:
            logger.warning("SMTP health check failed", extra={"error": str(e)})
            return False
        return True

    async def send(self, message: EmailMessage) -> EmailResult:
        """Send email via SMTP.

        Transport failures are reported in the returned result rather than
        raised.
        """
        mime_message = self._build_mime_message(message)
        message_id = mime_message["Message-ID"]

        try:
            async with self._smtp(self.settings.timeout) as smtp:
                if self.settings.requires_auth:
                    await smtp.login(
                        self.settings.smtp_username,
                        self.settings.smtp_password.get_secret_value(),
                    )
                errors, _response = await smtp.send_message(mime_message)
        except aiosmtplib.SMTPAuthenticationError as e:
            logger.error("SMTP authentication failed", extra={"error": str(e)})
            return EmailResult.failure_result(error=str(e), error_code="AUTH_FAILED")
        except aiosmtplib.SMTPRecipientsRefused as e:
            logger.error("All recipients refused", extra={"error": str(e)})
            return EmailResult.failure_result(error=str(e), error_code="RECIPIENTS_REFUSED")
        except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as e:
            logger.error("SMTP error", extra={"error": str(e), "smtp_url": self.settings.get_smtp_url()})
            return EmailResult.failure_result(error=str(e), error_code="SMTP_ERROR")

        recipients_rejected = list(errors.keys()) if errors else []
        recipients_accepted = [r for r in message.to if r not in recipients_rejected]

        if recipients_rejected:
            logger.warning(
                "Some recipients rejected",
                extra={"message_id": message_id, "rejected": recipients_rejected},
            )

        logger.info(
            "Email sent successfully",
            extra={
                "message_id": message_id,
                "recipients": len(recipients_accepted),
                "template": message.template_name,
            },
        )

        return EmailResult(
            success=len(recipients_accepted) > 0,
            message_id=message_id,
            status=EmailStatus.SENT if recipients_accepted else EmailStatus.FAILED,
            recipients_accepted=recipients_accepted,
            recipients_rejected=recipients_rejected,
            backend=self.backend_name,
        )

    def _build_mime_message(self, message: EmailMessage) -> MIMEMultipart:
        mime_msg = MIMEMultipart("alternative")

        mime_msg["From"] = self.settings.sender
        mime_msg["To"] = ", ".join(message.to)
        mime_msg["Subject"] = message.subject
        mime_msg["Message-ID"] = f"<{uuid.uuid4()}@{self.settings.smtp_host}>"
        mime_msg["Date"] = datetime.now(UTC).strftime("%a, %d %b %Y %H:%M:%S +0000")

        for key, value in message.headers.items():
            mime_msg[key] = value

        if message.body_text:
            mime_msg.attach(MIMEText(message.body_text, "plain", "utf-8"))
        if message.body_html:
            mime_msg.attach(MIMEText(message.body_html, "html", "utf-8"))

        return mime_msg


class ConsoleClient(BaseEmailClient):
    """Console email client for development.

    Logs emails instead of sending them.
    """

    backend_name = "console"

    def __init__(self, settings: EmailSettings) -> None:
        self.settings = settings
        logger.info("Console email client initialized (development mode)")

    async def health_check(self) -> bool:
        return True

    async def send(self, message: EmailMessage) -> EmailResult:
        message_id = f"console-{uuid.uuid4()}"

        logger.info(
            "Email logged to console",
            extra={
                "message_id": message_id,
                "from": self.settings.sender,
                "to": list(message.to),
                "subject": message.subject,
                "template": message.template_name,
                "body_text": (message.body_text or "")[:500],
            },
        )

        return EmailResult.success_result(
            message_id=message_id,
            recipients=list(message.to),
            backend=self.backend_name,
        )


class EmailClient:
    """Email client factory that delegates to the configured backend.

    Example:
        client = EmailClient(settings)
        result = await client.send(message)
    """

    def __init__(self, settings: EmailSettings) -> None:
        self.settings = settings
        self._backend: BaseEmailClient

        if settings.backend == "smtp":
            self._backend = SMTPClient(settings)
        elif settings.backend == "console":
            self._backend = ConsoleClient(settings)
        else:
            raise ValueError(f"Unknown email backend: {settings.backend}")

    @property
    def backend_name(self) -> str:
        return self._backend.backend_name

    async def send(self, message: EmailMessage) -> EmailResult:
        return await self._backend.send(message)

    async def health_check(self) -> bool:
        return await self._backend.health_check()

    async def close(self) -> None:
        await self._backend.close()
