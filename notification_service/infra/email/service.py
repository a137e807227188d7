"""High-level email service with template support.

Renders one of the configured templates and hands the result to the
backend client.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .client import EmailClient
from .schemas import EmailMessage, EmailResult
from .templates import EmailTemplateRenderer

if TYPE_CHECKING:
    from notification_service.core.settings.email import EmailSettings

logger = logging.getLogger(__name__)


class EmailService:
    """Mail adapter used by the dispatcher.

    Example:
        service = EmailService.from_settings(settings)
        result = await service.send_template(
            to="user@example.com",
            subject="Your invoice",
            template="invoice",
            context={"name": "Ada", "amount": "42.00"},
        )
    """

    def __init__(
        self,
        client: EmailClient,
        renderer: EmailTemplateRenderer,
        settings: EmailSettings,
    ) -> None:
        self.client = client
        self.renderer = renderer
        self.settings = settings

        logger.info(
            "Email service initialized",
            extra={"backend": settings.backend},
        )

    @classmethod
    def from_settings(cls, settings: EmailSettings) -> EmailService:
        return cls(EmailClient(settings), EmailTemplateRenderer(settings), settings)

    @property
    def backend_name(self) -> str:
        return self.client.backend_name

    async def send_template(
        self,
        to: str,
        subject: str,
        template: str,
        context: dict[str, Any] | None = None,
    ) -> EmailResult:
        """Render ``template`` with ``context`` and send it to ``to``.

        Raises:
            TemplateNotFoundError: If the template doesn't exist.
            TemplateRenderError: If the template fails to render.
        """
        full_context = {
            "email": to,
            "subject": subject,
            "service_name": self.settings.from_name,
            **(context or {}),
        }
        body_html, body_text = self.renderer.render(template, full_context)

        message = EmailMessage(
            to=[to],
            subject=subject,
            body_html=body_html,
            body_text=body_text,
            template_name=template,
        )
        return await self.client.send(message)

    async def health_check(self) -> bool:
        return await self.client.health_check()

    async def close(self) -> None:
        await self.client.close()
