"""Unit tests for email rendering and the console client."""

from __future__ import annotations

import pytest

from notification_service.core.exceptions import TemplateNotFoundError
from notification_service.core.settings import EmailSettings
from notification_service.infra.email import EmailService
from notification_service.infra.email.client import ConsoleClient, EmailClient
from notification_service.infra.email.schemas import EmailMessage, EmailStatus
from notification_service.infra.email.templates import EmailTemplateRenderer


@pytest.fixture
def settings() -> EmailSettings:
    return EmailSettings(backend="console", from_email="noreply@example.com", from_name="Acme")


class TestEmailTemplateRenderer:
    """Tests for Jinja2 template rendering."""

    def test_renders_html_and_derived_text(self, settings):
        renderer = EmailTemplateRenderer(settings)

        html, text = renderer.render(
            "accountConfirmation",
            {"name": "Ada", "confirmation_link": "https://example.com/confirm/abc"},
        )

        assert "Hello Ada" in html
        assert 'href="https://example.com/confirm/abc"' in html
        assert "<p>" not in text
        assert "Confirm my account (https://example.com/confirm/abc)" in text

    def test_context_is_autoescaped(self, settings):
        renderer = EmailTemplateRenderer(settings)

        html, _ = renderer.render(
            "accountConfirmation", {"name": "<script>", "confirmation_link": "#"}
        )

        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_missing_template_raises(self, settings):
        renderer = EmailTemplateRenderer(settings)

        with pytest.raises(TemplateNotFoundError) as exc_info:
            renderer.render("doesNotExist")

        assert exc_info.value.details == {"template": "doesNotExist"}

    def test_lists_known_templates(self, settings):
        renderer = EmailTemplateRenderer(settings)

        templates = renderer.list_templates()

        assert {"accountConfirmation", "passwordReset", "invoice"} <= set(templates)
        assert renderer.template_exists("invoice")


class TestConsoleClient:
    """Tests for the logging email backend."""

    async def test_send_reports_success(self, settings):
        client = ConsoleClient(settings)
        message = EmailMessage(to=["user@example.com"], subject="Hi", body_text="Hello")

        result = await client.send(message)

        assert result.success
        assert result.status == EmailStatus.SENT
        assert result.recipients_accepted == ["user@example.com"]
        assert result.message_id.startswith("console-")

    def test_message_requires_a_body(self):
        with pytest.raises(ValueError):
            EmailMessage(to=["user@example.com"], subject="Hi")

    def test_unknown_backend_is_rejected(self, settings):
        with pytest.raises(ValueError):
            EmailClient(settings.model_copy(update={"backend": "carrier-pigeon"}))


class TestEmailService:
    """Tests for templated sending."""

    async def test_send_template_renders_and_sends(self, settings):
        service = EmailService.from_settings(settings)

        result = await service.send_template(
            to="user@example.com",
            subject="Reset your password",
            template="passwordReset",
            context={"name": "Ada", "reset_link": "https://example.com/reset"},
        )

        assert result.success
        assert service.backend_name == "console"
        assert await service.health_check()

    async def test_unknown_template_raises_before_sending(self, settings):
        service = EmailService.from_settings(settings)

        with pytest.raises(TemplateNotFoundError):
            await service.send_template(to="user@example.com", subject="Hi", template="nope")

    async def test_context_keys_may_shadow_argument_names(self, settings):
        """Caller context is data, so keys like template_name are passed through."""
        service = EmailService.from_settings(settings)

        result = await service.send_template(
            to="user@example.com",
            subject="Confirm",
            template="accountConfirmation",
            context={"template_name": "x", "context": "y", "name": "Ada", "confirmation_link": "#"},
        )

        assert result.success
