"""Email template rendering with Jinja2.

Templates live under the package's ``templates/email`` directory as
``<name>.html`` with an optional ``<name>.txt`` companion. When only the HTML
version exists the plain text body is derived from it.
"""

from __future__ import annotations

from html import unescape
import logging
from pathlib import Path
import re
from typing import TYPE_CHECKING, Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    TemplateError,
    TemplateNotFound,
    select_autoescape,
)

from notification_service.core.exceptions import TemplateNotFoundError, TemplateRenderError

if TYPE_CHECKING:
    from notification_service.core.settings.email import EmailSettings

logger = logging.getLogger(__name__)

PACKAGE_ROOT = Path(__file__).parent.parent.parent


class EmailTemplateRenderer:
    """Jinja2-based email template renderer.

    Example:
        renderer = EmailTemplateRenderer(settings)
        html, text = renderer.render("passwordReset", {"name": "Ada", "resetLink": "https://..."})
    """

    def __init__(self, settings: EmailSettings) -> None:
        self.settings = settings

        template_dir = Path(settings.template_dir)
        self.template_dir = template_dir if template_dir.is_absolute() else PACKAGE_ROOT / template_dir

        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["html_to_text"] = self._html_to_text

        logger.info(
            "Email template renderer initialized",
            extra={"template_dir": str(self.template_dir)},
        )

    def render(
        self, template_name: str, context: dict[str, Any] | None = None
    ) -> tuple[str | None, str | None]:
        """Render an email template.

        Args:
            template_name: Name of the template (without extension).
            context: Variables to pass to the template.

        Returns:
            Tuple of (html_content, text_content).

        Raises:
            TemplateNotFoundError: If neither HTML nor text template exists.
            TemplateRenderError: If a template exists but fails to compile or render.
        """
        context = context or {}
        html_content = self._render_optional(f"{template_name}.html", context)
        text_content = self._render_optional(f"{template_name}.txt", context)

        if html_content and not text_content:
            text_content = self._html_to_text(html_content)

        if html_content is None and text_content is None:
            raise TemplateNotFoundError(
                f"Email template '{template_name}' not found",
                details={"template": template_name},
            )

        return html_content, text_content

    def _render_optional(self, filename: str, context: dict[str, Any]) -> str | None:
        try:
            template = self.env.get_template(filename)
        except TemplateNotFound:
            logger.debug("No template file found", extra={"template_file": filename})
            return None
        except TemplateError as e:
            raise TemplateRenderError(
                f"Failed to compile email template '{filename}'",
                details={"template": filename, "error": str(e)},
            ) from e

        try:
            return template.render(**context)
        except TemplateError as e:
            raise TemplateRenderError(
                f"Failed to render email template '{filename}'",
                details={"template": filename, "error": str(e)},
            ) from e

    def template_exists(self, template_name: str) -> bool:
        return template_name in self.list_templates()

    def list_templates(self) -> list[str]:
        """List available template names (without extensions)."""
        return sorted({Path(path).stem for path in self.env.list_templates()})

    @staticmethod
    def _html_to_text(html: str) -> str:
        """Convert HTML to plain text.

        Keeps link targets, turns headings, paragraphs and line breaks into
        newlines and normalizes whitespace.
        """
        html = re.sub(
            r'<a[^>]+href=["\']([^"\']+)["\'][^>]*>([^<]+)</a>',
            r"\2 (\1)",
            html,
            flags=re.IGNORECASE,
        )
        html = re.sub(r"<(style|title)[^>]*>.*?</\1>", "", html, flags=re.IGNORECASE | re.DOTALL)
        html = re.sub(r"</?(p|div|h[1-6]|tr|table)[^>]*>", "\n\n", html, flags=re.IGNORECASE)
        html = re.sub(r"<br\s*/?>", "\n", html, flags=re.IGNORECASE)
        html = re.sub(r"<li[^>]*>", "\n  * ", html, flags=re.IGNORECASE)
        html = re.sub(r"<[^>]+>", "", html)

        text = unescape(html)
        text = re.sub(r"[ \t]+", " ", text)
        text = re.sub(r"\n\s*\n", "\n\n", text)
        return text.strip()
