"""Notification dispatcher.

Single entry point for every delivery channel. Each public method records
exactly one delivery outcome per attempt, whether it succeeds or fails.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from notification_service.core.exceptions import (
    MailDeliveryFailedError,
    PushDeliveryFailedError,
    RealtimeUnavailableError,
)
from notification_service.infra.metrics.tracking import DeliveryChannel, delivery_attempt
from notification_service.infra.push import PushMessage, PushTargetKind

if TYPE_CHECKING:
    from notification_service.features.notifications.schemas import (
        SendEmailRequest,
        SendPushRequest,
    )
    from notification_service.infra.email import EmailResult, EmailService
    from notification_service.infra.push import BasePushClient, PushReport
    from notification_service.infra.realtime import ConnectionHub

logger = logging.getLogger(__name__)

TOAST_EVENT = "new_toast"
METRICS_UPDATE_EVENT = "metrics_update"
METRICS_DASHBOARD_ROOM = "metrics_dashboard"


def push_classification(request: SendPushRequest) -> str:
    """Label used for push outcomes: ``device``, ``multicast`` or ``topic:<name>``."""
    if request.token is not None:
        return PushTargetKind.DEVICE.value
    if request.tokens is not None:
        return PushTargetKind.MULTICAST.value
    return f"{PushTargetKind.TOPIC.value}:{request.topic}"


class NotificationDispatcher:
    """Dispatch façade over the mail adapter, push client and connection hub.

    Example:
        dispatcher = NotificationDispatcher(email_service, push_client, hub)
        result = await dispatcher.send_mail(SendEmailRequest(...))
        recipients = await dispatcher.emit_to_room("user-42", "new_toast", {...})
    """

    def __init__(
        self,
        email: EmailService,
        push: BasePushClient,
        hub: ConnectionHub,
    ) -> None:
        self.email = email
        self.push = push
        self.hub = hub

    # ──────────────────────────────────────────────────────────────
    # E-mail
    # ──────────────────────────────────────────────────────────────

    async def send_mail(self, request: SendEmailRequest) -> EmailResult:
        """Render and send a templated e-mail.

        Raises:
            MailDeliveryFailedError: If the mail adapter produced no receipt.
            TemplateNotFoundError: If the template file is missing.
            TemplateRenderError: If the template fails to render.
        """
        logger.info(
            "Sending email",
            extra={"to": request.to, "template": request.template},
        )

        with delivery_attempt(DeliveryChannel.EMAIL, request.template) as attempt:
            result = await self.email.send_template(
                to=request.to,
                subject=request.subject,
                template=request.template,
                context=request.context,
            )
            if not result.success:
                raise MailDeliveryFailedError(
                    "Failed to send email",
                    details={"template": request.template, "reason": result.error_code},
                )
            attempt.succeeded()

        return result

    # ──────────────────────────────────────────────────────────────
    # Push
    # ──────────────────────────────────────────────────────────────

    async def send_push(self, request: SendPushRequest) -> PushReport:
        """Send a push notification to a device, several devices or a topic.

        Raises:
            PushDeliveryFailedError: If no delivery succeeded.
        """
        message = PushMessage(title=request.title, body=request.body, data=request.data or {})
        classification = push_classification(request)

        logger.info(
            "Sending push notification",
            extra={
                "target": classification,
                "token_count": len(request.tokens) if request.tokens else 1,
            },
        )

        with delivery_attempt(DeliveryChannel.PUSH, classification) as attempt:
            if request.token is not None:
                report = await self.push.send_to_device(request.token, message)
            elif request.tokens is not None:
                report = await self.push.send_multicast(request.tokens, message)
            else:
                report = await self.push.send_to_topic(request.topic, message)

            if not report.delivered:
                raise PushDeliveryFailedError(
                    "Failed to send push notification",
                    details={
                        "successCount": report.success_count,
                        "failureCount": report.failure_count,
                    },
                )
            attempt.succeeded()

        return report

    # ──────────────────────────────────────────────────────────────
    # Real-time events
    # ──────────────────────────────────────────────────────────────

    def _require_hub(self) -> ConnectionHub:
        if not self.hub.is_running:
            raise RealtimeUnavailableError("Connection hub is not running")
        return self.hub

    async def broadcast(self, event: str, payload: Any) -> int:
        """Schedule ``event`` for every connected peer.

        Returns:
            Number of peers the event was queued for.
        """
        with delivery_attempt(DeliveryChannel.SOCKET, f"broadcast:{event}") as attempt:
            recipients = await self._require_hub().broadcast(event, payload)
            attempt.succeeded()

        logger.info("Broadcast event", extra={"event": event, "recipients": recipients})
        return recipients

    async def emit_to_room(self, room: str, event: str, payload: Any) -> int:
        """Schedule ``event`` for every member of ``room``.

        Returns:
            Number of peers the event was queued for (0 for an empty room).
        """
        with delivery_attempt(DeliveryChannel.SOCKET, f"emit:{event}") as attempt:
            recipients = await self._require_hub().emit_to_room(room, event, payload)
            attempt.succeeded()

        logger.info(
            "Emitted event to room",
            extra={"room": room, "event": event, "recipients": recipients},
        )
        return recipients

    async def send_toast_to_user(self, user_id: str, toast: dict[str, Any]) -> int:
        """Show a toast on every connection that joined the user's room."""
        return await self.emit_to_room(user_id, TOAST_EVENT, toast)

    async def send_metrics_update(self, data: Any, user_id: str | None = None) -> int:
        """Push fresh metrics to one user, or to the shared dashboard room."""
        room = user_id or METRICS_DASHBOARD_ROOM
        return await self.emit_to_room(room, METRICS_UPDATE_EVENT, data)
