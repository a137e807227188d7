"""Push gateway clients.

Backends:
- gateway: HTTP v1 style gateway reached through httpx
- console: Log pushes instead of sending them (development, tests)
- disabled: Push is not initialized and every send reports a failure
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
import logging
from typing import TYPE_CHECKING, Any
import uuid

from google.auth.exceptions import GoogleAuthError
import httpx

from .credentials import GatewayTokenSource, load_gateway_credentials
from .schemas import PushMessage, PushReport, PushTargetKind

if TYPE_CHECKING:
    from google.auth.credentials import Credentials

    from notification_service.core.settings.push import PushSettings

logger = logging.getLogger(__name__)


class BasePushClient(ABC):
    """Abstract base class for push clients."""

    backend_name: str = "base"

    @property
    @abstractmethod
    def is_initialized(self) -> bool:
        """Whether the client can deliver at all."""
        ...

    @abstractmethod
    async def _send_one(self, target: dict[str, str], message: PushMessage) -> str:
        """Deliver one addressed message and return its gateway message id.

        Raises on failure.
        """
        ...

    def _not_initialized(self, target: PushTargetKind, count: int) -> PushReport:
        logger.warning(
            "Push client not initialized, cannot send",
            extra={"backend": self.backend_name, "target": target.value, "token_count": count},
        )
        return PushReport.failure(
            target,
            "Push client not initialized",
            count=count,
            backend=self.backend_name,
        )

    async def send_to_device(self, token: str, message: PushMessage) -> PushReport:
        """Send a notification to one device token."""
        if not self.is_initialized:
            return self._not_initialized(PushTargetKind.DEVICE, 1)

        try:
            message_id = await self._send_one({"token": token}, message)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Push to device failed", extra={"error": str(e)})
            return PushReport.failure(PushTargetKind.DEVICE, str(e), backend=self.backend_name)

        logger.info("Push sent to device", extra={"message_id": message_id})
        return PushReport(
            target=PushTargetKind.DEVICE,
            success_count=1,
            message_id=message_id,
            backend=self.backend_name,
        )

    async def send_multicast(self, tokens: list[str], message: PushMessage) -> PushReport:
        """Send a notification to several device tokens, one request each.

        Per-token failures are counted, not raised.
        """
        if not self.is_initialized:
            return self._not_initialized(PushTargetKind.MULTICAST, len(tokens))

        results = await asyncio.gather(
            *(self._send_one({"token": token}, message) for token in tokens),
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, (httpx.HTTPError, ValueError)):
                raise result

        message_ids = [r for r in results if isinstance(r, str)]
        errors = [str(r) for r in results if isinstance(r, BaseException)]

        report = PushReport(
            target=PushTargetKind.MULTICAST,
            success_count=len(message_ids),
            failure_count=len(errors),
            message_id=message_ids[0] if message_ids else None,
            errors=errors,
            backend=self.backend_name,
        )

        logger.info(
            "Multicast push report",
            extra={
                "token_count": len(tokens),
                "success_count": report.success_count,
                "failure_count": report.failure_count,
            },
        )
        if report.failure_count:
            logger.warning(
                "Some multicast pushes failed",
                extra={"failure_count": report.failure_count, "errors": errors[:10]},
            )
        return report

    async def send_to_topic(self, topic: str, message: PushMessage) -> PushReport:
        """Send a notification to every device subscribed to ``topic``."""
        if not self.is_initialized:
            return self._not_initialized(PushTargetKind.TOPIC, 1)

        try:
            message_id = await self._send_one({"topic": topic}, message)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Push to topic failed", extra={"topic": topic, "error": str(e)})
            return PushReport.failure(PushTargetKind.TOPIC, str(e), backend=self.backend_name)

        logger.info("Push sent to topic", extra={"topic": topic, "message_id": message_id})
        return PushReport(
            target=PushTargetKind.TOPIC,
            success_count=1,
            message_id=message_id,
            backend=self.backend_name,
        )

    async def health_check(self) -> bool:
        return self.is_initialized

    async def close(self) -> None:
        return None


class GatewayPushClient(BasePushClient):
    """Push client for an HTTP v1 style gateway.

    Each message is posted as ``{"message": {<target>, "notification", "data"}}``
    and the gateway answers with ``{"name": "<message id>"}``.

    Example:
        client = GatewayPushClient(settings)
        report = await client.send_to_device(token, PushMessage(title="Hi", body="There"))
        await client.close()
    """

    backend_name = "gateway"

    def __init__(
        self,
        settings: PushSettings,
        transport: httpx.AsyncBaseTransport | None = None,
        credentials: Credentials | None = None,
    ) -> None:
        self.settings = settings
        self._client: httpx.AsyncClient | None = None
        self._tokens: GatewayTokenSource | None = None

        if not settings.is_configured:
            logger.warning(
                "Push gateway not configured, push notifications are disabled",
                extra={"has_project_id": settings.resolved_project_id is not None},
            )
            return

        if credentials is None:
            try:
                credentials = load_gateway_credentials(settings)
            except ValueError as e:
                logger.error(
                    "Invalid push gateway service account, push notifications are disabled",
                    extra={"error": str(e)},
                )
                return
        self._tokens = GatewayTokenSource(credentials)

        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.timeout),
            headers={"Content-Type": "application/json"},
            limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
            transport=transport,
        )
        logger.info(
            "Push gateway client initialized",
            extra={"base_url": settings.base_url, "project_id": settings.resolved_project_id},
        )

    @property
    def is_initialized(self) -> bool:
        return self._client is not None

    async def _send_one(self, target: dict[str, str], message: PushMessage) -> str:
        if self._client is None or self._tokens is None:
            raise ValueError("Push client not initialized")

        try:
            token = await self._tokens.token()
        except GoogleAuthError as e:
            raise ValueError(f"Could not obtain push gateway access token: {e}") from e

        body: dict[str, Any] = {"message": {**target, **message.to_payload()}}
        response = await self._client.post(
            self.settings.send_url,
            json=body,
            headers={"Authorization": f"Bearer {token}"},
        )
        response.raise_for_status()

        name = response.json().get("name")
        if not name:
            raise ValueError("Push gateway response carried no message name")
        return name

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class ConsolePushClient(BasePushClient):
    """Log pushes instead of sending them."""

    backend_name = "console"

    @property
    def is_initialized(self) -> bool:
        return True

    async def _send_one(self, target: dict[str, str], message: PushMessage) -> str:
        message_id = f"console-{uuid.uuid4()}"
        logger.info(
            "Push logged to console",
            extra={
                "message_id": message_id,
                "target": target,
                "title": message.title,
                "data": message.data,
            },
        )
        return message_id


class DisabledPushClient(BasePushClient):
    """Placeholder used when push delivery is switched off."""

    backend_name = "disabled"

    @property
    def is_initialized(self) -> bool:
        return False

    async def _send_one(self, target: dict[str, str], message: PushMessage) -> str:
        raise ValueError("Push delivery is disabled")


def create_push_client(settings: PushSettings) -> BasePushClient:
    """Build the push client for the configured backend."""
    if settings.backend == "gateway":
        return GatewayPushClient(settings)
    if settings.backend == "console":
        return ConsolePushClient()
    if settings.backend == "disabled":
        return DisabledPushClient()
    raise ValueError(f"Unknown push backend: {settings.backend}")
