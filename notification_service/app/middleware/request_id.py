"""Request ID middleware for per-request tracking.

This middleware:
1. Extracts request ID from X-Request-ID header if present
2. Generates a new UUID if header is missing
3. Stores the ID in request.state.request_id
4. Adds the ID to logging context
5. Includes X-Request-ID in response headers
6. Cleans up logging context after request completes
"""

from __future__ import annotations

from typing import TYPE_CHECKING
import uuid

from starlette.datastructures import MutableHeaders

from notification_service.infra.logging.context import clear_log_context, set_log_context

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

REQUEST_ID_HEADER = "x-request-id"


class RequestIDMiddleware:
    """Attach a request ID to every HTTP request.

    Pure ASGI so the WebSocket scope passes through untouched.

    Usage:
        app = FastAPI()
        app.add_middleware(RequestIDMiddleware)
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = self._extract_or_generate(scope)
        scope.setdefault("state", {})["request_id"] = request_id
        set_log_context(request_id=request_id)

        async def send_with_header(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message).append(REQUEST_ID_HEADER, request_id)
            await send(message)

        try:
            await self.app(scope, receive, send_with_header)
        finally:
            clear_log_context()

    @staticmethod
    def _extract_or_generate(scope: Scope) -> str:
        headers = dict(scope.get("headers", []))
        header_bytes = headers.get(REQUEST_ID_HEADER.encode("latin-1"))
        if header_bytes:
            return header_bytes.decode("latin-1")
        return str(uuid.uuid4())
