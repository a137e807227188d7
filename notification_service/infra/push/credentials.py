"""OAuth2 credentials for the push gateway.

The HTTP v1 messaging API only accepts short-lived access tokens, so the
gateway client asks a token source for a bearer on every request and the
source refreshes the underlying google-auth credentials once they expire.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from google.auth.transport.requests import Request
from google.oauth2 import credentials as oauth2_credentials
from google.oauth2 import service_account

if TYPE_CHECKING:
    from google.auth.credentials import Credentials
    from google.auth.transport import Request as AuthRequest

    from notification_service.core.settings.push import PushSettings

logger = logging.getLogger(__name__)

MESSAGING_SCOPES = ("https://www.googleapis.com/auth/firebase.messaging",)


def load_gateway_credentials(settings: PushSettings) -> Credentials | None:
    """Build credentials from the service account key, else from a fixed token.

    Raises:
        ValueError: If the service account key is missing required fields.
    """
    info = settings.service_account_info
    if info is not None:
        return service_account.Credentials.from_service_account_info(
            info, scopes=list(MESSAGING_SCOPES)
        )
    if settings.access_token is not None:
        return oauth2_credentials.Credentials(token=settings.access_token.get_secret_value())
    return None


class GatewayTokenSource:
    """Hand out a valid bearer token, refreshing the credentials when needed.

    Refresh is a blocking HTTP call in google-auth, so it runs in a worker
    thread. Concurrent callers share one refresh.
    """

    def __init__(self, credentials: Credentials, request: AuthRequest | None = None) -> None:
        self.credentials = credentials
        self._request = request or Request()
        self._lock = asyncio.Lock()

    async def token(self) -> str:
        async with self._lock:
            if not self.credentials.valid:
                logger.info("Refreshing push gateway access token")
                await asyncio.to_thread(self.credentials.refresh, self._request)
                logger.debug(
                    "Push gateway access token refreshed",
                    extra={"expiry": str(self.credentials.expiry)},
                )
            return self.credentials.token
