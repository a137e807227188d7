"""Service-to-service authentication gate.

Verifies bearer JWTs signed with the shared secret, checks the caller against
the configured allow-list and scopes operations by permission.

Example:
    authenticator = ServiceAuthenticator(get_auth_settings())
    identity = authenticator.authenticate(request.headers.get("Authorization"))
    require_permissions(identity, "notify:send")
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
import logging
from typing import TYPE_CHECKING, Any

import jwt
from jwt import exceptions as jwt_exceptions

from notification_service.core.exceptions import (
    AuthenticationRequiredError,
    ExpiredCredentialError,
    InsufficientPermissionsError,
    InvalidCredentialError,
    MissingCredentialError,
    UnauthorizedCallerError,
)
from notification_service.infra.auth.models import ServiceIdentity

if TYPE_CHECKING:
    from collections.abc import Iterable

    from notification_service.core.settings.auth import AuthSettings

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(raw_header: str | None) -> str:
    """Return the token part of a ``Bearer <token>`` header.

    Raises:
        MissingCredentialError: If the header is absent or not bearer-style.
    """
    if not raw_header or not raw_header.startswith(BEARER_PREFIX):
        raise MissingCredentialError("Authentication token is required")
    token = raw_header[len(BEARER_PREFIX):].strip()
    if not token:
        raise MissingCredentialError("Authentication token is required")
    return token


class ServiceAuthenticator:
    """Stateless predicate turning a bearer header into a ServiceIdentity."""

    def __init__(self, settings: AuthSettings) -> None:
        self.settings = settings

    def authenticate(self, raw_header: str | None) -> ServiceIdentity:
        """Authenticate a caller from its Authorization header.

        Raises:
            MissingCredentialError: No bearer-style header.
            InvalidCredentialError: Signature or structure verification failed.
            ExpiredCredentialError: The token's validity window has elapsed.
            UnauthorizedCallerError: Caller not in the allow-list.
        """
        token = extract_bearer_token(raw_header)
        claims = self.decode(token)

        service_id = claims.get("serviceId") or claims.get("iss")
        if not isinstance(service_id, str) or not self.settings.is_allowed(service_id):
            logger.warning(
                "Unauthorized service attempted access",
                extra={"service_id": service_id},
            )
            raise UnauthorizedCallerError(
                "Service not authorized",
                details={"serviceId": service_id},
            )

        return ServiceIdentity.from_claims(service_id, claims)

    def decode(self, token: str) -> dict[str, Any]:
        """Verify a token and return its claims."""
        options: dict[str, Any] = {"verify_aud": self.settings.audience is not None}
        try:
            return jwt.decode(
                token,
                self.settings.jwt_secret.get_secret_value(),
                algorithms=self.settings.jwt_algorithms,
                audience=self.settings.audience,
                issuer=self.settings.issuer,
                leeway=self.settings.leeway_seconds,
                options=options,
            )
        except jwt_exceptions.ExpiredSignatureError as e:
            logger.warning("Expired service token", extra={"error": str(e)})
            raise ExpiredCredentialError("Authentication token has expired") from e
        except jwt_exceptions.InvalidTokenError as e:
            logger.warning("Invalid service token", extra={"error": str(e)})
            raise InvalidCredentialError("Invalid authentication token") from e

    def issue_token(
        self,
        service_id: str,
        *,
        service_name: str | None = None,
        permissions: Iterable[str] = (),
        user_id: str | None = None,
        ttl_seconds: int | None = None,
    ) -> str:
        """Mint a token the way calling services are expected to."""
        now = datetime.now(UTC)
        ttl = ttl_seconds if ttl_seconds is not None else self.settings.token_ttl_seconds
        claims: dict[str, Any] = {
            "serviceId": service_id,
            "permissions": list(permissions),
            "iat": now,
            "exp": now + timedelta(seconds=ttl),
        }
        if service_name:
            claims["serviceName"] = service_name
        if user_id:
            claims["userId"] = user_id
        if self.settings.issuer:
            claims["iss"] = self.settings.issuer
        if self.settings.audience:
            claims["aud"] = self.settings.audience
        return jwt.encode(
            claims,
            self.settings.jwt_secret.get_secret_value(),
            algorithm=self.settings.jwt_algorithms[0],
        )


def require_permissions(identity: ServiceIdentity | None, *required: str) -> ServiceIdentity:
    """Check that the caller holds any of ``required`` (or the wildcard).

    Raises:
        AuthenticationRequiredError: No identity is attached to the request.
        InsufficientPermissionsError: None of the permissions is held.
    """
    if identity is None:
        raise AuthenticationRequiredError("Authentication required")

    if not identity.has_any_permission(*required):
        logger.warning(
            "Insufficient permissions",
            extra={
                "service_id": identity.id,
                "required": list(required),
                "granted": sorted(identity.permissions),
            },
        )
        raise InsufficientPermissionsError(
            "Insufficient permissions",
            details={"required": list(required)},
        )
    return identity
