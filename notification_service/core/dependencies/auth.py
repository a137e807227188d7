"""Authentication dependencies for service-to-service calls.

Every mutating route depends on ``RequirePermissions(...)``, which
authenticates the caller's bearer token before the handler (and therefore any
adapter or hub call) runs.

Example:
    from notification_service.core.dependencies.auth import RequirePermissions
    from notification_service.infra.auth import permissions

    @router.post("/send-email")
    async def send_email(
        body: SendEmailRequest,
        caller: Annotated[ServiceIdentity, Depends(RequirePermissions(*permissions.SEND_EMAIL))],
    ): ...
"""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from functools import lru_cache
from typing import Annotated, Any

from fastapi import Depends, Request

from notification_service.core.settings import get_auth_settings
from notification_service.infra.auth import ServiceAuthenticator, ServiceIdentity, require_permissions
from notification_service.infra.logging import set_log_context


@lru_cache(maxsize=1)
def get_authenticator() -> ServiceAuthenticator:
    """Get the authenticator built from the cached auth settings."""
    return ServiceAuthenticator(get_auth_settings())


AuthenticatorDep = Annotated[ServiceAuthenticator, Depends(get_authenticator)]


async def get_service_identity(
    request: Request,
    authenticator: AuthenticatorDep,
) -> ServiceIdentity:
    """Authenticate the calling service from its ``Authorization`` header.

    The identity is attached to ``request.state.service`` and to the log
    context.

    Raises:
        AuthError: Any failure of the auth gate (401/403).
    """
    identity = authenticator.authenticate(request.headers.get("Authorization"))
    request.state.service = identity
    set_log_context(service_id=identity.id, service_name=identity.name)
    return identity


ServiceIdentityDep = Annotated[ServiceIdentity, Depends(get_service_identity)]


def RequirePermissions(  # noqa: N802
    *required: str,
) -> Callable[[ServiceIdentity], Coroutine[Any, Any, ServiceIdentity]]:
    """Dependency factory requiring any of ``required`` (or the wildcard)."""

    async def permission_checker(identity: ServiceIdentityDep) -> ServiceIdentity:
        return require_permissions(identity, *required)

    return permission_checker


__all__ = [
    "AuthenticatorDep",
    "RequirePermissions",
    "ServiceIdentityDep",
    "get_authenticator",
    "get_service_identity",
]
