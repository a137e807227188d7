"""Service-to-service authentication."""

from __future__ import annotations

from notification_service.infra.auth.gate import (
    ServiceAuthenticator,
    extract_bearer_token,
    require_permissions,
)
from notification_service.infra.auth.models import ServiceIdentity
from notification_service.infra.auth.permissions import Permission

__all__ = [
    "Permission",
    "ServiceAuthenticator",
    "ServiceIdentity",
    "extract_bearer_token",
    "require_permissions",
]
