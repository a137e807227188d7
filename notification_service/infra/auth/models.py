"""Verified caller identity."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from notification_service.core.settings.auth import WILDCARD_PERMISSION


@dataclass(frozen=True)
class ServiceIdentity:
    """Caller context derived from a verified service token.

    Lives for the duration of one request and is never persisted.

    Attributes:
        id: Caller identifier (``serviceId`` claim, or ``iss``).
        name: Display name, falls back to the identifier.
        permissions: Granted permissions, empty when the claim is absent.
        user_id: Optional end user the call is made on behalf of.
    """

    id: str
    name: str
    permissions: frozenset[str] = field(default_factory=frozenset)
    user_id: str | None = None

    @classmethod
    def from_claims(cls, service_id: str, claims: dict[str, Any]) -> ServiceIdentity:
        permissions = claims.get("permissions") or []
        if isinstance(permissions, str):
            permissions = [permissions]
        user_id = claims.get("userId")
        return cls(
            id=service_id,
            name=claims.get("serviceName") or service_id,
            permissions=frozenset(str(p) for p in permissions),
            user_id=str(user_id) if user_id is not None else None,
        )

    @property
    def is_superuser(self) -> bool:
        return WILDCARD_PERMISSION in self.permissions

    def has_any_permission(self, *required: str) -> bool:
        """Check if the identity holds any required permission or the wildcard."""
        return self.is_superuser or any(p in self.permissions for p in required)
