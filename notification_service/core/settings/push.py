"""Push gateway settings.

Environment variables use PUSH_ prefix.
Example: PUSH_BACKEND=gateway, PUSH_SERVICE_ACCOUNT_JSON='{"type": "service_account", ...}'
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PushSettings(BaseSettings):
    """Mobile push delivery configuration.

    Backends:
    - gateway: HTTP v1 style push gateway (``POST {base_url}/projects/{project_id}/messages:send``)
      authenticated with OAuth2 tokens minted from a service account, or with a
      fixed ``access_token`` for gateways that accept one
    - console: Log pushes instead of sending them (development)
    - disabled: Push is not initialized; every send fails
    """

    backend: Literal["gateway", "console", "disabled"] = Field(
        default="gateway",
        description="Push backend: gateway (production), console (dev), disabled",
    )
    base_url: str = Field(
        default="https://fcm.googleapis.com/v1",
        min_length=1,
        description="Push gateway base URL",
    )
    project_id: str | None = Field(
        default=None,
        max_length=255,
        description="Project identifier on the push gateway (defaults to the service account's)",
    )
    service_account_json: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "PUSH_SERVICE_ACCOUNT_JSON", "FIREBASE_SERVICE_ACCOUNT_JSON", "service_account_json"
        ),
        description="Service account key (JSON document) used to mint gateway access tokens",
    )
    access_token: SecretStr | None = Field(
        default=None,
        description="Fixed bearer token, used only when no service account is set",
    )
    timeout: float = Field(
        default=10.0,
        ge=0.5,
        le=120.0,
        description="HTTP timeout for gateway calls in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="PUSH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @field_validator("service_account_json")
    @classmethod
    def _service_account_is_json_object(cls, v: SecretStr | None) -> SecretStr | None:
        if v is None:
            return v
        try:
            info = json.loads(v.get_secret_value())
        except json.JSONDecodeError as e:
            raise ValueError(f"service_account_json is not valid JSON: {e.msg}") from e
        if not isinstance(info, dict):
            raise ValueError("service_account_json must be a JSON object")
        return v

    @property
    def service_account_info(self) -> dict[str, Any] | None:
        """Parsed service account key, if one is configured."""
        if self.service_account_json is None:
            return None
        return json.loads(self.service_account_json.get_secret_value())

    @property
    def resolved_project_id(self) -> str | None:
        """Explicit project id, else the one named in the service account key."""
        if self.project_id:
            return self.project_id
        info = self.service_account_info
        return info.get("project_id") if info else None

    @property
    def is_configured(self) -> bool:
        """Check if push delivery can be initialized."""
        if self.backend == "disabled":
            return False
        if self.backend == "gateway":
            has_credentials = self.service_account_json is not None or self.access_token is not None
            return bool(self.resolved_project_id and has_credentials)
        return True

    @property
    def send_url(self) -> str:
        """Full URL of the gateway send endpoint."""
        return f"{self.base_url.rstrip('/')}/projects/{self.resolved_project_id}/messages:send"
