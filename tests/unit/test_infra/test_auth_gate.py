"""Unit tests for the service authentication gate."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from notification_service.core.exceptions import (
    AuthenticationRequiredError,
    ErrorCode,
    ExpiredCredentialError,
    InsufficientPermissionsError,
    InvalidCredentialError,
    MissingCredentialError,
    UnauthorizedCallerError,
)
from notification_service.core.settings import AuthSettings
from notification_service.infra.auth import (
    Permission,
    ServiceAuthenticator,
    ServiceIdentity,
    extract_bearer_token,
    permissions,
    require_permissions,
)

SECRET = "unit-test-secret-that-is-long-enough"


def _authenticator(**overrides) -> ServiceAuthenticator:
    values = {"jwt_secret": SECRET, "allowed_services": ["svc-B", "billing"]}
    values.update(overrides)
    return ServiceAuthenticator(AuthSettings(**values))


def _token(claims: dict, secret: str = SECRET) -> str:
    payload = {"exp": datetime.now(UTC) + timedelta(minutes=5), **claims}
    return jwt.encode(payload, secret, algorithm="HS256")


class TestExtractBearerToken:
    """Tests for Authorization header parsing."""

    def test_returns_token(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize("header", [None, "", "Basic dXNlcjpwYXNz", "Bearer ", "bearer abc"])
    def test_rejects_missing_or_non_bearer(self, header):
        with pytest.raises(MissingCredentialError):
            extract_bearer_token(header)


class TestAuthenticate:
    """Tests for ServiceAuthenticator.authenticate."""

    def test_valid_token_yields_identity(self):
        """Claims are carried into the identity."""
        token = _token(
            {
                "serviceId": "billing",
                "serviceName": "Billing",
                "permissions": ["notify:send", "notify:email"],
                "userId": "user-42",
            }
        )

        identity = _authenticator().authenticate(f"Bearer {token}")

        assert identity.id == "billing"
        assert identity.name == "Billing"
        assert identity.permissions == frozenset({"notify:send", "notify:email"})
        assert identity.user_id == "user-42"

    def test_caller_not_in_allow_list_is_refused(self):
        """svc-A is refused when only svc-B is allowed."""
        authenticator = _authenticator(allowed_services=["svc-B"])
        token = _token({"serviceId": "svc-A", "permissions": ["*"]})

        with pytest.raises(UnauthorizedCallerError) as exc_info:
            authenticator.authenticate(f"Bearer {token}")

        assert exc_info.value.status_code == 403
        assert exc_info.value.details == {"serviceId": "svc-A"}

    def test_issuer_claim_used_when_service_id_missing(self):
        token = _token({"iss": "billing", "permissions": []})

        identity = _authenticator().authenticate(f"Bearer {token}")

        assert identity.id == "billing"

    def test_token_without_caller_id_is_refused(self):
        token = _token({"permissions": ["*"]})

        with pytest.raises(UnauthorizedCallerError):
            _authenticator().authenticate(f"Bearer {token}")

    def test_wrong_signature_is_invalid(self):
        token = _token({"serviceId": "billing"}, secret="some-other-secret-also-long-enough")

        with pytest.raises(InvalidCredentialError) as exc_info:
            _authenticator().authenticate(f"Bearer {token}")

        assert exc_info.value.code == ErrorCode.INVALID_TOKEN

    def test_garbage_token_is_invalid(self):
        with pytest.raises(InvalidCredentialError):
            _authenticator().authenticate("Bearer not-a-jwt")

    def test_expired_token_is_distinguished(self):
        """Expiry is reported separately from other verification failures."""
        token = _token(
            {"serviceId": "billing", "exp": datetime.now(UTC) - timedelta(minutes=1)}
        )

        with pytest.raises(ExpiredCredentialError) as exc_info:
            _authenticator().authenticate(f"Bearer {token}")

        assert exc_info.value.detail == "Authentication token has expired"
        assert exc_info.value.status_code == 401

    def test_leeway_tolerates_small_clock_skew(self):
        token = _token(
            {"serviceId": "billing", "exp": datetime.now(UTC) - timedelta(seconds=5)}
        )

        identity = _authenticator(leeway_seconds=30).authenticate(f"Bearer {token}")

        assert identity.id == "billing"

    def test_audience_enforced_when_configured(self):
        authenticator = _authenticator(audience="notification-service")
        good = _token({"serviceId": "billing", "aud": "notification-service"})
        bad = _token({"serviceId": "billing", "aud": "someone-else"})

        assert authenticator.authenticate(f"Bearer {good}").id == "billing"
        with pytest.raises(InvalidCredentialError):
            authenticator.authenticate(f"Bearer {bad}")

    def test_single_permission_string_is_accepted(self):
        token = _token({"serviceId": "billing", "permissions": "notify:send"})

        identity = _authenticator().authenticate(f"Bearer {token}")

        assert identity.permissions == frozenset({"notify:send"})

    def test_issued_token_round_trips(self):
        """Tokens minted by issue_token pass authenticate."""
        authenticator = _authenticator(issuer="auth-service", audience="notification-service")
        token = authenticator.issue_token(
            "billing", service_name="Billing", permissions=["notify:send"], ttl_seconds=60
        )

        identity = authenticator.authenticate(f"Bearer {token}")

        assert identity.id == "billing"
        assert identity.has_any_permission("notify:send")


class TestRequirePermissions:
    """Tests for permission scoping."""

    def test_caller_with_required_permission_passes(self):
        identity = ServiceIdentity(id="billing", name="Billing", permissions=frozenset({"notify:send"}))

        assert require_permissions(identity, Permission.SEND) is identity

    def test_caller_without_admin_is_refused(self):
        """notify:send may not perform an admin-only operation."""
        identity = ServiceIdentity(id="billing", name="Billing", permissions=frozenset({"notify:send"}))

        with pytest.raises(InsufficientPermissionsError) as exc_info:
            require_permissions(identity, *permissions.VIEW_HUB_STATS)

        assert exc_info.value.status_code == 403
        assert exc_info.value.details == {"required": ["notify:admin"]}

    @pytest.mark.parametrize(
        "required",
        [
            permissions.SEND_EMAIL,
            permissions.SEND_PUSH,
            permissions.EMIT_TO_ROOM,
            permissions.BROADCAST,
            permissions.VIEW_HUB_STATS,
        ],
    )
    def test_wildcard_allows_everything(self, required):
        identity = ServiceIdentity(id="admin-console", name="Admin", permissions=frozenset({"*"}))

        assert identity.is_superuser
        assert require_permissions(identity, *required) is identity

    def test_any_of_the_required_permissions_suffices(self):
        identity = ServiceIdentity(id="billing", name="Billing", permissions=frozenset({"notify:email"}))

        assert require_permissions(identity, *permissions.SEND_EMAIL) is identity
        with pytest.raises(InsufficientPermissionsError):
            require_permissions(identity, *permissions.SEND_PUSH)

    def test_missing_identity_requires_authentication(self):
        with pytest.raises(AuthenticationRequiredError):
            require_permissions(None, Permission.SEND)
