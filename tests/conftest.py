"""Pytest configuration and shared fixtures.

Organization:
    - Environment: console backends and a test signing secret, so tests never
      reach an SMTP relay or a push gateway
    - Application Fixtures: FastAPI app (lifespan running) and HTTP client
    - Authentication Fixtures: service token factory and auth headers
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable, Iterator
import os
from typing import Any

from httpx import ASGITransport, AsyncClient
import pytest

os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("EMAIL_BACKEND", "console")
os.environ.setdefault("PUSH_BACKEND", "console")
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret-with-at-least-32-bytes!!")
os.environ.setdefault("AUTH_ALLOWED_SERVICES", "billing,auth-service,admin-console")
os.environ.setdefault("WS_HEARTBEAT_INTERVAL", "0")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("LOG_FILE_ENABLED", "false")

from notification_service.core.dependencies.auth import get_authenticator  # noqa: E402
from notification_service.core.settings import clear_settings_cache, get_auth_settings  # noqa: E402
from notification_service.infra.auth import ServiceAuthenticator  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_cached_settings() -> Iterator[None]:
    """Drop cached settings so monkeypatched environment variables apply."""
    clear_settings_cache()
    get_authenticator.cache_clear()
    yield
    clear_settings_cache()
    get_authenticator.cache_clear()


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
async def app():
    """Create the FastAPI application with its lifespan running.

    The hub, dispatcher, adapters and health aggregator are available on
    ``app.state`` while the fixture is active.
    """
    from notification_service.app.main import create_app

    application = create_app()
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client bound to the running application.

    Example:
        async def test_health_check(client):
            response = await client.get("/api/v1/health")
            assert response.status_code == 200
    """
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# ============================================================================
# Authentication Fixtures
# ============================================================================


@pytest.fixture
def authenticator() -> ServiceAuthenticator:
    return ServiceAuthenticator(get_auth_settings())


@pytest.fixture
def make_token(authenticator: ServiceAuthenticator) -> Callable[..., str]:
    """Factory minting service tokens signed with the test secret.

    Example:
        token = make_token("billing", permissions=["notify:send"])
    """

    def _make(
        service_id: str = "billing",
        *,
        permissions: list[str] | None = None,
        ttl_seconds: int | None = None,
        **kwargs: Any,
    ) -> str:
        return authenticator.issue_token(
            service_id,
            permissions=permissions if permissions is not None else ["notify:send"],
            ttl_seconds=ttl_seconds,
            **kwargs,
        )

    return _make


@pytest.fixture
def auth_headers(make_token: Callable[..., str]) -> Callable[..., dict[str, str]]:
    """Factory returning an ``Authorization`` header for the given permissions."""

    def _headers(*permissions: str, service_id: str = "billing") -> dict[str, str]:
        token = make_token(service_id, permissions=list(permissions) or ["notify:send"])
        return {"Authorization": f"Bearer {token}"}

    return _headers

