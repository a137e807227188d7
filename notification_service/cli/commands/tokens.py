"""Service token command."""

import sys

import click

from notification_service.cli.formatters import error, info
from notification_service.core.settings import get_auth_settings
from notification_service.infra.auth import ServiceAuthenticator


@click.command(name="issue-token")
@click.argument("service_id")
@click.option(
    "--permission",
    "-p",
    "permissions",
    multiple=True,
    help="Permission to grant (repeatable, e.g. -p notify:send -p notify:email)",
)
@click.option("--name", "service_name", default=None, help="Human-readable service name")
@click.option("--user-id", default=None, help="User the token acts on behalf of")
@click.option("--ttl", type=int, default=None, help="Lifetime in seconds (default: AUTH_TOKEN_TTL_SECONDS)")
def issue_token(
    service_id: str,
    permissions: tuple[str, ...],
    service_name: str | None,
    user_id: str | None,
    ttl: int | None,
) -> None:
    """Mint a signed service token for SERVICE_ID.

    The token is printed to stdout so it can be captured by scripts.
    """
    settings = get_auth_settings()
    if not settings.is_allowed(service_id):
        error(f"Service '{service_id}' is not in AUTH_ALLOWED_SERVICES; the token will be rejected")
        sys.exit(1)

    token = ServiceAuthenticator(settings).issue_token(
        service_id,
        service_name=service_name,
        permissions=permissions,
        user_id=user_id,
        ttl_seconds=ttl,
    )
    info(f"Permissions: {', '.join(permissions) or '(none)'}")
    click.echo(token)
