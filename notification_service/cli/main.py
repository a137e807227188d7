"""Main CLI entry point for notification-service management commands."""

import click

from notification_service.cli.commands import config, server, tokens
from notification_service.infra.logging.config import setup_logging


@click.group()
@click.version_option(package_name="notification-service", prog_name="notification-service")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Notification Service CLI.

    \b
    Quick Start:
      notification-service check-config          # Validate environment
      notification-service issue-token billing -p notify:send
      notification-service serve                 # Run the server
    """
    ctx.ensure_object(dict)


cli.add_command(server.serve)
cli.add_command(tokens.issue_token)
cli.add_command(config.check_config)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
