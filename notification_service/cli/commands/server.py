"""Server command."""

import click
import uvicorn

from notification_service.cli.formatters import info, success, warning
from notification_service.core.settings import get_app_settings, get_logging_settings


@click.command(name="serve")
@click.option("--host", default=None, help="Host to bind (default: APP_HOST)")
@click.option("--port", default=None, type=int, help="Port to bind (default: APP_PORT)")
@click.option(
    "--reload/--no-reload",
    default=None,
    help="Enable auto-reload on code changes (default: APP_DEBUG)",
)
@click.option(
    "--workers",
    default=1,
    type=int,
    help="Number of worker processes (ignored with --reload)",
)
def serve(host: str | None, port: int | None, reload: bool | None, workers: int) -> None:
    """Run the HTTP and WebSocket server.

    Every worker process owns its own connection hub, so rooms are not shared
    between workers.
    """
    settings = get_app_settings()
    host = host or settings.host
    port = port or settings.port
    reload = settings.debug if reload is None else reload

    if reload and workers > 1:
        warning("--reload is incompatible with --workers > 1. Setting workers to 1.")
        workers = 1
    if workers > 1:
        warning("Rooms are per process; peers on different workers will not share rooms.")

    info(f"Server will run at: http://{host}:{port}")
    info(f"Environment: {settings.environment}")
    success("Starting uvicorn...")

    uvicorn.run(
        "notification_service.app.main:app",
        host=host,
        port=port,
        reload=reload,
        workers=None if reload else workers,
        access_log=settings.debug,
        log_level=get_logging_settings().level.lower(),
    )
