"""Mini README: Entry point CLI for launching the Fleet Ledger service.

This script exposes a Typer CLI that starts the FastAPI application with
configurable host, port, and production flags. Logging verbosity follows the
configured environment label.
"""

from __future__ import annotations

import typer
import uvicorn

from fleetledger.configuration import get_settings
from fleetledger.logging_utils import configure_for_environment

cli = typer.Typer(help="Launch and manage the Fleet Ledger web service.")


@cli.command()
def run(
    host: str = typer.Option(None, help="Host interface to bind."),
    port: int = typer.Option(None, help="Port to listen on."),
    production: bool = typer.Option(
        False, help="Use production server settings (disable auto-reload)."
    ),
) -> None:
    """Start the FastAPI application using uvicorn."""

    settings = get_settings()
    effective_host = host or settings.interface_host
    effective_port = port or settings.interface_port
    configure_for_environment(settings.environment)

    # Browsers cannot navigate to the wildcard bind address.
    browser_host = "127.0.0.1" if effective_host in {"0.0.0.0", "::"} else effective_host
    typer.echo(
        "Starting Fleet Ledger on "
        f"{effective_host}:{effective_port} (store: {settings.store_backend}).\n"
        "Open your browser at "
        f"http://{browser_host}:{effective_port}{settings.login_route}"
    )
    uvicorn.run(
        "fleetledger.interface.web_app:create_application",
        host=effective_host,
        port=effective_port,
        factory=True,
        reload=not production,
    )


if __name__ == "__main__":
    cli()
