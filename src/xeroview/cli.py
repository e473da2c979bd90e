"""
xeroview CLI — command-line interface.

Usage:
    xeroview serve --port 3000
    xeroview serve --config xeroview.yaml --graceful-timeout 30
    xeroview auth-url
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.panel import Panel

from xeroview import __version__

app = typer.Typer(
    name="xeroview",
    help="xeroview — browse Xero data over OAuth2",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold]xeroview[/bold] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """xeroview — connect to Xero and list your organisations' data."""


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@app.command()
def serve(
    config: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a YAML config file",
    ),
    host: str = typer.Option(
        None,
        "--host",
        help="Interface to bind (default from config)",
    ),
    port: int = typer.Option(
        None,
        "--port",
        "-p",
        help="Port to listen on (default from config)",
    ),
    graceful_timeout: float = typer.Option(
        None,
        "--graceful-timeout",
        help="Seconds to let in-flight requests finish on shutdown, e.g. 15",
    ),
) -> None:
    """Run the web server."""
    import uvicorn

    from xeroview.config import AppConfig
    from xeroview.web.app import create_app

    settings = AppConfig.load(config, host=host, port=port, graceful_timeout=graceful_timeout)
    _setup_logging(settings.log_level)

    console.print(Panel.fit(
        f"[bold blue]xeroview[/bold blue] on http://{settings.host}:{settings.port}",
        subtitle=f"v{__version__}",
    ))
    if not settings.is_configured:
        console.print("[yellow]CLIENT_ID, CLIENT_SECRET and REDIRECT_URL should be set[/yellow]")

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        timeout_keep_alive=settings.keep_alive_timeout,
        timeout_graceful_shutdown=int(settings.graceful_timeout),
        log_level=settings.log_level.lower(),
    )
    logging.getLogger("xeroview.cli").info("shutting down")


@app.command("auth-url")
def auth_url(
    config: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a YAML config file",
    ),
    state: str = typer.Option(
        None,
        "--state",
        help="State value to embed (random if omitted)",
    ),
) -> None:
    """Print the Xero authorization URL for the configured app."""
    from xeroview.auth.oauth2 import OAuth2Provider, new_state
    from xeroview.config import AppConfig

    settings = AppConfig.load(config)
    provider = OAuth2Provider(settings)
    console.print(provider.get_auth_url(state or new_state()), soft_wrap=True)


if __name__ == "__main__":
    app()
