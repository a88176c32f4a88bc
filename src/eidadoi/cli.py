"""Command-line interface for the DOI webservice."""

from __future__ import annotations

import asyncio
import json
from typing import Optional

import httpx
import typer
from rich.console import Console
from rich.table import Table

from eidadoi import __version__
from eidadoi.logs import configure_logging
from eidadoi.models import DOIRecord
from eidadoi.services import DOICache, HarvestOutcome, Harvester, filter_records
from eidadoi.settings import Settings, get_settings
from eidadoi.utils import QueryValidationError, split_patterns, validate_parameters

console = Console()
app = typer.Typer(help="EIDA network DOI webservice")


def _build_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.request_timeout, follow_redirects=False)


async def _harvest_once(settings: Settings) -> tuple[HarvestOutcome, tuple[DOIRecord, ...]]:
    cache = DOICache()
    async with _build_client(settings) as client:
        harvester = Harvester(client=client, cache=cache, settings=settings)
        outcome = await harvester.run_cycle()
    return outcome, cache.snapshot()


def _print_records(records: list[DOIRecord]) -> None:
    table = Table(title="Network DOIs")
    table.add_column("Network")
    table.add_column("DOI", overflow="fold")
    for record in records:
        table.add_row(record.network, record.doi)
    console.print(table)


@app.command()
def config(
    json_output: bool = typer.Option(False, "--json", help="Output settings as JSON"),
) -> None:
    """Display the resolved settings."""
    settings = get_settings()
    if json_output:
        typer.echo(settings.model_dump_json(indent=2))
        return
    table = Table(title="Service Settings")
    table.add_column("Key")
    table.add_column("Value", overflow="fold")
    for key, value in settings.model_dump().items():
        table.add_row(key, str(value))
    console.print(table)


@app.command()
def harvest(
    network: Optional[str] = typer.Option(
        None, "--network", "-n", help="Comma-separated network patterns (? and * wildcards)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output records as JSON"),
) -> None:
    """Fetch the upstream registry once and print the records."""
    settings = get_settings()
    configure_logging(settings)
    if network is not None:
        try:
            validate_parameters({"network": network})
        except QueryValidationError as exc:
            raise typer.BadParameter(str(exc), param_hint="--network") from exc

    outcome, snapshot = asyncio.run(_harvest_once(settings))
    if not outcome.success:
        console.print(f"[red]Harvest failed:[/red] {outcome.error}")
        raise typer.Exit(code=1)

    records = filter_records(snapshot, split_patterns(network))
    if json_output:
        typer.echo(json.dumps([record.model_dump() for record in records], indent=2))
        return
    if not records:
        console.print("[yellow]No DOIs matched the requested networks.")
        return
    _print_records(records)
    console.print(f"[green]{len(records)} of {outcome.records} records from {outcome.url}")


@app.command()
def version() -> None:
    """Print the package version."""
    typer.echo(__version__)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Host interface (defaults to settings)"),
    port: Optional[int] = typer.Option(None, help="Port to bind (defaults to settings)"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
) -> None:
    """Launch the query API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        console.print("[red]uvicorn is not installed.[/red]")
        raise typer.Exit(code=1) from exc

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port
    console.print(f"{settings.name} microservice starting on {host}:{port}")
    uvicorn.run(
        "eidadoi.web.app:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


if __name__ == "__main__":  # pragma: no cover
    app()
