"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import httpx
import typer
from rich.table import Table

from adapters.http_client import build_async_client
from cli import context
from cli.context import console, get_state, reported_errors
from cli.ui_components import print_banner
from core.config import get_user_env_file, read_user_env_vars, write_user_env_vars
from core.domain.models import Ledger
from core.endpoints import ledgers
from core.endpoints.base import Order
from core.errors import ConstructionError, HorizonError
from core.services.request_builder import normalize_base_url

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")


async def _check_http(url: str, state: context.CliState) -> tuple[bool, str]:
    try:
        async with build_async_client(state.settings) as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except httpx.HTTPError as exc:
        return False, str(exc) or type(exc).__name__


def _check_latest_ledger(state: context.CliState) -> tuple[bool, str]:
    """Pide el último ledger cerrado con el cliente real."""

    try:
        with context.build_client(state) as client:
            page = client.fetch_page(ledgers.all().with_order(Order.DESC).with_limit(1))
    except HorizonError as exc:
        return False, str(exc)
    if not page.records:
        return False, "No ledgers returned"
    latest = page.records[0]
    if not isinstance(latest, Ledger):
        return False, f"Unexpected record: {type(latest).__name__}"
    return True, f"#{latest.sequence} closed at {latest.closed_at or '?'}"


@app.command()
def run(ctx: typer.Context) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    state = get_state(ctx)
    settings = state.settings

    try:
        base_url = normalize_base_url(state.target)
    except ConstructionError as exc:
        console.print(f"[red]Invalid server:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    print_banner(console, server=base_url)

    table = Table(title="Horizon Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    env_file = get_user_env_file()
    saved = read_user_env_vars(env_path=env_file)
    table.add_row("User config", "OK" if env_file.is_file() else "OPTIONAL", str(env_file))
    if state.server:
        source = "--server option"
    elif "HORIZON_SERVER" in saved:
        source = "user config"
    else:
        source = "environment or default"
    table.add_row("Server", "OK", f"{base_url} ({source})")
    table.add_row("Timeout", "OK", f"{settings.http_timeout_seconds:g}s")
    table.add_row(
        "Stream backoff",
        "OK",
        f"{settings.stream_initial_backoff_seconds:g}s .. {settings.stream_max_backoff_seconds:g}s",
    )

    # Connectivity
    ok_http, detail_http = asyncio.run(_check_http(base_url, state))
    table.add_row("HTTP connectivity", "OK" if ok_http else "FAIL", detail_http)

    ok_ledger, detail_ledger = _check_latest_ledger(state)
    table.add_row("Latest ledger", "OK" if ok_ledger else "FAIL", detail_ledger)

    console.print(table)

    if not ok_http or not ok_ledger:
        console.print(
            "\n[yellow]Note:[/yellow] Check the server address with `horizon doctor set-server URL` "
            "or override it per command with `--server`."
        )
        raise typer.Exit(code=1)


@app.command(name="set-server")
def set_server(
    server: str = typer.Argument(..., help="Preset (public, testnet) or Horizon URL."),
) -> None:
    """Persist the default server in the user config .env."""

    with reported_errors():
        normalize_base_url(server)

    env_path = write_user_env_vars({"HORIZON_SERVER": server.strip()})
    console.print(f"[green]Saved server to:[/green] {env_path}")
