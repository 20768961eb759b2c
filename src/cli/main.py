"""CLI `horizon`.

Por qué typer + rich:
- typer da ayuda, validación de opciones y subcomandos con poco código.
- rich separa la presentación (tablas/paneles) de la lógica del cliente.

La CLI es una capa fina: construye endpoints, llama al cliente y presenta el
resultado. Toda la semántica (paginación, reconexión, errores) vive en el Core
y los adaptadores.
"""

from __future__ import annotations

import json
from itertools import islice
from pathlib import Path
from typing import Callable, Optional

import typer

from adapters.json_exporter import dumps_record, dumps_records, export_records_json
from adapters.stream_subscriber import StreamHooks
from cli import context, doctor
from cli.context import CliState, configure_logging, console, err_console, get_state, reported_errors
from cli.ui_components import build_account_panel, record_summary, render_records
from core.domain.kinds import Network
from core.domain.models import Record
from core.domain.paging import Cursor
from core.endpoints import accounts, assets, effects, ledgers, operations, payments, trades, transactions
from core.endpoints.base import MAX_LIMIT, Endpoint, Order

app = typer.Typer(
    name="horizon",
    no_args_is_help=True,
    help="Explore a Horizon server: accounts, paginated collections and live feeds.",
)
app.add_typer(doctor.app, name="doctor")

EndpointFactory = Callable[[], Endpoint]
AccountEndpointFactory = Callable[[str], Endpoint]

# nombre -> (colección global, colección de una cuenta)
COLLECTIONS: dict[str, tuple[EndpointFactory | None, AccountEndpointFactory | None]] = {
    "ledgers": (ledgers.all, None),
    "transactions": (transactions.all, accounts.transactions),
    "operations": (operations.all, accounts.operations),
    "payments": (payments.all, accounts.payments),
    "effects": (effects.all, accounts.effects),
    "trades": (trades.all, accounts.trades),
    "offers": (None, accounts.offers),
    "assets": (assets.all, None),
}


def collection_endpoint(kind: str, account: str | None = None) -> Endpoint:
    """Resuelve el nombre de colección (y cuenta opcional) a un endpoint."""

    name = kind.strip().lower()
    if name not in COLLECTIONS:
        choices = ", ".join(sorted(COLLECTIONS))
        raise typer.BadParameter(f"Unknown collection {kind!r}. Choose one of: {choices}")

    global_factory, account_factory = COLLECTIONS[name]
    if account is not None:
        if account_factory is None:
            raise typer.BadParameter(f"{name} cannot be filtered by account")
        return account_factory(account)
    if global_factory is None:
        raise typer.BadParameter(f"{name} requires --account")
    return global_factory()


@app.callback()
def main(
    ctx: typer.Context,
    server: Optional[str] = typer.Option(
        None,
        "--server",
        "-s",
        help="Server preset (public, testnet) or URL. Defaults to HORIZON_SERVER.",
    ),
    testnet: bool = typer.Option(False, "--testnet", help="Shortcut for --server testnet."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr."),
    json_output: bool = typer.Option(False, "--json", help="Print raw JSON instead of tables."),
) -> None:
    if server and testnet:
        raise typer.BadParameter("--server and --testnet are mutually exclusive")
    configure_logging(verbose)
    ctx.obj = CliState(
        server=Network.TESTNET.value if testnet else server,
        json_output=json_output,
        verbose=verbose,
    )


@app.command()
def account(
    ctx: typer.Context,
    account_id: str = typer.Argument(..., help="Account public key (G...)."),
) -> None:
    """Show an account: sequence, thresholds, balances and signers."""

    state = get_state(ctx)
    with reported_errors(), context.build_client(state) as client:
        record = client.execute(accounts.details(account_id))

    if state.json_output:
        typer.echo(dumps_record(record))
    else:
        console.print(build_account_panel(record))


@app.command("list")
def list_records(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Collection: " + ", ".join(COLLECTIONS) + "."),
    account: Optional[str] = typer.Option(None, "--account", "-a", help="Only records of this account."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Stop after this many records."),
    order: Optional[Order] = typer.Option(None, "--order", case_sensitive=False, help="asc or desc."),
    cursor: Optional[str] = typer.Option(None, "--cursor", help="Start after this paging token."),
    page_by: Optional[int] = typer.Option(
        None,
        "--page-by",
        min=1,
        max=MAX_LIMIT,
        clamp=True,
        help="Records per page (defaults to HORIZON_PAGE_SIZE).",
    ),
    all_pages: bool = typer.Option(False, "--all", help="Do not ask before fetching the next page."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Also write the records to a JSON file."),
) -> None:
    """List a collection page by page."""

    state = get_state(ctx)
    endpoint = collection_endpoint(kind, account)
    size = page_by or state.settings.page_size
    endpoint = endpoint.with_limit(size).with_order(order).with_cursor(cursor)

    shown: list[Record] = []
    with reported_errors(), context.build_client(state) as client:
        pager = client.paginate(endpoint)
        while True:
            want = size if limit is None else min(size, limit - len(shown))
            batch = list(islice(pager, want))
            if batch:
                shown.extend(batch)
                if not state.json_output:
                    console.print(render_records(endpoint.kind, batch, title=kind.lower()))

            has_more = pager.remaining > 0 or pager.pending is not None
            if not has_more or (limit is not None and len(shown) >= limit):
                break
            if all_pages:
                continue
            if state.json_output or not typer.confirm("Next page?", default=True):
                break

    if state.json_output:
        typer.echo(dumps_records(shown))
    elif not shown:
        console.print("[dim]No records.[/dim]")

    if output is not None:
        path = export_records_json(records=shown, output_path=output)
        err_console.print(f"[green]Saved {len(shown)} record(s) to:[/green] {path}")


def _report_disconnect(cause: Exception | None, delay: float) -> None:
    reason = str(cause) if cause is not None else "closed by server"
    err_console.print(f"[yellow]Disconnected[/yellow] ({reason}); retrying in {delay:.1f}s")


def _report_reconnect(cursor: Cursor) -> None:
    err_console.print(f"[green]Reconnected[/green] from cursor {cursor.token or 'start'}")


@app.command()
def stream(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Collection to follow: " + ", ".join(COLLECTIONS) + "."),
    account: Optional[str] = typer.Option(None, "--account", "-a", help="Only records of this account."),
    cursor: str = typer.Option(Cursor.NOW_TOKEN, "--cursor", help="Resume after this token ('now' = new records only)."),
    max_events: Optional[int] = typer.Option(None, "--max-events", min=1, help="Stop after this many records."),
) -> None:
    """Follow a live feed. Ctrl-C stops it."""

    state = get_state(ctx)
    endpoint = collection_endpoint(kind, account)
    hooks = StreamHooks(disconnected=_report_disconnect, reconnected=_report_reconnect)

    delivered = 0
    with reported_errors(), context.build_client(state) as client:
        subscription = client.stream(endpoint, cursor=Cursor(cursor), hooks=hooks)
        try:
            for event in subscription:
                if state.json_output:
                    typer.echo(json.dumps(event.record.to_payload(), ensure_ascii=False, sort_keys=True))
                else:
                    console.print(record_summary(event.record, cursor=event.cursor.token))
                delivered += 1
                if max_events is not None and delivered >= max_events:
                    break
        except KeyboardInterrupt:
            err_console.print("[dim]Stream cancelled.[/dim]")
        finally:
            subscription.cancel()


def run() -> None:
    app()


if __name__ == "__main__":
    run()
