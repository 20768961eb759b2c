"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from typing import Iterable

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.kinds import RecordKind
from core.domain.models import Account, HorizonRecord

# Columnas resumidas por tipo de registro.
_COLUMNS: dict[RecordKind, tuple[str, ...]] = {
    RecordKind.ACCOUNT: ("id", "sequence", "subentry_count"),
    RecordKind.ASSET: ("asset_code", "asset_issuer", "amount", "num_accounts"),
    RecordKind.EFFECT: ("id", "type", "account", "created_at"),
    RecordKind.LEDGER: ("sequence", "closed_at", "successful_transaction_count", "operation_count"),
    RecordKind.OFFER: ("id", "seller", "amount", "price"),
    RecordKind.OPERATION: ("id", "type", "source_account", "created_at"),
    RecordKind.ORDERBOOK: ("base", "counter"),
    RecordKind.PAYMENT_PATH: ("source_asset_type", "source_amount", "destination_amount"),
    RecordKind.TRADE: ("id", "ledger_close_time", "base_amount", "counter_amount"),
    RecordKind.TRADE_AGGREGATION: ("timestamp", "trade_count", "open", "close"),
    RecordKind.TRANSACTION: ("hash", "ledger", "created_at", "operation_count"),
}


def print_banner(console: Console, *, server: str) -> None:
    """Imprime el banner de bienvenida con el servidor activo."""

    title = Text("horizon", style="bold cyan")
    subtitle = Text(server, style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(0, 4)))


def _cell(value: object) -> str:
    if value is None:
        return "-"
    if isinstance(value, dict):
        return str(value.get("asset_code") or value.get("asset_type") or value)
    return str(value)


def build_records_table(kind: RecordKind, *, title: str | None = None) -> Table:
    table = Table(title=title or kind.value.replace("_", " ").title())
    for index, column in enumerate(_COLUMNS[kind]):
        table.add_column(column, style="cyan" if index == 0 else "white", no_wrap=index == 0)
    return table


def add_record_row(table: Table, record: HorizonRecord) -> None:
    values = record.model_dump()
    table.add_row(*(_cell(values.get(column)) for column in _COLUMNS[record.kind]))


def render_records(kind: RecordKind, records: Iterable[HorizonRecord], *, title: str | None = None) -> Table:
    table = build_records_table(kind, title=title)
    for record in records:
        add_record_row(table, record)
    return table


def build_account_panel(account: Account) -> Panel:
    """Panel con el detalle de una cuenta y sus balances."""

    body = Text()
    body.append(f"Sequence: {account.sequence}\n")
    if account.subentry_count is not None:
        body.append(f"Subentries: {account.subentry_count}\n")
    if account.thresholds:
        body.append(
            "Thresholds: " + ", ".join(f"{k}={v}" for k, v in sorted(account.thresholds.items())) + "\n"
        )
    if account.balances:
        body.append("\nBalances:\n", style="bold")
        for balance in account.balances:
            asset = "XLM" if balance.asset_type == "native" else f"{balance.asset_code}:{balance.asset_issuer}"
            body.append(f"- {balance.balance} {asset}\n")
    if account.signers:
        body.append(f"\nSigners: {len(account.signers)}", style="dim")

    return Panel(body, title=Text(account.id, style="bold yellow"), border_style="yellow")


def record_summary(record: HorizonRecord, *, cursor: str | None = None) -> Text:
    """Una línea por registro (para feeds en vivo)."""

    values = record.model_dump()
    line = Text()
    if cursor:
        line.append(f"{cursor} ", style="dim")
    line.append(record.kind.value, style="bold cyan")
    for column in _COLUMNS[record.kind]:
        line.append(f" {column}=", style="dim")
        line.append(_cell(values.get(column)))
    return line
