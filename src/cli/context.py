"""Estado compartido entre comandos de la CLI.

Por qué un módulo aparte:
- `main` y `doctor` necesitan el mismo cliente sin importarse entre sí.
- `build_client` es el único punto donde la CLI crea un cliente; los tests lo
  reemplazan para inyectar un transporte falso.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from adapters.horizon_client import HorizonClient
from core.config import AppSettings
from core.errors import ApiError, HorizonError

console = Console()
err_console = Console(stderr=True)


@dataclass
class CliState:
    server: str | None = None
    json_output: bool = False
    verbose: bool = False
    settings: AppSettings = field(default_factory=AppSettings)

    @property
    def target(self) -> str:
        return self.server or self.settings.server


def configure_logging(verbose: bool) -> None:
    """Instala RichHandler en stderr (DEBUG con --verbose, si no WARNING)."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=verbose)],
        force=True,
    )
    # httpx registra cada request en INFO; solo interesa en modo verbose.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def build_client(state: CliState) -> HorizonClient:
    return HorizonClient(state.target, settings=state.settings)


def get_state(ctx: typer.Context) -> CliState:
    root = ctx.find_root()
    if not isinstance(root.obj, CliState):
        root.obj = CliState()
    return root.obj


def describe_error(exc: HorizonError) -> str:
    if isinstance(exc, ApiError):
        title = escape(exc.title or "request failed")
        lines = [f"[red]HTTP {exc.status}[/red] [bold]{exc.problem_type.value}[/bold]: {title}"]
        if exc.detail:
            lines.append(escape(exc.detail))
        for name, reason in sorted(exc.field_errors.items()):
            lines.append(f"  - {escape(name)}: {escape(reason)}")
        if exc.retry_after is not None:
            lines.append(f"Retry after {exc.retry_after:g}s")
        return "\n".join(lines)
    return f"[red]{type(exc).__name__}:[/red] {escape(str(exc))}"


@contextmanager
def reported_errors() -> Iterator[None]:
    """Convierte errores del cliente en mensaje legible y exit code 1."""

    try:
        yield
    except HorizonError as exc:
        err_console.print(describe_error(exc))
        raise typer.Exit(code=1) from exc
