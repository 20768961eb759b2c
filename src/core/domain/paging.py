"""Valores de navegación: cursores, páginas y eventos de stream.

Por qué separado de `models`:
- Los modelos describen recursos del servicio; estos valores describen
  *posiciones* dentro de colecciones y feeds, y los usa el Core para navegar.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from core.domain.models import Record

if TYPE_CHECKING:  # pragma: no cover
    from core.endpoints.base import Endpoint


@dataclass(frozen=True)
class Cursor:
    """Posición opaca de reanudación.

    El valor lo define el servidor (paging_token, id de evento SSE). El cliente
    no asume orden numérico ni lexicográfico entre cursores.
    `token=None` significa "desde el inicio" (no se envía parámetro).
    """

    token: str | None

    NOW_TOKEN = "now"

    @classmethod
    def now(cls) -> "Cursor":
        return cls(cls.NOW_TOKEN)

    @classmethod
    def start(cls) -> "Cursor":
        return cls(None)

    @property
    def is_now(self) -> bool:
        return self.token == self.NOW_TOKEN

    @property
    def is_start(self) -> bool:
        return self.token is None

    def __str__(self) -> str:
        return self.token if self.token is not None else ""


class PageDirection(str, Enum):
    """Enlace que sigue un cursor de paginación durante toda su vida."""

    NEXT = "next"
    PREV = "prev"


@dataclass(frozen=True)
class Page:
    """Lote ordenado de registros más enlaces de navegación.

    `endpoint` es el contrato que produjo la página; se usa para re-emitir la
    navegación porque el servidor no siempre incluye todos los parámetros en
    sus enlaces.
    """

    records: tuple[Record, ...]
    endpoint: "Endpoint"
    self_link: str | None = None
    next_link: str | None = None
    prev_link: str | None = None

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    def link(self, direction: PageDirection) -> str | None:
        return self.next_link if direction is PageDirection.NEXT else self.prev_link

    def endpoint_for(self, direction: PageDirection) -> "Endpoint | None":
        """Contrato para la página adyacente, o None si no hay enlace."""

        href = self.link(direction)
        if href is None:
            return None
        return self.endpoint.follow(href)

    def next_endpoint(self) -> "Endpoint | None":
        return self.endpoint_for(PageDirection.NEXT)

    def prev_endpoint(self) -> "Endpoint | None":
        return self.endpoint_for(PageDirection.PREV)


@dataclass(frozen=True)
class StreamEvent:
    """Un registro recibido por stream y el cursor para reanudar tras él."""

    record: Record
    cursor: Cursor
    event_id: str | None = field(default=None, compare=False)
