"""Cursor de paginación: una colección como secuencia perezosa de registros.

Oculta la mecánica página a página. Mantiene la última página traída y la
posición de lectura dentro de ella; al agotarla sigue el enlace de su
dirección (`next` o `prev`) y trae la siguiente.

Reglas:
- Una página vacía con enlace no termina la secuencia.
- Un enlace que deriva el mismo contrato que produjo la página actual no
  avanza (Horizon lo repite en la última página vacía) y se trata como ausente.
- Si traer una página falla, el error sube al llamador y el cursor queda en la
  misma posición: volver a pedir el siguiente elemento reintenta la petición.
- Un cursor se compromete con una dirección; para cambiarla se crea otro
  (`reverse`).
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Iterator

from core.domain.models import Record
from core.domain.paging import Page, PageDirection
from core.endpoints.base import Capability, Endpoint
from core.errors import ConstructionError
from core.interfaces.fetcher import AsyncPageFetcher, PageFetcher

log = logging.getLogger(__name__)


def _opposite(direction: PageDirection) -> PageDirection:
    return PageDirection.PREV if direction is PageDirection.NEXT else PageDirection.NEXT


class _CursorState:
    """Estado compartido por las variantes síncrona y asíncrona."""

    def __init__(
        self,
        *,
        endpoint: Endpoint | None = None,
        page: Page | None = None,
        direction: PageDirection | str = PageDirection.NEXT,
    ) -> None:
        if (endpoint is None) == (page is None):
            raise ConstructionError("A pagination cursor starts from exactly one of an endpoint or a page")
        if endpoint is not None and endpoint.capability is not Capability.PAGE:
            raise ConstructionError(f"{endpoint.path} does not produce pages")

        self.direction = PageDirection(direction)
        self._page: Page | None = None
        self._index = 0
        self._pending: Endpoint | None = endpoint
        if page is not None:
            self._accept(page)

    @property
    def page(self) -> Page | None:
        """Última página traída."""

        return self._page

    @property
    def remaining(self) -> int:
        """Registros de la página actual que aún no se entregaron."""

        if self._page is None:
            return 0
        return len(self._page.records) - self._index

    @property
    def pending(self) -> Endpoint | None:
        """Contrato que se pedirá al agotar la página actual (None = fin)."""

        return self._pending

    def _take(self) -> Record | None:
        if self._page is not None and self._index < len(self._page.records):
            record = self._page.records[self._index]
            self._index += 1
            return record
        return None

    def _accept(self, page: Page) -> None:
        self._page = page
        self._index = 0
        following = page.endpoint_for(self.direction)
        if following is not None and following == page.endpoint:
            log.debug("Link %s of %s does not advance; pagination ends", self.direction.value, page.endpoint.path)
            following = None
        self._pending = following

    def _reversed_start(self) -> Endpoint | None:
        if self._page is None:
            return None
        return self._page.endpoint_for(_opposite(self.direction))


class PageCursor(_CursorState, Iterator[Record]):
    """Variante bloqueante."""

    def __init__(
        self,
        fetcher: PageFetcher,
        *,
        endpoint: Endpoint | None = None,
        page: Page | None = None,
        direction: PageDirection | str = PageDirection.NEXT,
    ) -> None:
        super().__init__(endpoint=endpoint, page=page, direction=direction)
        self._fetcher = fetcher

    def __iter__(self) -> "PageCursor":
        return self

    def __next__(self) -> Record:
        while True:
            record = self._take()
            if record is not None:
                return record
            if self._pending is None:
                raise StopIteration
            self._accept(self._fetcher.fetch_page(self._pending))

    def reverse(self) -> "PageCursor | None":
        """Nuevo cursor desde la página actual en la dirección opuesta."""

        start = self._reversed_start()
        if start is None:
            return None
        return PageCursor(self._fetcher, endpoint=start, direction=_opposite(self.direction))


class AsyncPageCursor(_CursorState, AsyncIterator[Record]):
    """Variante asíncrona: suspende solo mientras trae una página."""

    def __init__(
        self,
        fetcher: AsyncPageFetcher,
        *,
        endpoint: Endpoint | None = None,
        page: Page | None = None,
        direction: PageDirection | str = PageDirection.NEXT,
    ) -> None:
        super().__init__(endpoint=endpoint, page=page, direction=direction)
        self._fetcher = fetcher

    def __aiter__(self) -> "AsyncPageCursor":
        return self

    async def __anext__(self) -> Record:
        while True:
            record = self._take()
            if record is not None:
                return record
            if self._pending is None:
                raise StopAsyncIteration
            self._accept(await self._fetcher.fetch_page(self._pending))

    def reverse(self) -> "AsyncPageCursor | None":
        start = self._reversed_start()
        if start is None:
            return None
        return AsyncPageCursor(self._fetcher, endpoint=start, direction=_opposite(self.direction))
