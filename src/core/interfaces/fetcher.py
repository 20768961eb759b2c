"""Contratos que el Core necesita del cliente HTTP.

Por qué Protocol:
- El cursor de paginación depende de "algo que trae una página", no de un
  cliente concreto; así se prueba con fakes y sirve para ambas variantes.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.paging import Page
from core.endpoints.base import Endpoint


@runtime_checkable
class PageFetcher(Protocol):
    """Trae una página de forma bloqueante."""

    def fetch_page(self, endpoint: Endpoint) -> Page:
        ...


@runtime_checkable
class AsyncPageFetcher(Protocol):
    """Trae una página suspendiendo solo en el I/O."""

    async def fetch_page(self, endpoint: Endpoint) -> Page:
        ...
