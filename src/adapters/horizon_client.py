"""Clientes de Horizon: variante bloqueante y variante asíncrona.

Ambas comparten `_ClientCore` (validación, construcción de la petición e
interpretación de la respuesta) y solo difieren en cómo invocan el transporte.
Por eso el resultado (campos, clasificación de errores, enlaces de página) es
idéntico sin importar la variante.

Un cliente es inmutable tras construirse: dirección base, timeout y transporte
son de solo lectura, así que se puede compartir entre llamadores concurrentes
sin sincronización externa.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from adapters.http_client import (
    build_async_client,
    build_sync_client,
    to_httpx_request,
    translate_transport_errors,
)
from adapters.stream_subscriber import AsyncStreamSubscription, StreamHooks, StreamSubscription
from core.config import AppSettings
from core.domain.kinds import Network
from core.domain.models import Record
from core.domain.paging import Cursor, Page, PageDirection
from core.endpoints.base import Capability, Endpoint
from core.errors import ConstructionError, DecodeError
from core.services.pagination import AsyncPageCursor, PageCursor
from core.services.request_builder import RequestSpec, build_request, normalize_base_url
from core.services.response_interpreter import interpret_response

log = logging.getLogger(__name__)


class _ClientCore:
    """Lógica independiente del transporte."""

    def __init__(
        self,
        server: str | Network | None = None,
        *,
        timeout: float | None = None,
        settings: AppSettings | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._base_url = normalize_base_url(server if server is not None else self._settings.server)
        self._network = Network.from_value(self._base_url)
        if timeout is not None and timeout <= 0:
            raise ConstructionError(f"timeout must be positive, got {timeout!r}")
        self._timeout = timeout if timeout is not None else self._settings.http_timeout_seconds

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def network(self) -> Network | None:
        """Preset al que apunta el cliente, o None si es una dirección propia."""

        return self._network

    def is_public(self) -> bool:
        return self._network is Network.PUBLIC

    def is_testnet(self) -> bool:
        return self._network is Network.TESTNET

    def prepare(self, endpoint: Endpoint, *, resume: Cursor | None = None) -> RequestSpec:
        """Valida el contrato y construye la petición (sin I/O)."""

        endpoint.validate()
        return build_request(
            endpoint,
            base_url=self._base_url,
            timeout=self._timeout,
            user_agent=self._settings.user_agent,
            resume=resume,
        )

    def _interpret(self, endpoint: Endpoint, response: httpx.Response) -> Record | Page:
        log.debug("%s %s -> HTTP %s", response.request.method, response.request.url, response.status_code)
        return interpret_response(endpoint, response.status_code, response.headers, response.content)

    def _stream_endpoint(self, endpoint: Endpoint, cursor: Cursor | None) -> Endpoint:
        if endpoint.capability is Capability.STREAM:
            return endpoint if cursor is None else endpoint.with_cursor(cursor)
        return endpoint.as_stream(cursor)

    def _stream_options(self) -> dict[str, Any]:
        return {
            "initial_backoff": self._settings.stream_initial_backoff_seconds,
            "max_backoff": self._settings.stream_max_backoff_seconds,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._base_url!r}, timeout={self._timeout!r})"


class HorizonClient(_ClientCore):
    """Cliente bloqueante: cada llamada retiene el hilo hasta tener la respuesta."""

    def __init__(
        self,
        server: str | Network | None = None,
        *,
        timeout: float | None = None,
        settings: AppSettings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(server, timeout=timeout, settings=settings)
        self._http = build_sync_client(self._settings, transport=transport)

    @classmethod
    def public(cls, **kwargs: Any) -> "HorizonClient":
        return cls(Network.PUBLIC, **kwargs)

    @classmethod
    def testnet(cls, **kwargs: Any) -> "HorizonClient":
        return cls(Network.TESTNET, **kwargs)

    @classmethod
    def from_settings(cls, settings: AppSettings | None = None, **kwargs: Any) -> "HorizonClient":
        settings = settings or AppSettings()
        return cls(settings.server, settings=settings, **kwargs)

    def _send(self, spec: RequestSpec) -> httpx.Response:
        request = to_httpx_request(self._http, spec)
        with translate_transport_errors(spec.url):
            return self._http.send(request)

    def open_stream(self, spec: RequestSpec) -> httpx.Response:
        """Abre una respuesta en modo streaming; el llamador la cierra."""

        request = to_httpx_request(self._http, spec)
        with translate_transport_errors(spec.url):
            return self._http.send(request, stream=True)

    def execute(self, endpoint: Endpoint) -> Record | Page | StreamSubscription:
        """Ejecuta un contrato según su capacidad.

        - RECORD -> registro decodificado.
        - PAGE -> `Page` (ver `paginate` para recorrer todas).
        - STREAM -> `StreamSubscription` ya conectada.
        """

        if endpoint.capability is Capability.STREAM:
            return self.stream(endpoint)
        spec = self.prepare(endpoint)
        return self._interpret(endpoint, self._send(spec))

    def fetch_page(self, endpoint: Endpoint) -> Page:
        if endpoint.capability is not Capability.PAGE:
            raise ConstructionError(f"{endpoint.path} does not produce pages")
        page = self.execute(endpoint)
        if not isinstance(page, Page):
            raise DecodeError(f"{endpoint.path} did not return a page")
        return page

    def paginate(
        self,
        source: Endpoint | Page,
        *,
        direction: PageDirection | str = PageDirection.NEXT,
    ) -> PageCursor:
        """Cursor perezoso sobre una colección, desde un contrato o una página ya traída."""

        if isinstance(source, Page):
            return PageCursor(self, page=source, direction=direction)
        return PageCursor(self, endpoint=source, direction=direction)

    def stream(
        self,
        endpoint: Endpoint,
        *,
        cursor: Cursor | None = None,
        hooks: StreamHooks | None = None,
    ) -> StreamSubscription:
        """Suscribe a un feed en vivo; vuelve cuando la conexión está establecida."""

        endpoint = self._stream_endpoint(endpoint, cursor)
        endpoint.validate()
        subscription = StreamSubscription(self, endpoint, hooks=hooks, **self._stream_options())
        subscription.connect()
        return subscription

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "HorizonClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class AsyncHorizonClient(_ClientCore):
    """Cliente asíncrono: suspende solo en el límite de I/O del transporte."""

    def __init__(
        self,
        server: str | Network | None = None,
        *,
        timeout: float | None = None,
        settings: AppSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(server, timeout=timeout, settings=settings)
        self._http = build_async_client(self._settings, transport=transport)

    @classmethod
    def public(cls, **kwargs: Any) -> "AsyncHorizonClient":
        return cls(Network.PUBLIC, **kwargs)

    @classmethod
    def testnet(cls, **kwargs: Any) -> "AsyncHorizonClient":
        return cls(Network.TESTNET, **kwargs)

    @classmethod
    def from_settings(cls, settings: AppSettings | None = None, **kwargs: Any) -> "AsyncHorizonClient":
        settings = settings or AppSettings()
        return cls(settings.server, settings=settings, **kwargs)

    async def _send(self, spec: RequestSpec) -> httpx.Response:
        request = to_httpx_request(self._http, spec)
        with translate_transport_errors(spec.url):
            return await self._http.send(request)

    async def open_stream(self, spec: RequestSpec) -> httpx.Response:
        request = to_httpx_request(self._http, spec)
        with translate_transport_errors(spec.url):
            return await self._http.send(request, stream=True)

    async def execute(self, endpoint: Endpoint) -> Record | Page | AsyncStreamSubscription:
        """Igual que `HorizonClient.execute`, sin bloquear el hilo.

        Cancelar la tarea mientras espera libera la conexión subyacente.
        """

        if endpoint.capability is Capability.STREAM:
            return await self.stream(endpoint)
        spec = self.prepare(endpoint)
        return self._interpret(endpoint, await self._send(spec))

    async def fetch_page(self, endpoint: Endpoint) -> Page:
        if endpoint.capability is not Capability.PAGE:
            raise ConstructionError(f"{endpoint.path} does not produce pages")
        page = await self.execute(endpoint)
        if not isinstance(page, Page):
            raise DecodeError(f"{endpoint.path} did not return a page")
        return page

    def paginate(
        self,
        source: Endpoint | Page,
        *,
        direction: PageDirection | str = PageDirection.NEXT,
    ) -> AsyncPageCursor:
        if isinstance(source, Page):
            return AsyncPageCursor(self, page=source, direction=direction)
        return AsyncPageCursor(self, endpoint=source, direction=direction)

    async def stream(
        self,
        endpoint: Endpoint,
        *,
        cursor: Cursor | None = None,
        hooks: StreamHooks | None = None,
    ) -> AsyncStreamSubscription:
        endpoint = self._stream_endpoint(endpoint, cursor)
        endpoint.validate()
        subscription = AsyncStreamSubscription(self, endpoint, hooks=hooks, **self._stream_options())
        await subscription.connect()
        return subscription

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "AsyncHorizonClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
