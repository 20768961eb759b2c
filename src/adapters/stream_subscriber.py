"""Suscripción a feeds en vivo (server-sent events).

Máquina de estados: CONNECTING -> STREAMING -> (RECONNECTING | CLOSED).

- CONNECTING: abre la conexión con el último cursor visto (o "now").
- STREAMING: decodifica un evento a la vez y lo entrega en orden de envío;
  actualiza el cursor para que una reconexión reanude en el punto correcto.
- RECONNECTING: ante pérdida de conexión (error de transporte, timeout, 5xx,
  429 o cierre del servidor) reintenta con espera exponencial acotada, sin
  límite de intentos. Cada desconexión se notifica por `StreamHooks` y log.
- CLOSED: solo por cancelación del llamador o rechazo no reintentable
  (ApiError 4xx, error de decodificación). Es terminal.

La cancelación es cooperativa: libera la conexión, interrumpe la espera de
reconexión y garantiza que no se entregan eventos tras confirmarse.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, AsyncIterator, Callable, Iterator

import httpx

from adapters.http_client import translate_error
from core.domain.paging import Cursor, StreamEvent
from core.endpoints.base import Capability, Endpoint
from core.errors import ApiError, ConstructionError, HorizonError, TransportError
from core.services.response_interpreter import decode_problem
from core.services.sse import CLOSE_EVENT, OPEN_EVENT, SseDecoder, decode_stream_event

if TYPE_CHECKING:  # pragma: no cover
    from adapters.horizon_client import AsyncHorizonClient, HorizonClient

log = logging.getLogger(__name__)


class StreamState(str, Enum):
    CONNECTING = "connecting"
    STREAMING = "streaming"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"


@dataclass
class StreamHooks:
    """Callbacks opcionales para capas de UI (desconexiones pasajeras)."""

    disconnected: Callable[[Exception | None, float], None] | None = None
    reconnected: Callable[[Cursor], None] | None = None


class _ServerClosed(Exception):
    """El servidor envió el evento de control `close`."""


MIN_BACKOFF_SECONDS = 0.05


def backoff_delay(attempt: int, initial: float, maximum: float) -> float:
    """Espera exponencial acotada; nunca baja de `MIN_BACKOFF_SECONDS`."""

    return max(MIN_BACKOFF_SECONDS, min(maximum, initial * (2**attempt)))


def is_transient(exc: Exception) -> bool:
    if isinstance(exc, TransportError):
        return True
    if isinstance(exc, ApiError):
        return exc.is_transient
    return False


class _SubscriptionCore:
    """Estado y decodificación compartidos por ambas variantes."""

    def __init__(
        self,
        endpoint: Endpoint,
        *,
        hooks: StreamHooks | None = None,
        initial_backoff: float = 1.0,
        max_backoff: float = 30.0,
    ) -> None:
        if endpoint.capability is not Capability.STREAM:
            raise ConstructionError(f"{endpoint.path} is not a stream endpoint")
        self.endpoint = endpoint
        self.hooks = hooks or StreamHooks()
        self._initial_backoff = initial_backoff
        self._max_backoff = max_backoff
        self._cursor = endpoint.cursor if endpoint.cursor is not None else Cursor.start()
        self._state = StreamState.CONNECTING
        self._attempt = 0
        self._retry_hint: float | None = None
        self._decoder = SseDecoder()

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def last_cursor(self) -> Cursor:
        """Cursor desde el que reanudaría una reconexión."""

        return self._cursor

    def _handle_line(self, line: str) -> StreamEvent | None:
        sse = self._decoder.feed(line)
        if self._decoder.retry_ms is not None:
            self._retry_hint = self._decoder.retry_ms / 1000.0
        if sse is None or sse.event == OPEN_EVENT:
            return None
        if sse.event == CLOSE_EVENT:
            raise _ServerClosed()
        event = decode_stream_event(sse, self.endpoint.kind, previous=self._cursor)
        self._cursor = event.cursor
        self._attempt = 0
        return event

    def _on_connected(self) -> None:
        reconnecting = self._state is StreamState.RECONNECTING
        self._state = StreamState.STREAMING
        self._decoder = SseDecoder()
        if reconnecting:
            log.info("Stream %s resumed from cursor %r", self.endpoint.path, self._cursor.token)
            if self.hooks.reconnected is not None:
                self.hooks.reconnected(self._cursor)

    def _on_disconnect(self, cause: Exception | None) -> float:
        initial = self._retry_hint if self._retry_hint is not None else self._initial_backoff
        delay = backoff_delay(self._attempt, initial, self._max_backoff)
        self._attempt += 1
        self._state = StreamState.RECONNECTING
        log.warning(
            "Stream %s disconnected (%s); reconnecting in %.2fs from cursor %r",
            self.endpoint.path,
            cause or "closed by server",
            delay,
            self._cursor.token,
        )
        if self.hooks.disconnected is not None:
            self.hooks.disconnected(cause, delay)
        return delay


class StreamSubscription(_SubscriptionCore, Iterator[StreamEvent]):
    """Variante bloqueante. `cancel()` se puede llamar desde otro hilo."""

    def __init__(
        self,
        client: "HorizonClient",
        endpoint: Endpoint,
        *,
        hooks: StreamHooks | None = None,
        initial_backoff: float = 1.0,
        max_backoff: float = 30.0,
    ) -> None:
        super().__init__(endpoint, hooks=hooks, initial_backoff=initial_backoff, max_backoff=max_backoff)
        self._client = client
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._response: httpx.Response | None = None
        self._lines: Iterator[str] | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def connect(self) -> None:
        """Abre la conexión. Los errores suben al llamador."""

        spec = self._client.prepare(self.endpoint, resume=self._cursor)
        response = self._client.open_stream(spec)
        if not 200 <= response.status_code < 300:
            try:
                body = response.read()
            finally:
                response.close()
            raise decode_problem(response.status_code, response.headers, body)

        with self._lock:
            if self._cancelled.is_set():
                response.close()
                return
            self._response = response
            self._lines = response.iter_lines()
        self._on_connected()

    def _drop_connection(self) -> None:
        with self._lock:
            response, self._response, self._lines = self._response, None, None
        if response is not None:
            response.close()

    def _reconnect(self) -> None:
        try:
            self.connect()
        except HorizonError as exc:
            if not is_transient(exc):
                self._close()
                raise
            self._cancelled.wait(self._on_disconnect(exc))

    def __iter__(self) -> "StreamSubscription":
        return self

    def __next__(self) -> StreamEvent:
        while True:
            if self._cancelled.is_set() or self._state is StreamState.CLOSED:
                raise StopIteration
            if self._lines is None:
                self._reconnect()
                continue

            cause: Exception | None = None
            try:
                line = next(self._lines)
            except StopIteration:
                pass
            except (httpx.RequestError, httpx.StreamError) as exc:
                if self._cancelled.is_set():
                    continue
                cause = translate_error(exc, self.endpoint.path) if isinstance(exc, httpx.RequestError) else exc
            else:
                try:
                    event = self._handle_line(line)
                except _ServerClosed:
                    pass
                except HorizonError:
                    self._close()
                    raise
                else:
                    if event is None:
                        continue
                    with self._lock:
                        if not self._cancelled.is_set():
                            return event
                    continue

            self._drop_connection()
            if not self._cancelled.is_set():
                self._cancelled.wait(self._on_disconnect(cause))

    def _close(self) -> None:
        self._state = StreamState.CLOSED
        self._drop_connection()

    def cancel(self) -> None:
        """Cancela la suscripción; al volver, no se entregan más eventos."""

        with self._lock:
            self._cancelled.set()
            self._state = StreamState.CLOSED
            response, self._response, self._lines = self._response, None, None
        if response is not None:
            response.close()
        log.debug("Stream %s cancelled", self.endpoint.path)

    close = cancel

    def __enter__(self) -> "StreamSubscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()


class AsyncStreamSubscription(_SubscriptionCore, AsyncIterator[StreamEvent]):
    """Variante asíncrona: suspende solo en I/O y en la espera de reconexión."""

    def __init__(
        self,
        client: "AsyncHorizonClient",
        endpoint: Endpoint,
        *,
        hooks: StreamHooks | None = None,
        initial_backoff: float = 1.0,
        max_backoff: float = 30.0,
    ) -> None:
        super().__init__(endpoint, hooks=hooks, initial_backoff=initial_backoff, max_backoff=max_backoff)
        self._client = client
        self._cancelled = asyncio.Event()
        self._response: httpx.Response | None = None
        self._lines: AsyncIterator[str] | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    async def connect(self) -> None:
        spec = self._client.prepare(self.endpoint, resume=self._cursor)
        response = await self._client.open_stream(spec)
        if not 200 <= response.status_code < 300:
            try:
                body = await response.aread()
            finally:
                await response.aclose()
            raise decode_problem(response.status_code, response.headers, body)

        if self._cancelled.is_set():
            await response.aclose()
            return
        self._response = response
        self._lines = response.aiter_lines()
        self._on_connected()

    async def _sleep(self, delay: float) -> None:
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def _drop_connection(self) -> None:
        response, self._response, self._lines = self._response, None, None
        if response is not None:
            await response.aclose()

    async def _reconnect(self) -> None:
        try:
            await self.connect()
        except HorizonError as exc:
            if not is_transient(exc):
                await self._close()
                raise
            await self._sleep(self._on_disconnect(exc))

    def __aiter__(self) -> "AsyncStreamSubscription":
        return self

    async def __anext__(self) -> StreamEvent:
        while True:
            if self._cancelled.is_set() or self._state is StreamState.CLOSED:
                raise StopAsyncIteration
            if self._lines is None:
                await self._reconnect()
                continue

            cause: Exception | None = None
            try:
                line = await self._lines.__anext__()
            except StopAsyncIteration:
                pass
            except (httpx.RequestError, httpx.StreamError) as exc:
                if self._cancelled.is_set():
                    continue
                cause = translate_error(exc, self.endpoint.path) if isinstance(exc, httpx.RequestError) else exc
            else:
                try:
                    event = self._handle_line(line)
                except _ServerClosed:
                    pass
                except HorizonError:
                    await self._close()
                    raise
                else:
                    if event is None or self._cancelled.is_set():
                        continue
                    return event

            await self._drop_connection()
            if not self._cancelled.is_set():
                await self._sleep(self._on_disconnect(cause))

    async def _close(self) -> None:
        self._state = StreamState.CLOSED
        await self._drop_connection()

    async def cancel(self) -> None:
        """Cancela la suscripción y libera la conexión."""

        self._cancelled.set()
        self._state = StreamState.CLOSED
        await self._drop_connection()
        log.debug("Stream %s cancelled", self.endpoint.path)

    aclose = cancel

    async def __aenter__(self) -> "AsyncStreamSubscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.cancel()
