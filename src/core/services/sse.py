"""Decodificación incremental de server-sent events.

El servidor empuja eventos de texto (`id:`, `event:`, `data:`, `retry:`)
separados por una línea en blanco. El decodificador consume una línea a la vez
y no retiene nada más allá del evento en curso.

Horizon añade dos eventos de control que no son registros:
- `open` con data `"hello"` al establecer la conexión.
- `close` con data `"byebye"` cuando el servidor cierra el feed.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.domain.kinds import RecordKind
from core.domain.models import decode_record
from core.domain.paging import Cursor, StreamEvent
from core.services.response_interpreter import load_json

OPEN_EVENT = "open"
CLOSE_EVENT = "close"
DEFAULT_EVENT = "message"


@dataclass(frozen=True)
class ServerSentEvent:
    data: str
    event: str = DEFAULT_EVENT
    id: str | None = None
    retry: int | None = None

    @property
    def is_control(self) -> bool:
        return self.event in (OPEN_EVENT, CLOSE_EVENT)


class SseDecoder:
    """Acumula líneas hasta completar un evento."""

    def __init__(self) -> None:
        self.last_event_id: str | None = None
        self.retry_ms: int | None = None
        self._data: list[str] = []
        self._event: str | None = None
        self._id: str | None = None

    def feed(self, line: str) -> ServerSentEvent | None:
        """Procesa una línea; devuelve el evento si la línea lo completa."""

        line = line.rstrip("\r\n")
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if name == "data":
            self._data.append(value)
        elif name == "event":
            self._event = value
        elif name == "id":
            if "\0" not in value:
                self._id = value
        elif name == "retry":
            if value.isdigit():
                self.retry_ms = int(value)
        return None

    def _dispatch(self) -> ServerSentEvent | None:
        if self._id is not None:
            self.last_event_id = self._id
        data, event, event_id = self._data, self._event, self._id
        self._data, self._event, self._id = [], None, None
        if not data:
            return None
        return ServerSentEvent(
            data="\n".join(data),
            event=event or DEFAULT_EVENT,
            id=event_id if event_id is not None else self.last_event_id,
            retry=self.retry_ms,
        )


def decode_stream_event(
    sse: ServerSentEvent,
    kind: RecordKind,
    *,
    previous: Cursor | None = None,
) -> StreamEvent:
    """Decodifica un evento de datos en registro + cursor de reanudación.

    El cursor es el id del evento; si el servidor no lo envía se usa el
    `paging_token` del registro, y si tampoco hay, se conserva `previous`.
    """

    record = decode_record(kind, load_json(sse.data))
    token = sse.id or getattr(record, "paging_token", None)
    if token:
        cursor = Cursor(str(token))
    else:
        cursor = previous if previous is not None else Cursor.now()
    return StreamEvent(record=record, cursor=cursor, event_id=sse.id)
