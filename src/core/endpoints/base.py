"""Contrato de endpoint: descripción tipada e inmutable de una lectura remota.

Por qué un valor inmutable:
- Construir o modificar un endpoint nunca hace I/O ni falla; los `with_*`
  devuelven un valor nuevo (estilo builder).
- Dos endpoints con el mismo path y los mismos parámetros construyen la misma
  petición byte a byte (reintentos idempotentes, tests deterministas).

Los parámetros son una secuencia ordenada de slots declarados al construir el
endpoint (con valor None hasta que se fijan). Así el orden de serialización
depende solo del tipo de endpoint y no del orden en que se llamó a `with_*`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable
from urllib.parse import parse_qsl, quote, urlsplit

from core.domain.kinds import RecordKind
from core.domain.paging import Cursor
from core.errors import ConstructionError

MAX_LIMIT = 200

PAGING_PARAMS: tuple[str, ...] = ("cursor", "order", "limit")


class Capability(str, Enum):
    """Forma de respuesta a la que se compromete un endpoint."""

    RECORD = "record"
    PAGE = "page"
    STREAM = "stream"


class Order(str, Enum):
    ASC = "asc"
    DESC = "desc"


ParamValue = str | int | bool | Enum | Cursor | None


def _param_value(value: ParamValue) -> str | None:
    """Valor tal como viaja en la query; None (o vacío) deja el slot sin fijar."""

    if value is None or value == "":
        return None
    if isinstance(value, Cursor):
        return value.token or None
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class Endpoint:
    """Descripción de una operación remota de solo lectura.

    - `path`: ruta relativa al servidor (ya con segmentos codificados).
    - `kind`: tipo de registro que produce.
    - `capability`: registro único, página o stream.
    - `params`: slots ordenados nombre -> valor opcional.
    - `streamable`: si el servidor ofrece feed en vivo para esta ruta.
    """

    path: str
    kind: RecordKind
    capability: Capability
    params: tuple[tuple[str, str | None], ...] = ()
    streamable: bool = False

    @classmethod
    def record(
        cls,
        path: str,
        kind: RecordKind,
        *,
        params: Iterable[str] = (),
        streamable: bool = False,
    ) -> "Endpoint":
        return cls(
            path=path,
            kind=kind,
            capability=Capability.RECORD,
            params=tuple((name, None) for name in params),
            streamable=streamable,
        )

    @classmethod
    def collection(
        cls,
        path: str,
        kind: RecordKind,
        *,
        params: Iterable[str] = (),
        paging: Iterable[str] = PAGING_PARAMS,
        streamable: bool = False,
    ) -> "Endpoint":
        """Endpoint de página. Los slots de paginación van tras los propios."""

        own = tuple(params)
        names = [*own, *(p for p in paging if p not in own)]
        return cls(
            path=path,
            kind=kind,
            capability=Capability.PAGE,
            params=tuple((name, None) for name in names),
            streamable=streamable,
        )

    # -- lectura -------------------------------------------------------------

    def param(self, name: str) -> str | None:
        for key, value in self.params:
            if key == name:
                return value
        return None

    @property
    def cursor(self) -> Cursor | None:
        token = self.param("cursor")
        return Cursor(token) if token is not None else None

    @property
    def limit(self) -> int | None:
        value = self.param("limit")
        return int(value) if value is not None and value.isdigit() else None

    @property
    def order(self) -> Order | None:
        value = self.param("order")
        try:
            return Order(value) if value is not None else None
        except ValueError:
            return None

    def query(self) -> list[tuple[str, str]]:
        """Parámetros con valor, en el orden de sus slots."""

        return [(key, value) for key, value in self.params if value is not None]

    # -- modificadores -------------------------------------------------------

    def with_param(self, name: str, value: ParamValue) -> "Endpoint":
        rendered = _param_value(value)
        if any(key == name for key, _ in self.params):
            params = tuple((key, rendered if key == name else old) for key, old in self.params)
        else:
            params = (*self.params, (name, rendered))
        return replace(self, params=params)

    def with_params(self, **values: ParamValue) -> "Endpoint":
        endpoint = self
        for name, value in values.items():
            endpoint = endpoint.with_param(name, value)
        return endpoint

    def with_cursor(self, cursor: Cursor | str | None) -> "Endpoint":
        return self.with_param("cursor", cursor)

    def with_limit(self, limit: int | None) -> "Endpoint":
        return self.with_param("limit", limit)

    def with_order(self, order: Order | str | None) -> "Endpoint":
        return self.with_param("order", order)

    def as_stream(self, cursor: Cursor | None = None) -> "Endpoint":
        """Contrato de stream sobre la misma ruta (por defecto desde "now")."""

        streamed = replace(self, capability=Capability.STREAM)
        return streamed.with_cursor(cursor if cursor is not None else Cursor.now())

    def follow(self, href: str) -> "Endpoint":
        """Deriva el contrato apuntado por un enlace de página.

        Los parámetros del enlace prevalecen; los del contrato original cubren
        los que el servidor no devolvió en el enlace. Un valor vacío en el
        enlace (`?cursor=`) deja el slot sin fijar.
        """

        parts = urlsplit(href)
        linked: dict[str, str | None] = {
            key: value or None for key, value in parse_qsl(parts.query, keep_blank_values=True)
        }
        params: list[tuple[str, str | None]] = [
            (key, linked.pop(key) if key in linked else value) for key, value in self.params
        ]
        params.extend((key, value) for key, value in linked.items() if value is not None)
        return replace(self, path=parts.path or self.path, params=tuple(params))

    # -- validación ----------------------------------------------------------

    def validate(self) -> None:
        """Comprueba combinaciones de parámetros antes de tocar la red."""

        if not self.path.startswith("/"):
            raise ConstructionError(f"Endpoint path must be absolute, got {self.path!r}")

        limit = self.param("limit")
        if limit is not None:
            if not limit.isdigit() or not 1 <= int(limit) <= MAX_LIMIT:
                raise ConstructionError(f"limit must be an integer between 1 and {MAX_LIMIT}, got {limit!r}")

        order = self.param("order")
        if order is not None and order not in (Order.ASC.value, Order.DESC.value):
            raise ConstructionError(f"order must be 'asc' or 'desc', got {order!r}")

        if self.capability is Capability.STREAM and not self.streamable:
            raise ConstructionError(f"{self.path} does not support streaming")


def path_segment(value: str | int) -> str:
    """Codifica un valor para usarlo como segmento de ruta."""

    return quote(str(value), safe="")
