"""Construcción de peticiones a partir de un contrato de endpoint.

Funciones puras, compartidas por el cliente síncrono y el asíncrono: los dos
solo difieren en cómo invocan el transporte, nunca en cómo arman la petición.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote, urlencode, urlsplit

from core.domain.kinds import Network
from core.domain.paging import Cursor
from core.endpoints.base import Capability, Endpoint
from core.errors import ConstructionError

JSON_ACCEPT = "application/json"
STREAM_ACCEPT = "text/event-stream"


@dataclass(frozen=True)
class RequestSpec:
    """Descriptor de petición independiente del transporte."""

    method: str
    url: str
    headers: tuple[tuple[str, str], ...]
    timeout: float | None

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None


def normalize_base_url(server: str | Network) -> str:
    """Resuelve un preset o valida una URL base.

    Lanza `ConstructionError` si la dirección no es una URL http(s) absoluta.
    """

    if isinstance(server, Network):
        return server.url
    preset = Network.from_value(server)
    if preset is not None:
        return preset.url

    value = server.strip()
    parts = urlsplit(value)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise ConstructionError(f"Invalid server address: {server!r}")
    if parts.query or parts.fragment:
        raise ConstructionError(f"Server address must not carry a query or fragment: {server!r}")
    return value.rstrip("/")


def join_url(base_url: str, path: str) -> str:
    """Une base y ruta sin duplicar un prefijo de ruta de la base.

    Los enlaces de página pueden ser absolutos e incluir ya el prefijo
    (`https://host/horizon/ledgers?...`).
    """

    prefix = urlsplit(base_url).path.rstrip("/")
    if prefix and (path == prefix or path.startswith(prefix + "/")):
        path = path[len(prefix):]
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def build_request(
    endpoint: Endpoint,
    *,
    base_url: str,
    timeout: float | None,
    user_agent: str | None = None,
    resume: Cursor | None = None,
) -> RequestSpec:
    """Convierte un contrato en `RequestSpec`.

    - Los parámetros sin valor se omiten (nunca como string vacío).
    - El orden de la query es el de los slots del endpoint.
    - `resume` (solo streams) reemplaza el cursor y añade `Last-Event-ID`.
    """

    headers: list[tuple[str, str]] = []
    if endpoint.capability is Capability.STREAM:
        headers.append(("Accept", STREAM_ACCEPT))
        headers.append(("Cache-Control", "no-cache"))
        if resume is not None:
            endpoint = endpoint.with_cursor(resume)
            if resume.token is not None and not resume.is_now:
                headers.append(("Last-Event-ID", resume.token))
    else:
        headers.append(("Accept", JSON_ACCEPT))
    if user_agent:
        headers.append(("User-Agent", user_agent))

    url = join_url(base_url, endpoint.path)
    query = endpoint.query()
    if query:
        url = f"{url}?{urlencode(query, quote_via=quote)}"

    return RequestSpec(method="GET", url=url, headers=tuple(headers), timeout=timeout)
