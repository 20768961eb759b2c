"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers y redirects para el cliente síncrono y el
  asíncrono.
- Traduce las excepciones de transporte de httpx a la taxonomía del Core.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import httpx

from core.config import AppSettings
from core.errors import TransportError, TransportTimeout
from core.services.request_builder import JSON_ACCEPT, RequestSpec


def _default_headers(settings: AppSettings, extra_headers: dict[str, str] | None) -> dict[str, str]:
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": JSON_ACCEPT,
    }
    if extra_headers:
        headers.update(extra_headers)
    return headers


def build_sync_client(
    settings: AppSettings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
    extra_headers: dict[str, str] | None = None,
) -> httpx.Client:
    """Crea un `httpx.Client` con defaults seguros."""

    settings = settings or AppSettings()
    return httpx.Client(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=_default_headers(settings, extra_headers),
        transport=transport,
    )


def build_async_client(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    extra_headers: dict[str, str] | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers para que ambas variantes se comporten igual.
    """

    settings = settings or AppSettings()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=_default_headers(settings, extra_headers),
        transport=transport,
    )


def to_httpx_request(client: httpx.Client | httpx.AsyncClient, spec: RequestSpec) -> httpx.Request:
    if spec.timeout is None:
        return client.build_request(spec.method, spec.url, headers=dict(spec.headers))
    return client.build_request(
        spec.method,
        spec.url,
        headers=dict(spec.headers),
        timeout=httpx.Timeout(spec.timeout),
    )


def translate_error(exc: httpx.RequestError, url: str | None = None) -> TransportError:
    if isinstance(exc, httpx.TimeoutException):
        return TransportTimeout(f"Request timed out: {exc}", url=url)
    if isinstance(exc, httpx.TooManyRedirects):
        return TransportError(f"Redirect loop: {exc}", url=url)
    if isinstance(exc, httpx.DecodingError):
        return TransportError(f"Undecodable response body ({type(exc).__name__}): {exc}", url=url)
    return TransportError(f"Transport failure ({type(exc).__name__}): {exc}", url=url)


@contextmanager
def translate_transport_errors(url: str | None = None) -> Iterator[None]:
    """Convierte cualquier `httpx.RequestError` en `TransportError`.

    Incluye bucles de redirección y cuerpos con `Content-Encoding` inválido,
    que httpx no clasifica como errores de transporte.
    """

    try:
        yield
    except httpx.RequestError as exc:
        raise translate_error(exc, url) from exc
