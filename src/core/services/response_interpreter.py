"""Interpretación de respuestas HTTP.

Clasifica cada respuesta en: registro decodificado, página decodificada o
error. Mantiene separados dos fallos que el llamador necesita distinguir:
- `ApiError`: el servidor rechazó la petición (status fuera de 2xx).
- `DecodeError`: status exitoso pero el cuerpo no cumple el esquema.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from pydantic import ValidationError

from core.domain.models import Problem, Record, decode_record
from core.domain.paging import Page
from core.endpoints.base import Capability, Endpoint
from core.errors import ApiError, DecodeError, ProblemType


def _header(headers: Mapping[str, str], name: str) -> str | None:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def _retry_after(headers: Mapping[str, str]) -> float | None:
    raw = _header(headers, "retry-after")
    if raw is None:
        return None
    try:
        return max(0.0, float(raw))
    except ValueError:
        return None


def load_json(body: bytes | str) -> Any:
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raw = body if isinstance(body, bytes) else body.encode("utf-8", errors="replace")
        raise DecodeError(f"Response body is not valid JSON: {exc}", body=raw) from exc


def decode_problem(status: int, headers: Mapping[str, str], body: bytes) -> ApiError:
    """Construye el `ApiError` de una respuesta no exitosa.

    Si el cuerpo no es un problema bien formado se sintetiza un error genérico
    con el status: el llamador nunca recibe un fallo sin clasificar.
    """

    retry_after = _retry_after(headers)
    try:
        problem = Problem.model_validate_json(body)
    except (ValidationError, ValueError):
        return ApiError.generic(status, retry_after=retry_after)

    field_errors: dict[str, str] = {}
    extras = problem.extras or {}
    invalid_field = extras.get("invalid_field")
    if isinstance(invalid_field, str) and invalid_field:
        field_errors[invalid_field] = str(extras.get("reason") or problem.detail or problem.title)

    return ApiError(
        status,
        problem_type=ProblemType.parse(problem.type),
        type_uri=problem.type,
        title=problem.title,
        detail=problem.detail,
        instance=problem.instance,
        field_errors=field_errors,
        extras=extras,
        retry_after=retry_after,
    )


def _href(links: Any, name: str) -> str | None:
    if not isinstance(links, dict):
        return None
    link = links.get(name)
    if not isinstance(link, dict):
        return None
    href = link.get("href")
    # Horizon envía href vacío cuando no hay página adyacente.
    if not isinstance(href, str) or not href.strip():
        return None
    return href


def decode_page(endpoint: Endpoint, payload: Any) -> Page:
    """Decodifica el sobre HAL `{_embedded: {records: [...]}, _links: {...}}`."""

    if not isinstance(payload, dict):
        raise DecodeError("Expected a JSON object for a page envelope")
    embedded = payload.get("_embedded")
    if not isinstance(embedded, dict) or not isinstance(embedded.get("records"), list):
        raise DecodeError("Page envelope is missing _embedded.records")

    records = tuple(decode_record(endpoint.kind, item) for item in embedded["records"])
    links = payload.get("_links")
    return Page(
        records=records,
        endpoint=endpoint,
        self_link=_href(links, "self"),
        next_link=_href(links, "next"),
        prev_link=_href(links, "prev"),
    )


def interpret_response(
    endpoint: Endpoint,
    status: int,
    headers: Mapping[str, str],
    body: bytes,
) -> Record | Page:
    """Clasifica una respuesta completa según la capacidad del endpoint."""

    if endpoint.capability is Capability.STREAM:
        raise ValueError("Stream responses are decoded incrementally, not interpreted as a whole")

    if not 200 <= status < 300:
        raise decode_problem(status, headers, body)

    payload = load_json(body)
    if endpoint.capability is Capability.RECORD:
        return decode_record(endpoint.kind, payload)
    return decode_page(endpoint, payload)
