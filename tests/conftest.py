from __future__ import annotations

import json
from typing import Any, AsyncIterator, Callable, Iterator

import httpx
import pytest

from adapters.horizon_client import AsyncHorizonClient, HorizonClient
from core.config import AppSettings

BASE_URL = "https://horizon.example"

Handler = Callable[[httpx.Request], httpx.Response]


def ledger_payload(sequence: int, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": f"ledger-{sequence}",
        "paging_token": str(sequence),
        "hash": f"{sequence:064x}",
        "sequence": sequence,
        "closed_at": "2024-01-01T00:00:00Z",
        "operation_count": 1,
    }
    payload.update(extra)
    return payload


def account_payload(account_id: str = "GABC", **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": account_id,
        "account_id": account_id,
        "sequence": "123456789",
        "subentry_count": 0,
        "balances": [{"balance": "100.0000000", "asset_type": "native"}],
        "thresholds": {"low_threshold": 0, "med_threshold": 0, "high_threshold": 0},
    }
    payload.update(extra)
    return payload


def page_payload(
    records: list[dict[str, Any]],
    *,
    self_href: str = "",
    next_href: str = "",
    prev_href: str = "",
) -> dict[str, Any]:
    return {
        "_links": {
            "self": {"href": self_href},
            "next": {"href": next_href},
            "prev": {"href": prev_href},
        },
        "_embedded": {"records": records},
    }


def json_response(payload: Any, status: int = 200, **kwargs: Any) -> httpx.Response:
    return httpx.Response(status, json=payload, **kwargs)


def problem_response(status: int, type_: str, title: str, **extra: Any) -> httpx.Response:
    body = {"type": type_, "title": title, "status": status, **extra}
    return httpx.Response(status, json=body, headers={"Content-Type": "application/problem+json"})


def sse_event(
    payload: dict[str, Any] | None = None,
    *,
    event_id: str | None = None,
    event: str | None = None,
    data: str | None = None,
) -> bytes:
    lines = []
    if event_id is not None:
        lines.append(f"id: {event_id}")
    if event is not None:
        lines.append(f"event: {event}")
    lines.append(f"data: {data if data is not None else json.dumps(payload)}")
    return ("\n".join(lines) + "\n\n").encode("utf-8")


class ChunkStream(httpx.SyncByteStream, httpx.AsyncByteStream):
    """Cuerpo de respuesta por trozos; opcionalmente corta con ReadError."""

    def __init__(self, chunks: list[bytes], *, fail: bool = False) -> None:
        self._chunks = chunks
        self._fail = fail
        self.closed = False

    def __iter__(self) -> Iterator[bytes]:
        yield from self._chunks
        if self._fail:
            raise httpx.ReadError("connection reset")

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            yield chunk
        if self._fail:
            raise httpx.ReadError("connection reset")

    def close(self) -> None:
        self.closed = True

    async def aclose(self) -> None:
        self.closed = True


def sse_response(chunks: list[bytes], *, fail: bool = False) -> httpx.Response:
    return httpx.Response(
        200,
        headers={"Content-Type": "text/event-stream"},
        stream=ChunkStream(chunks, fail=fail),
    )


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        server=BASE_URL,
        stream_initial_backoff_seconds=0,
        stream_max_backoff_seconds=0,
    )


@pytest.fixture
def make_client(settings: AppSettings) -> Callable[..., HorizonClient]:
    def factory(handler: Handler, **kwargs: Any) -> HorizonClient:
        kwargs.setdefault("settings", settings)
        return HorizonClient(BASE_URL, transport=httpx.MockTransport(handler), **kwargs)

    return factory


@pytest.fixture
def make_async_client(settings: AppSettings) -> Callable[..., AsyncHorizonClient]:
    def factory(handler: Handler, **kwargs: Any) -> AsyncHorizonClient:
        kwargs.setdefault("settings", settings)
        return AsyncHorizonClient(BASE_URL, transport=httpx.MockTransport(handler), **kwargs)

    return factory
