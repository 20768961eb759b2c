from __future__ import annotations

import asyncio

import httpx
import pytest
from conftest import json_response, ledger_payload, page_payload, problem_response

from core.domain.paging import Page, PageDirection
from core.endpoints import ledgers
from core.errors import ApiError, ConstructionError
from core.services.pagination import PageCursor


def _ledger_pages(requests: list[httpx.Request]):
    """Tres registros en páginas de dos; la última página vacía repite su enlace."""

    pages = {
        None: page_payload(
            [ledger_payload(1), ledger_payload(2)],
            next_href="https://horizon.example/ledgers?cursor=2&limit=2&order=asc",
            prev_href="https://horizon.example/ledgers?cursor=1&limit=2&order=desc",
        ),
        "2": page_payload(
            [ledger_payload(3)],
            next_href="https://horizon.example/ledgers?cursor=3&limit=2&order=asc",
            prev_href="https://horizon.example/ledgers?cursor=3&limit=2&order=desc",
        ),
        "3": page_payload(
            [],
            next_href="https://horizon.example/ledgers?cursor=3&limit=2&order=asc",
            prev_href="https://horizon.example/ledgers?cursor=3&limit=2&order=desc",
        ),
    }

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return json_response(pages[request.url.params.get("cursor")])

    return handler


def test_paginates_across_pages_in_order(make_client):
    requests: list[httpx.Request] = []
    with make_client(_ledger_pages(requests)) as client:
        records = list(client.paginate(ledgers.all().with_limit(2)))

    assert [r.sequence for r in records] == [1, 2, 3]
    assert len(requests) == 3


def test_empty_page_with_next_link_does_not_end_sequence(make_client):
    pages = {
        None: page_payload([], next_href="/ledgers?cursor=a"),
        "a": page_payload([], next_href="/ledgers?cursor=b"),
        "b": page_payload([ledger_payload(9)], next_href="/ledgers?cursor=c"),
        "c": page_payload([]),
    }

    def handler(request: httpx.Request) -> httpx.Response:
        return json_response(pages[request.url.params.get("cursor")])

    with make_client(handler) as client:
        assert [r.sequence for r in client.paginate(ledgers.all())] == [9]


def test_page_without_next_link_ends_sequence(make_client):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return json_response(page_payload([ledger_payload(1)]))

    with make_client(handler) as client:
        assert len(list(client.paginate(ledgers.all()))) == 1
    assert len(calls) == 1


def test_empty_page_linking_to_itself_with_blank_cursor_ends_sequence(make_client):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return json_response(page_payload([], next_href="https://horizon.example/ledgers?cursor=&limit=10&order=asc"))

    endpoint = ledgers.all().with_order("asc").with_limit(10)
    with make_client(handler) as client:
        assert list(client.paginate(endpoint)) == []

    assert len(requests) == 1
    assert "cursor" not in requests[0].url.params


def test_failed_fetch_leaves_cursor_resumable(make_client):
    failures = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        cursor = request.url.params.get("cursor")
        if cursor is None:
            return json_response(page_payload([ledger_payload(1)], next_href="/ledgers?cursor=1"))
        if failures["count"] == 0:
            failures["count"] += 1
            return problem_response(503, "internal_server_error", "Service Unavailable")
        return json_response(page_payload([ledger_payload(2)]))

    with make_client(handler) as client:
        pager = client.paginate(ledgers.all())
        assert next(pager).sequence == 1
        with pytest.raises(ApiError) as info:
            next(pager)
        assert info.value.status == 503
        assert next(pager).sequence == 2
        with pytest.raises(StopIteration):
            next(pager)


def test_prev_direction_and_reverse(make_client):
    requests: list[httpx.Request] = []
    with make_client(_ledger_pages(requests)) as client:
        pager = client.paginate(ledgers.all().with_limit(2))
        next(pager)
        next(pager)

        backwards = pager.reverse()
        assert backwards is not None
        assert backwards.direction is PageDirection.PREV
        assert backwards.pending.cursor.token == "1"
        assert backwards.pending.order.value == "desc"


def test_cursor_from_existing_page(make_client):
    requests: list[httpx.Request] = []
    with make_client(_ledger_pages(requests)) as client:
        first = client.execute(ledgers.all().with_limit(2))
        assert isinstance(first, Page)
        rest = list(client.paginate(first))

    assert [r.sequence for r in rest] == [1, 2, 3]
    assert len(requests) == 3


def test_cursor_requires_exactly_one_source(make_client):
    with make_client(lambda request: json_response({})) as client:
        with pytest.raises(ConstructionError):
            PageCursor(client)
        with pytest.raises(ConstructionError):
            PageCursor(client, endpoint=ledgers.details(1))


def test_async_cursor_yields_same_records(make_async_client):
    requests: list[httpx.Request] = []

    async def collect():
        async with make_async_client(_ledger_pages(requests)) as client:
            return [r.sequence async for r in client.paginate(ledgers.all().with_limit(2))]

    assert asyncio.run(collect()) == [1, 2, 3]
    assert len(requests) == 3
