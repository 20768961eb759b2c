from __future__ import annotations

import json

import pytest
from conftest import ledger_payload, page_payload

from core.domain.models import Ledger
from core.domain.paging import Page
from core.endpoints import accounts, ledgers
from core.errors import ApiError, DecodeError, ProblemType
from core.services.response_interpreter import decode_problem, interpret_response


def _body(payload) -> bytes:
    return json.dumps(payload).encode("utf-8")


def test_record_is_decoded():
    record = interpret_response(ledgers.details(7), 200, {}, _body(ledger_payload(7)))
    assert isinstance(record, Ledger)
    assert record.sequence == 7


def test_page_is_decoded_with_links():
    payload = page_payload(
        [ledger_payload(1), ledger_payload(2)],
        self_href="/ledgers?cursor=&limit=2",
        next_href="/ledgers?cursor=2&limit=2",
        prev_href="",
    )
    page = interpret_response(ledgers.all().with_limit(2), 200, {}, _body(payload))

    assert isinstance(page, Page)
    assert [r.sequence for r in page] == [1, 2]
    assert page.next_link == "/ledgers?cursor=2&limit=2"
    assert page.prev_link is None
    assert page.next_endpoint().cursor.token == "2"


def test_not_found_problem():
    body = _body(
        {
            "type": "https://stellar.org/horizon-errors/not_found",
            "title": "Resource Missing",
            "status": 404,
            "detail": "The resource at the url requested was not found.",
        }
    )
    with pytest.raises(ApiError) as info:
        interpret_response(accounts.details("GNOPE"), 404, {}, body)

    err = info.value
    assert err.status == 404
    assert err.type is ProblemType.NOT_FOUND
    assert err.title == "Resource Missing"
    assert err.type_uri.endswith("/not_found")


def test_malformed_problem_body_yields_generic_error():
    with pytest.raises(ApiError) as info:
        interpret_response(ledgers.all(), 502, {"Retry-After": "3"}, b"<html>bad gateway</html>")

    err = info.value
    assert err.status == 502
    assert err.type is ProblemType.UNKNOWN
    assert err.title == "Unexpected response from server"
    assert err.retry_after == 3.0
    assert err.is_transient


def test_invalid_field_becomes_field_error():
    err = decode_problem(
        400,
        {},
        _body(
            {
                "type": "bad_request",
                "title": "Bad Request",
                "status": 400,
                "extras": {"invalid_field": "limit", "reason": "limit must be <= 200"},
            }
        ),
    )
    assert err.type is ProblemType.BAD_REQUEST
    assert err.field_errors == {"limit": "limit must be <= 200"}
    assert not err.is_transient


def test_unknown_problem_type_is_kept_as_uri():
    err = decode_problem(418, {}, _body({"type": "teapot", "title": "I'm a teapot", "status": 418}))
    assert err.type is ProblemType.UNKNOWN
    assert err.type_uri == "teapot"


def test_success_with_invalid_json_is_decode_error():
    with pytest.raises(DecodeError):
        interpret_response(ledgers.details(1), 200, {}, b"{not json")


def test_success_with_wrong_shape_is_decode_error_not_api_error():
    with pytest.raises(DecodeError):
        interpret_response(ledgers.details(1), 200, {}, _body({"id": "x"}))
    with pytest.raises(DecodeError):
        interpret_response(ledgers.all(), 200, {}, _body({"records": []}))
    with pytest.raises(DecodeError):
        interpret_response(ledgers.all(), 200, {}, _body(page_payload([{"sequence": "nope"}])))


def test_stream_endpoints_are_not_interpreted_whole():
    with pytest.raises(ValueError):
        interpret_response(ledgers.all().as_stream(), 200, {}, b"")


def test_bare_problem_type_identifier():
    body = _body({"status": 404, "type": "not_found", "title": "Resource Missing"})
    with pytest.raises(ApiError) as info:
        interpret_response(ledgers.details(99), 404, {}, body)
    assert (info.value.status, info.value.type) == (404, ProblemType.NOT_FOUND)
