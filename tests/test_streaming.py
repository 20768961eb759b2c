from __future__ import annotations

import asyncio
import json
import threading

import httpx
import pytest
from conftest import account_payload, ledger_payload, problem_response, sse_event, sse_response

from adapters.stream_subscriber import MIN_BACKOFF_SECONDS, StreamHooks, StreamState, backoff_delay
from core.domain.kinds import RecordKind
from core.domain.paging import Cursor
from core.endpoints import ledgers
from core.errors import ApiError, ConstructionError, DecodeError, ProblemType
from core.services.sse import ServerSentEvent, SseDecoder, decode_stream_event


def test_sse_decoder_fields_and_comments():
    decoder = SseDecoder()
    lines = [": keep-alive", "retry: 1500", "id: 7-1", "event: message", "data: {\"a\":", "data: 1}", ""]
    events = [decoder.feed(line) for line in lines]

    assert events[:-1] == [None] * 6
    event = events[-1]
    assert event.id == "7-1"
    assert event.data == "{\"a\":\n1}"
    assert decoder.retry_ms == 1500
    assert decoder.last_event_id == "7-1"


def test_sse_decoder_control_events():
    decoder = SseDecoder()
    for line in ("event: open", "data: \"hello\""):
        decoder.feed(line)
    event = decoder.feed("")
    assert event.event == "open"
    assert event.is_control


def test_backoff_is_exponential_and_capped():
    assert [backoff_delay(n, 1.0, 5.0) for n in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]


def test_backoff_never_drops_to_zero():
    assert backoff_delay(0, 0.0, 0.0) == MIN_BACKOFF_SECONDS
    assert backoff_delay(3, 0.0, 30.0) == MIN_BACKOFF_SECONDS


def test_event_without_token_keeps_previous_cursor():
    payload = account_payload("GABC")
    untokened = ServerSentEvent(data=json.dumps(payload))
    event = decode_stream_event(untokened, RecordKind.ACCOUNT, previous=Cursor("5-0"))
    assert event.cursor == Cursor("5-0")
    assert event.event_id is None

    tokened = ServerSentEvent(data=json.dumps(ledger_payload(6)))
    assert decode_stream_event(tokened, RecordKind.LEDGER, previous=Cursor("5-0")).cursor == Cursor("6")


def test_stream_delivers_events_and_resumes_after_disconnect(make_client):
    requests: list[httpx.Request] = []
    disconnects: list[float] = []
    resumed: list[Cursor] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if len(requests) == 1:
            return sse_response(
                [
                    sse_event(event="open", data='"hello"'),
                    sse_event(ledger_payload(1), event_id="1-0"),
                    sse_event(ledger_payload(2), event_id="2-0"),
                ],
                fail=True,
            )
        return sse_response([sse_event(ledger_payload(3), event_id="3-0")])

    hooks = StreamHooks(
        disconnected=lambda cause, delay: disconnects.append(delay),
        reconnected=resumed.append,
    )
    with make_client(handler) as client:
        subscription = client.stream(ledgers.all(), hooks=hooks)
        assert subscription.state is StreamState.STREAMING
        received = [next(subscription) for _ in range(3)]
        subscription.cancel()

    assert [e.record.sequence for e in received] == [1, 2, 3]
    assert [e.cursor.token for e in received] == ["1-0", "2-0", "3-0"]

    assert requests[0].url.params["cursor"] == "now"
    assert "last-event-id" not in requests[0].headers
    assert requests[1].url.params["cursor"] == "2-0"
    assert requests[1].headers["last-event-id"] == "2-0"
    assert requests[1].headers["accept"] == "text/event-stream"

    assert disconnects == [MIN_BACKOFF_SECONDS]
    assert resumed == [Cursor("2-0")]
    assert subscription.state is StreamState.CLOSED


def test_server_close_event_triggers_reconnect(make_client):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if len(requests) == 1:
            return sse_response(
                [sse_event(ledger_payload(1), event_id="1-0"), sse_event(event="close", data='"byebye"')]
            )
        return sse_response([sse_event(ledger_payload(2), event_id="2-0")])

    with make_client(handler) as client:
        with client.stream(ledgers.all(), cursor=Cursor("0")) as subscription:
            first = next(subscription)
            second = next(subscription)

    assert (first.record.sequence, second.record.sequence) == (1, 2)
    assert requests[0].url.params["cursor"] == "0"
    assert requests[1].url.params["cursor"] == "1-0"


def test_no_events_after_cancel(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        return sse_response([sse_event(ledger_payload(n), event_id=f"{n}-0") for n in range(1, 6)])

    with make_client(handler) as client:
        subscription = client.stream(ledgers.all())
        assert next(subscription).record.sequence == 1
        subscription.cancel()
        assert list(subscription) == []
        assert subscription.cancelled


def test_cancel_from_another_thread_interrupts_backoff(make_client, settings):
    slow = settings.model_copy(update={"stream_initial_backoff_seconds": 30.0, "stream_max_backoff_seconds": 30.0})
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return sse_response([sse_event(ledger_payload(1), event_id="1-0")], fail=True)

    with make_client(handler, settings=slow) as client:
        subscription = client.stream(ledgers.all())
        assert next(subscription).record.sequence == 1

        timer = threading.Timer(0.2, subscription.cancel)
        timer.start()
        with pytest.raises(StopIteration):
            next(subscription)
        timer.join()

    assert len(calls) == 1


def test_initial_connect_failure_is_raised_directly(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        return problem_response(503, "internal_server_error", "Unavailable")

    with make_client(handler) as client:
        with pytest.raises(ApiError) as info:
            client.stream(ledgers.all())
    assert info.value.status == 503


def test_client_error_on_reconnect_closes_stream(make_client):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if len(requests) == 1:
            return sse_response([sse_event(ledger_payload(1), event_id="1-0")])
        return problem_response(400, "https://stellar.org/horizon-errors/bad_request", "Bad Request")

    with make_client(handler) as client:
        subscription = client.stream(ledgers.all())
        next(subscription)
        with pytest.raises(ApiError) as info:
            next(subscription)

    assert info.value.type is ProblemType.BAD_REQUEST
    assert subscription.state is StreamState.CLOSED
    assert list(subscription) == []


def test_undecodable_event_closes_stream(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        return sse_response([sse_event(data="{broken", event_id="1-0")])

    with make_client(handler) as client:
        subscription = client.stream(ledgers.all())
        with pytest.raises(DecodeError):
            next(subscription)
    assert subscription.state is StreamState.CLOSED


def test_non_streamable_endpoint_is_rejected_before_network(make_client):
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return sse_response([])

    with make_client(handler) as client:
        with pytest.raises(ConstructionError):
            client.stream(ledgers.details(1))
    assert calls == []


def test_async_stream_resumes_after_disconnect(make_async_client):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if len(requests) == 1:
            return sse_response([sse_event(ledger_payload(1), event_id="1-0")], fail=True)
        return sse_response([sse_event(ledger_payload(2), event_id="2-0")])

    async def collect():
        async with make_async_client(handler) as client:
            subscription = await client.execute(ledgers.all().as_stream())
            events = [await subscription.__anext__() for _ in range(2)]
            await subscription.cancel()
            return events, subscription

    events, subscription = asyncio.run(collect())
    assert [e.record.sequence for e in events] == [1, 2]
    assert requests[1].headers["last-event-id"] == "1-0"
    assert subscription.state is StreamState.CLOSED


def test_async_cancel_interrupts_backoff(make_async_client, settings):
    slow = settings.model_copy(update={"stream_initial_backoff_seconds": 30.0, "stream_max_backoff_seconds": 30.0})
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return sse_response([sse_event(ledger_payload(1), event_id="1-0")], fail=True)

    async def scenario():
        async with make_async_client(handler, settings=slow) as client:
            subscription = await client.stream(ledgers.all())
            first = await subscription.__anext__()

            async def next_or_none():
                try:
                    return await subscription.__anext__()
                except StopAsyncIteration:
                    return None

            waiting = asyncio.create_task(next_or_none())
            await asyncio.sleep(0.1)
            assert subscription.state is StreamState.RECONNECTING
            await subscription.cancel()
            after_cancel = await asyncio.wait_for(waiting, timeout=5)
            remaining = [event async for event in subscription]
            return first, after_cancel, remaining, subscription

    first, after_cancel, remaining, subscription = asyncio.run(scenario())
    assert first.record.sequence == 1
    assert after_cancel is None
    assert remaining == []
    assert subscription.cancelled
    assert len(calls) == 1
