"""Endpoints de trades y agregaciones de trades."""

from __future__ import annotations

from core.domain.kinds import RecordKind
from core.endpoints.assets import AssetIdentifier, asset_slots
from core.endpoints.base import Endpoint

DEFAULT_RESOLUTION_MS = 300_000


def all(
    base: AssetIdentifier | None = None,
    counter: AssetIdentifier | None = None,
    *,
    offer_id: int | str | None = None,
) -> Endpoint:
    endpoint = Endpoint.collection(
        "/trades",
        RecordKind.TRADE,
        params=(*asset_slots("base", "counter"), "offer_id"),
        streamable=True,
    )
    if base is not None:
        endpoint = endpoint.with_params(**base.as_params("base"))
    if counter is not None:
        endpoint = endpoint.with_params(**counter.as_params("counter"))
    return endpoint.with_param("offer_id", offer_id)


def aggregations(
    base: AssetIdentifier,
    counter: AssetIdentifier,
    *,
    resolution: int = DEFAULT_RESOLUTION_MS,
    start_time: int = 0,
    end_time: int = 0,
) -> Endpoint:
    """`GET /trade_aggregations`: velas por intervalo de `resolution` ms."""

    endpoint = Endpoint.collection(
        "/trade_aggregations",
        RecordKind.TRADE_AGGREGATION,
        params=(*asset_slots("base", "counter"), "start_time", "end_time", "resolution"),
        paging=("order", "limit"),
    )
    return endpoint.with_params(
        **base.as_params("base"),
        **counter.as_params("counter"),
        start_time=start_time,
        end_time=end_time,
        resolution=resolution,
    )
