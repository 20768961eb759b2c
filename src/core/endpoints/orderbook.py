"""Endpoint del libro de órdenes de un par de activos."""

from __future__ import annotations

from core.domain.kinds import RecordKind
from core.endpoints.assets import AssetIdentifier, asset_slots
from core.endpoints.base import Endpoint


def details(base: AssetIdentifier, counter: AssetIdentifier) -> Endpoint:
    """Bids y asks de `base` (se vende) contra `counter` (se compra)."""

    endpoint = Endpoint.record(
        "/order_book",
        RecordKind.ORDERBOOK,
        params=(*asset_slots("selling", "buying"), "limit"),
        streamable=True,
    )
    return endpoint.with_params(**base.as_params("selling"), **counter.as_params("buying"))
