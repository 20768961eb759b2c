"""Endpoints bajo `/accounts/{account_id}`."""

from __future__ import annotations

from core.domain.kinds import RecordKind
from core.endpoints.base import Endpoint, path_segment


def _base(account_id: str) -> str:
    return f"/accounts/{path_segment(account_id)}"


def details(account_id: str) -> Endpoint:
    return Endpoint.record(_base(account_id), RecordKind.ACCOUNT, streamable=True)


def transactions(account_id: str, *, include_failed: bool | None = None) -> Endpoint:
    endpoint = Endpoint.collection(
        f"{_base(account_id)}/transactions",
        RecordKind.TRANSACTION,
        params=("include_failed",),
        streamable=True,
    )
    return endpoint.with_param("include_failed", include_failed)


def operations(account_id: str) -> Endpoint:
    return Endpoint.collection(f"{_base(account_id)}/operations", RecordKind.OPERATION, streamable=True)


def payments(account_id: str) -> Endpoint:
    return Endpoint.collection(f"{_base(account_id)}/payments", RecordKind.OPERATION, streamable=True)


def effects(account_id: str) -> Endpoint:
    return Endpoint.collection(f"{_base(account_id)}/effects", RecordKind.EFFECT, streamable=True)


def offers(account_id: str) -> Endpoint:
    return Endpoint.collection(f"{_base(account_id)}/offers", RecordKind.OFFER, streamable=True)


def trades(account_id: str) -> Endpoint:
    return Endpoint.collection(f"{_base(account_id)}/trades", RecordKind.TRADE, streamable=True)
