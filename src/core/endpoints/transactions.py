"""Endpoints de transacciones."""

from __future__ import annotations

from core.domain.kinds import RecordKind
from core.endpoints.base import Endpoint, path_segment


def all(*, include_failed: bool | None = None) -> Endpoint:
    endpoint = Endpoint.collection(
        "/transactions",
        RecordKind.TRANSACTION,
        params=("include_failed",),
        streamable=True,
    )
    return endpoint.with_param("include_failed", include_failed)


def details(tx_hash: str) -> Endpoint:
    return Endpoint.record(f"/transactions/{path_segment(tx_hash)}", RecordKind.TRANSACTION)


def operations(tx_hash: str) -> Endpoint:
    return Endpoint.collection(f"/transactions/{path_segment(tx_hash)}/operations", RecordKind.OPERATION)


def effects(tx_hash: str) -> Endpoint:
    return Endpoint.collection(f"/transactions/{path_segment(tx_hash)}/effects", RecordKind.EFFECT)


def payments(tx_hash: str) -> Endpoint:
    return Endpoint.collection(f"/transactions/{path_segment(tx_hash)}/payments", RecordKind.OPERATION)
