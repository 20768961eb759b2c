"""Endpoints de ledgers."""

from __future__ import annotations

from core.domain.kinds import RecordKind
from core.endpoints.base import Endpoint, path_segment


def all() -> Endpoint:
    return Endpoint.collection("/ledgers", RecordKind.LEDGER, streamable=True)


def details(sequence: int) -> Endpoint:
    return Endpoint.record(f"/ledgers/{path_segment(sequence)}", RecordKind.LEDGER)


def transactions(sequence: int) -> Endpoint:
    return Endpoint.collection(f"/ledgers/{path_segment(sequence)}/transactions", RecordKind.TRANSACTION)


def operations(sequence: int) -> Endpoint:
    return Endpoint.collection(f"/ledgers/{path_segment(sequence)}/operations", RecordKind.OPERATION)


def payments(sequence: int) -> Endpoint:
    return Endpoint.collection(f"/ledgers/{path_segment(sequence)}/payments", RecordKind.OPERATION)


def effects(sequence: int) -> Endpoint:
    return Endpoint.collection(f"/ledgers/{path_segment(sequence)}/effects", RecordKind.EFFECT)
