"""Endpoints de operaciones."""

from __future__ import annotations

from core.domain.kinds import RecordKind
from core.endpoints.base import Endpoint, path_segment


def all() -> Endpoint:
    return Endpoint.collection("/operations", RecordKind.OPERATION, streamable=True)


def details(operation_id: int | str) -> Endpoint:
    return Endpoint.record(f"/operations/{path_segment(operation_id)}", RecordKind.OPERATION)


def effects(operation_id: int | str) -> Endpoint:
    return Endpoint.collection(f"/operations/{path_segment(operation_id)}/effects", RecordKind.EFFECT)
