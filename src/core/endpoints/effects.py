"""Endpoint global de efectos."""

from __future__ import annotations

from core.domain.kinds import RecordKind
from core.endpoints.base import Endpoint


def all() -> Endpoint:
    return Endpoint.collection("/effects", RecordKind.EFFECT, streamable=True)
