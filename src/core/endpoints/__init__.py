"""Contratos de endpoint por recurso.

Cada módulo expone funciones que construyen `Endpoint` listos para pasar a un
cliente (`HorizonClient.execute`). Ninguna hace I/O.
"""

from core.endpoints import (
    accounts,
    assets,
    effects,
    ledgers,
    operations,
    orderbook,
    payments,
    trades,
    transactions,
)
from core.endpoints.assets import AssetIdentifier
from core.endpoints.base import MAX_LIMIT, Capability, Endpoint, Order

__all__ = [
    "AssetIdentifier",
    "Capability",
    "Endpoint",
    "MAX_LIMIT",
    "Order",
    "accounts",
    "assets",
    "effects",
    "ledgers",
    "operations",
    "orderbook",
    "payments",
    "trades",
    "transactions",
]
