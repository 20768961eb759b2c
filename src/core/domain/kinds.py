"""Enumeraciones cerradas del dominio.

Este módulo centraliza las opciones fijas que documenta la API remota: el
conjunto de tipos de recurso y los servidores conocidos. Vive en el dominio
para que config, endpoints y adaptadores compartan una única fuente de verdad.
"""

from __future__ import annotations

from enum import Enum


class RecordKind(str, Enum):
    """Tipos de recurso que puede devolver el servicio."""

    ACCOUNT = "account"
    ASSET = "asset"
    EFFECT = "effect"
    LEDGER = "ledger"
    OFFER = "offer"
    OPERATION = "operation"
    ORDERBOOK = "orderbook"
    PAYMENT_PATH = "payment_path"
    TRADE = "trade"
    TRADE_AGGREGATION = "trade_aggregation"
    TRANSACTION = "transaction"


class Network(str, Enum):
    """Servidores Horizon conocidos."""

    PUBLIC = "public"
    TESTNET = "testnet"

    @property
    def url(self) -> str:
        return _NETWORK_URLS[self]

    @classmethod
    def from_value(cls, value: str) -> "Network | None":
        """Devuelve el preset si `value` es su nombre o su URL; si no, None."""

        v = value.strip().lower().rstrip("/")
        for network in cls:
            if v in (network.value, network.url):
                return network
        return None


_NETWORK_URLS: dict[Network, str] = {
    Network.PUBLIC: "https://horizon.stellar.org",
    Network.TESTNET: "https://horizon-testnet.stellar.org",
}
