"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- `extra="allow"` conserva cualquier campo que el servidor envíe aunque no lo
  declaremos, así un registro decodificado se puede volver a serializar sin
  perder información.

Nota:
- Estos modelos describen *qué* es cada recurso, no *cómo* se obtiene.
- El Core solo necesita la etiqueta de tipo (`kind`) para despachar; los campos
  concretos son responsabilidad de cada modelo.
"""

from __future__ import annotations

from typing import Any, ClassVar, Union

from pydantic import BaseModel, Field, ValidationError
from pydantic.config import ConfigDict

from core.domain.kinds import RecordKind
from core.errors import DecodeError


class HorizonRecord(BaseModel):
    """Base de todos los recursos decodificados."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    kind: ClassVar[RecordKind]

    links: dict[str, Any] | None = Field(
        default=None,
        alias="_links",
        description="Enlaces HAL del recurso (self, relaciones).",
    )

    def to_payload(self) -> dict[str, Any]:
        """Serializa de vuelta al JSON observado (solo campos presentes)."""

        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class Balance(BaseModel):
    model_config = ConfigDict(extra="allow")

    balance: str
    asset_type: str
    asset_code: str | None = None
    asset_issuer: str | None = None
    limit: str | None = None


class Account(HorizonRecord):
    kind: ClassVar[RecordKind] = RecordKind.ACCOUNT

    id: str = Field(..., min_length=1, description="Identificador (clave pública) de la cuenta.")
    account_id: str = Field(..., min_length=1)
    sequence: str = Field(..., description="Número de secuencia actual (string, puede exceder int64 en JSON).")
    paging_token: str | None = None
    subentry_count: int | None = None
    balances: list[Balance] = Field(default_factory=list)
    signers: list[dict[str, Any]] = Field(default_factory=list)
    thresholds: dict[str, int] | None = None
    flags: dict[str, bool] | None = None
    data: dict[str, str] = Field(default_factory=dict, description="Entradas data (base64).")


class Asset(HorizonRecord):
    kind: ClassVar[RecordKind] = RecordKind.ASSET

    asset_type: str
    asset_code: str | None = None
    asset_issuer: str | None = None
    paging_token: str | None = None
    amount: str | None = None
    num_accounts: int | None = None
    flags: dict[str, bool] | None = None


class Effect(HorizonRecord):
    kind: ClassVar[RecordKind] = RecordKind.EFFECT

    id: str
    paging_token: str
    account: str
    type: str = Field(..., description="Nombre del tipo de efecto (p.ej. 'account_credited').")
    type_i: int
    created_at: str | None = None


class Ledger(HorizonRecord):
    kind: ClassVar[RecordKind] = RecordKind.LEDGER

    id: str
    paging_token: str
    hash: str
    prev_hash: str | None = None
    sequence: int
    transaction_count: int | None = None
    successful_transaction_count: int | None = None
    operation_count: int | None = None
    closed_at: str | None = None
    total_coins: str | None = None
    fee_pool: str | None = None
    base_fee_in_stroops: int | None = None
    base_reserve_in_stroops: int | None = None
    max_tx_set_size: int | None = None
    protocol_version: int | None = None


class Offer(HorizonRecord):
    kind: ClassVar[RecordKind] = RecordKind.OFFER

    id: str | int
    paging_token: str
    seller: str
    selling: dict[str, Any]
    buying: dict[str, Any]
    amount: str
    price: str
    price_r: dict[str, int] | None = None


class Operation(HorizonRecord):
    kind: ClassVar[RecordKind] = RecordKind.OPERATION

    id: str
    paging_token: str
    type: str
    type_i: int
    source_account: str | None = None
    created_at: str | None = None
    transaction_hash: str | None = None


class PriceLevel(BaseModel):
    model_config = ConfigDict(extra="allow")

    price: str
    amount: str
    price_r: dict[str, int] | None = None


class Orderbook(HorizonRecord):
    kind: ClassVar[RecordKind] = RecordKind.ORDERBOOK

    bids: list[PriceLevel] = Field(default_factory=list)
    asks: list[PriceLevel] = Field(default_factory=list)
    base: dict[str, Any]
    counter: dict[str, Any]


class PaymentPath(HorizonRecord):
    kind: ClassVar[RecordKind] = RecordKind.PAYMENT_PATH

    source_asset_type: str
    source_asset_code: str | None = None
    source_asset_issuer: str | None = None
    source_amount: str
    destination_asset_type: str
    destination_asset_code: str | None = None
    destination_asset_issuer: str | None = None
    destination_amount: str
    path: list[dict[str, Any]] = Field(default_factory=list)


class Trade(HorizonRecord):
    kind: ClassVar[RecordKind] = RecordKind.TRADE

    id: str
    paging_token: str
    ledger_close_time: str
    offer_id: str | None = None
    base_account: str | None = None
    base_amount: str
    base_asset_type: str
    base_asset_code: str | None = None
    base_asset_issuer: str | None = None
    counter_account: str | None = None
    counter_amount: str
    counter_asset_type: str
    counter_asset_code: str | None = None
    counter_asset_issuer: str | None = None
    base_is_seller: bool | None = None
    price: dict[str, Any] | None = None


class TradeAggregation(HorizonRecord):
    kind: ClassVar[RecordKind] = RecordKind.TRADE_AGGREGATION

    timestamp: int | str
    trade_count: int | str
    base_volume: str
    counter_volume: str
    avg: str
    high: str
    low: str
    open: str
    close: str


class Transaction(HorizonRecord):
    kind: ClassVar[RecordKind] = RecordKind.TRANSACTION

    id: str
    paging_token: str
    hash: str
    ledger: int
    created_at: str
    source_account: str
    source_account_sequence: str | None = None
    fee_paid: int | None = None
    fee_charged: int | str | None = None
    operation_count: int
    successful: bool | None = None
    memo_type: str | None = None
    memo: str | None = None
    envelope_xdr: str | None = None
    result_xdr: str | None = None


# Unión cerrada: el conjunto de tipos lo fija el esquema documentado del servicio.
Record = Union[
    Account,
    Asset,
    Effect,
    Ledger,
    Offer,
    Operation,
    Orderbook,
    PaymentPath,
    Trade,
    TradeAggregation,
    Transaction,
]

RECORD_MODELS: dict[RecordKind, type[HorizonRecord]] = {
    model.kind: model
    for model in (
        Account,
        Asset,
        Effect,
        Ledger,
        Offer,
        Operation,
        Orderbook,
        PaymentPath,
        Trade,
        TradeAggregation,
        Transaction,
    )
}


def decode_record(kind: RecordKind, payload: Any) -> Record:
    """Decodifica un objeto JSON al modelo de `kind`.

    Lanza `DecodeError` si el payload no es un objeto o no cumple el esquema.
    """

    if not isinstance(payload, dict):
        raise DecodeError(f"Expected a JSON object for {kind.value}, got {type(payload).__name__}")
    model = RECORD_MODELS[kind]
    try:
        return model.model_validate(payload)  # type: ignore[return-value]
    except ValidationError as exc:
        raise DecodeError(f"Invalid {kind.value} record: {exc.error_count()} validation error(s)") from exc


class Problem(BaseModel):
    """Cuerpo de una respuesta de problema (estilo RFC 7807)."""

    model_config = ConfigDict(extra="allow")

    type: str = Field(..., min_length=1, description="Identificador del tipo de problema (o URL).")
    title: str = Field(..., description="Resumen legible del problema.")
    status: int = Field(..., ge=100, le=599)
    detail: str | None = None
    instance: str | None = None
    extras: dict[str, Any] | None = Field(
        default=None,
        description="Información adicional; en validaciones incluye invalid_field/reason.",
    )
