"""Endpoints de activos e identificador de activo."""

from __future__ import annotations

from dataclasses import dataclass

from core.domain.kinds import RecordKind
from core.endpoints.base import Endpoint

NATIVE = "native"


@dataclass(frozen=True)
class AssetIdentifier:
    """Activo nativo o emitido (código + emisor)."""

    asset_type: str
    code: str | None = None
    issuer: str | None = None

    @classmethod
    def native(cls) -> "AssetIdentifier":
        return cls(NATIVE)

    @classmethod
    def credit(cls, code: str, issuer: str) -> "AssetIdentifier":
        asset_type = "credit_alphanum4" if len(code) <= 4 else "credit_alphanum12"
        return cls(asset_type, code, issuer)

    @classmethod
    def parse(cls, value: str) -> "AssetIdentifier":
        """Acepta `native`/`XLM` o `CODE:ISSUER`."""

        v = value.strip()
        if v.lower() in (NATIVE, "xlm"):
            return cls.native()
        code, sep, issuer = v.partition(":")
        if not sep or not code or not issuer:
            raise ValueError(f"Asset must be 'native' or 'CODE:ISSUER', got {value!r}")
        return cls.credit(code, issuer)

    @property
    def is_native(self) -> bool:
        return self.asset_type == NATIVE

    def as_params(self, prefix: str) -> dict[str, str | None]:
        return {
            f"{prefix}_asset_type": self.asset_type,
            f"{prefix}_asset_code": self.code,
            f"{prefix}_asset_issuer": self.issuer,
        }

    def __str__(self) -> str:
        return NATIVE if self.is_native else f"{self.code}:{self.issuer}"


def asset_slots(*prefixes: str) -> tuple[str, ...]:
    names: list[str] = []
    for prefix in prefixes:
        names.extend((f"{prefix}_asset_type", f"{prefix}_asset_code", f"{prefix}_asset_issuer"))
    return tuple(names)


def all(asset_code: str | None = None, asset_issuer: str | None = None) -> Endpoint:
    """`GET /assets`, filtrable por código y emisor."""

    endpoint = Endpoint.collection("/assets", RecordKind.ASSET, params=("asset_code", "asset_issuer"))
    return endpoint.with_params(asset_code=asset_code, asset_issuer=asset_issuer)
