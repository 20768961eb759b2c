"""Endpoints de pagos y búsqueda de rutas de pago."""

from __future__ import annotations

from core.domain.kinds import RecordKind
from core.endpoints.assets import AssetIdentifier, asset_slots
from core.endpoints.base import Endpoint


def all() -> Endpoint:
    """Pagos globales. Devuelve operaciones de tipo pago."""

    return Endpoint.collection("/payments", RecordKind.OPERATION, streamable=True)


def find_path(
    source_account: str,
    destination_account: str,
    destination_asset: AssetIdentifier,
    destination_amount: str,
) -> Endpoint:
    """`GET /paths`: rutas posibles para que `destination_account` reciba el monto.

    El servidor no pagina este recurso, así que no declara slots de paginación.
    """

    endpoint = Endpoint.collection(
        "/paths",
        RecordKind.PAYMENT_PATH,
        params=("source_account", "destination_account", "destination_amount", *asset_slots("destination")),
        paging=(),
    )
    return endpoint.with_params(
        source_account=source_account,
        destination_account=destination_account,
        destination_amount=destination_amount,
        **destination_asset.as_params("destination"),
    )
