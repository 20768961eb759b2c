"""Taxonomía de errores del cliente.

Por qué una jerarquía propia:
- El llamador necesita distinguir "el servidor rechazó la petición" (ApiError)
  de "el servidor envió algo que no entendemos" (DecodeError).
- Los errores de transporte de httpx se traducen aquí para que el Core no
  dependa de la librería HTTP concreta.

Todas las fallas son valores que se devuelven (lanzan) al llamador; nada aquí
es fatal para el proceso.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class HorizonError(Exception):
    """Base de todos los errores del cliente."""


class ConstructionError(HorizonError, ValueError):
    """Dirección base inválida o combinación de parámetros inválida.

    Se detecta antes de cualquier actividad de red.
    """


class TransportError(HorizonError):
    """Fallo de conexión, TLS o lectura. Reintentable a criterio del llamador."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class TransportTimeout(TransportError):
    """La petición superó su timeout."""


class DecodeError(HorizonError):
    """Respuesta exitosa cuyo cuerpo no coincide con el esquema esperado.

    Indica un desajuste de versión cliente/servidor. Nunca se convierte en un
    registro parcial.
    """

    def __init__(self, message: str, *, body: bytes | None = None) -> None:
        super().__init__(message)
        self.body = body


class ProblemType(str, Enum):
    """Identificadores de problema conocidos de Horizon."""

    BAD_REQUEST = "bad_request"
    BEFORE_HISTORY = "before_history"
    FORBIDDEN = "forbidden"
    NOT_ACCEPTABLE = "not_acceptable"
    NOT_FOUND = "not_found"
    NOT_IMPLEMENTED = "not_implemented"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    INTERNAL_SERVER_ERROR = "internal_server_error"
    STALE_HISTORY = "stale_history"
    TIMEOUT = "timeout"
    TRANSACTION_FAILED = "transaction_failed"
    TRANSACTION_MALFORMED = "transaction_malformed"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> "ProblemType":
        """Normaliza `type` (identificador o URL) al enum.

        Horizon publica el tipo como URL (`https://stellar.org/horizon-errors/not_found`);
        otros despliegues envían solo el identificador.
        """

        if not value:
            return cls.UNKNOWN
        ident = value.rstrip("/").rsplit("/", 1)[-1].strip().lower()
        try:
            return cls(ident)
        except ValueError:
            return cls.UNKNOWN


class ApiError(HorizonError):
    """Respuesta de problema decodificada (status fuera del rango 2xx)."""

    def __init__(
        self,
        status: int,
        *,
        problem_type: ProblemType = ProblemType.UNKNOWN,
        type_uri: str | None = None,
        title: str = "",
        detail: str | None = None,
        instance: str | None = None,
        field_errors: dict[str, str] | None = None,
        extras: dict[str, Any] | None = None,
        retry_after: float | None = None,
    ) -> None:
        message = f"HTTP {status} {problem_type.value}: {title}" if title else f"HTTP {status} {problem_type.value}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.status = status
        self.problem_type = problem_type
        self.type_uri = type_uri
        self.title = title
        self.detail = detail
        self.instance = instance
        self.field_errors = dict(field_errors or {})
        self.extras = dict(extras or {})
        self.retry_after = retry_after

    @property
    def type(self) -> ProblemType:
        return self.problem_type

    @property
    def is_transient(self) -> bool:
        """429 y 5xx se consideran pasajeros (p.ej. para reconexión de streams)."""

        return self.status == 429 or self.status >= 500

    @classmethod
    def generic(cls, status: int, *, retry_after: float | None = None) -> "ApiError":
        """Error sintetizado cuando el cuerpo del problema no se puede decodificar."""

        return cls(
            status,
            problem_type=ProblemType.UNKNOWN,
            title="Unexpected response from server",
            retry_after=retry_after,
        )
