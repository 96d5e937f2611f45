"""
Excepciones del pipeline de ingesta (Shopify -> base de datos).

La clasificación transitorio/permanente viaja en el propio error
(`retryable`, `kind`): se fija en el punto donde se captura el fallo
original y nunca se deduce del texto del mensaje.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from storesync.shared.exceptions.base import AppException


class UpstreamError(AppException):
    """Respuesta no exitosa (o fallo de transporte) de la API de Shopify."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: str = "",
        url: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            status_code=502,
            error_code="UPSTREAM_ERROR",
            details={"upstream_status": status_code, "url": url, "body": body[:2000]},
        )
        self.upstream_status = status_code
        self.body = body
        self.url = url

    @property
    def retryable(self) -> bool:
        """429 y 5xx son señales de Shopify de que vale la pena reintentar."""
        if self.upstream_status is None:
            return False
        return self.upstream_status == 429 or 500 <= self.upstream_status < 600


class StoreErrorKind(str, Enum):
    """Tipo estructurado de un fallo de acceso a la base de datos."""
    POOL_EXHAUSTED = "pool_exhausted"
    CONNECTION = "connection"
    TIMEOUT = "timeout"
    CONSTRAINT = "constraint"
    UNKNOWN = "unknown"


TRANSIENT_STORE_KINDS = frozenset(
    {StoreErrorKind.POOL_EXHAUSTED, StoreErrorKind.CONNECTION, StoreErrorKind.TIMEOUT}
)


class StoreError(AppException):
    """Fallo de acceso a la base de datos, clasificado por `kind`."""

    def __init__(self, message: str, kind: StoreErrorKind, *, status_code: int = 500):
        super().__init__(
            message=message,
            status_code=status_code,
            error_code=f"STORE_{kind.value.upper()}",
            details={"kind": kind.value},
        )
        self.kind = kind

    @property
    def retryable(self) -> bool:
        return self.kind in TRANSIENT_STORE_KINDS


class TransientStoreError(StoreError):
    """Pool agotado, timeout o conexión perdida: se reintenta con backoff."""

    def __init__(self, message: str, kind: StoreErrorKind = StoreErrorKind.CONNECTION):
        super().__init__(message, kind, status_code=503)


class PermanentStoreError(StoreError):
    """Violación de restricción u otro fallo que no se arregla reintentando."""

    def __init__(self, message: str, kind: StoreErrorKind = StoreErrorKind.CONSTRAINT):
        super().__init__(message, kind, status_code=409 if kind == StoreErrorKind.CONSTRAINT else 500)


class RetryExhaustedError(AppException):
    """Se agotaron los reintentos de una operación transitoria."""

    def __init__(self, label: str, attempts: int, last_error: BaseException):
        super().__init__(
            message=f"'{label}' falló tras {attempts} intentos: {last_error}",
            status_code=503,
            error_code="RETRY_EXHAUSTED",
            details={"label": label, "attempts": attempts},
        )
        self.label = label
        self.attempts = attempts
        self.last_error = last_error
