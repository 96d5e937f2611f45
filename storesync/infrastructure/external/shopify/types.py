"""
Tipos y utilidades puras para la integración con Shopify.

Se mantienen libres de I/O para poder testearlos facilmente.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional


def utc_now() -> datetime:
    """Retorna la hora actual en UTC, como datetime aware."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normaliza datetime a UTC (aware).

    Shopify devuelve ISO8601 con offset de la zona de la tienda
    (p.ej. "2024-03-01T10:15:00-05:00"); normalizamos para comparar y
    almacenar de forma consistente.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso_datetime(value: Any) -> Optional[datetime]:
    """ISO8601 (con 'Z' u offset) -> datetime UTC. None/'' -> None."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))


@dataclass(frozen=True)
class ShopifyCredentials:
    """Credencial por tienda para la Admin API."""

    shop: str
    access_token: str

    def __repr__(self) -> str:
        # No exponer el token en logs
        return f"ShopifyCredentials(shop={self.shop!r})"


Transform = Callable[[Any], Any]


@dataclass(frozen=True)
class FieldMapping:
    """
    Define el mapeo de un campo de Shopify a una columna local.

    - source_field: nombre del campo en el JSON de Shopify
    - column: nombre de la columna local
    - transform: función opcional para transformar el valor antes de persistir
    - required: si True, el valor debe existir (si falta se levanta error)
    - default: valor cuando el campo viene ausente o null
    """

    source_field: str
    column: str
    transform: Optional[Transform] = None
    required: bool = False
    default: Any = None
