"""
Mapeos Shopify -> esquema local (clientes y pedidos).

Este es el único punto donde se decide:
- que columnas locales existen para cada entidad
- como se transforman los valores de Shopify
- como se extrae la referencia pedido -> cliente

El sync histórico y los webhooks usan estas mismas funciones, de modo que
un registro llegue por donde llegue produce exactamente la misma fila.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from storesync.shared.exceptions.domain import RecordMappingError

from .types import FieldMapping, parse_iso_datetime


_CENTS = Decimal("0.01")


def _external_id(value: Any) -> str:
    # Shopify usa IDs numéricos; se guardan como string
    return str(value)


def _money(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value)).quantize(_CENTS)
    except InvalidOperation as e:
        raise ValueError(f"importe inválido: {value!r}") from e
    # NaN e Infinity sobreviven a quantize sin error
    if not amount.is_finite():
        raise ValueError(f"importe inválido: {value!r}")
    return amount


CUSTOMER_FIELD_MAPPINGS: List[FieldMapping] = [
    FieldMapping(source_field="id", column="shopify_id", transform=_external_id, required=True),
    FieldMapping(source_field="email", column="email", transform=str),
    FieldMapping(source_field="first_name", column="first_name", transform=str),
    FieldMapping(source_field="last_name", column="last_name", transform=str),
]

ORDER_FIELD_MAPPINGS: List[FieldMapping] = [
    FieldMapping(source_field="id", column="shopify_id", transform=_external_id, required=True),
    # "name" es el número visible del pedido, p.ej. "#1001"
    FieldMapping(source_field="name", column="order_number", transform=str),
    FieldMapping(source_field="total_price", column="total_price", transform=_money, default=Decimal("0.00")),
    FieldMapping(source_field="currency", column="currency", transform=str),
    FieldMapping(source_field="financial_status", column="financial_status", transform=str),
    FieldMapping(source_field="fulfillment_status", column="fulfillment_status", transform=str),
    FieldMapping(source_field="processed_at", column="processed_at", transform=parse_iso_datetime),
]


def map_record_to_row(
    record: Dict[str, Any],
    *,
    entity: str,
    mappings: List[FieldMapping],
    store_id: str,
) -> Dict[str, Any]:
    """
    Mapea un registro crudo de Shopify a un dict listo para UPSERT.

    Reglas:
    - Siempre incluye store_id (la fila pertenece a una sola tienda)
    - Cada FieldMapping decide como mapear y transformar el valor
    - Campos ausentes toman el default del mapeo (los requeridos fallan)
    """
    if not isinstance(record, dict):
        raise RecordMappingError(entity, "el registro no es un objeto JSON")

    row: Dict[str, Any] = {"store_id": store_id}

    for m in mappings:
        raw = record.get(m.source_field)
        if raw is None:
            if m.required:
                raise RecordMappingError(entity, f"falta el campo '{m.source_field}'")
            row[m.column] = m.default
            continue

        try:
            row[m.column] = m.transform(raw) if m.transform else raw
        except (TypeError, ValueError) as e:
            raise RecordMappingError(
                entity, f"campo '{m.source_field}': {e}", record.get("id")
            ) from e

    return row


def map_customer(record: Dict[str, Any], store_id: str) -> Dict[str, Any]:
    """Cliente de Shopify -> fila de `customers`."""
    return map_record_to_row(
        record, entity="customer", mappings=CUSTOMER_FIELD_MAPPINGS, store_id=store_id
    )


def customer_external_id(order: Dict[str, Any]) -> Optional[str]:
    """
    shopify_id del cliente embebido en un pedido, o None para pedidos de invitado.
    """
    customer = order.get("customer")
    if not isinstance(customer, dict):
        return None
    customer_id = customer.get("id")
    if customer_id is None:
        return None
    return _external_id(customer_id)


def map_order(
    record: Dict[str, Any],
    store_id: str,
    customer_id: Optional[str],
) -> Dict[str, Any]:
    """
    Pedido de Shopify -> fila de `orders`.

    `customer_id` es el ID local ya resuelto (o None); la resolución la hace
    quien llama porque depende de lo que ya existe en la base.
    """
    row = map_record_to_row(
        record, entity="order", mappings=ORDER_FIELD_MAPPINGS, store_id=store_id
    )
    row["customer_id"] = customer_id
    return row
