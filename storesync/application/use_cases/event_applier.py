"""
Casos de uso para aplicar eventos (webhooks) de Shopify de un solo registro.

Usa exactamente el mismo mapeo, la misma resolución de cliente y el mismo
upsert que el sync histórico, así que un pedido que llega por webhook y
luego por sync deja la misma fila. Reentregas (at-least-once) actualizan
la fila existente en lugar de duplicarla.
"""
from typing import Any, Dict

from loguru import logger

from storesync.application.services.record_ingestor import RecordIngestor
from storesync.application.services.retrying_executor import RetryingExecutor
from storesync.domain.entities.sync import ApplyResult
from storesync.domain.entities.tenant import Tenant
from storesync.domain.repositories.commerce_repository import ICommerceRepository


class EventApplier:
    """Aplica pedidos y clientes individuales empujados por Shopify."""

    def __init__(self, repository: ICommerceRepository, executor: RetryingExecutor):
        self._ingestor = RecordIngestor(repository, executor)

    async def apply_order_event(self, tenant: Tenant, raw_order: Dict[str, Any]) -> ApplyResult:
        """
        Upsert de un pedido recibido por webhook.

        Los errores (registro inválido, base caida tras reintentos) se
        propagan al endpoint sin recuperación local.
        """
        outcome, customer_id = await self._ingestor.upsert_order(
            tenant, raw_order, self._ingestor.lookup_customer(tenant)
        )
        result = ApplyResult(
            entity="order",
            external_id=str(raw_order["id"]),
            local_id=outcome.local_id,
            created=outcome.created,
            customer_id=customer_id,
        )
        logger.info(
            f"[webhook:{tenant.shop}] pedido {result.external_id} "
            f"{'creado' if result.created else 'actualizado'} (cliente={customer_id})"
        )
        return result

    async def apply_customer_event(self, tenant: Tenant, raw_customer: Dict[str, Any]) -> ApplyResult:
        """Upsert de un cliente recibido por webhook."""
        outcome = await self._ingestor.upsert_customer(tenant, raw_customer)
        result = ApplyResult(
            entity="customer",
            external_id=str(raw_customer["id"]),
            local_id=outcome.local_id,
            created=outcome.created,
        )
        logger.info(
            f"[webhook:{tenant.shop}] cliente {result.external_id} "
            f"{'creado' if result.created else 'actualizado'}"
        )
        return result
