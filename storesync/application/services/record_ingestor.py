"""
Transformación + upsert de un registro individual.

Es la pieza común a los dos caminos de ingesta (sync histórico y webhooks):
ambos mapean con las mismas funciones, resuelven el cliente con la misma
regla y escriben con el mismo upsert por (shopify_id, store_id).
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from loguru import logger

from storesync.application.services.retrying_executor import RetryingExecutor
from storesync.domain.entities.sync import UpsertOutcome
from storesync.domain.entities.tenant import Tenant
from storesync.domain.repositories.commerce_repository import ICommerceRepository
from storesync.infrastructure.external.shopify.mappings import (
    customer_external_id,
    map_customer,
    map_order,
)


CustomerResolver = Callable[[str], Awaitable[Optional[str]]]


class RecordIngestor:
    """Mapea registros crudos de Shopify y los escribe via RetryingExecutor."""

    def __init__(self, repository: ICommerceRepository, executor: RetryingExecutor):
        self._repository = repository
        self._executor = executor

    async def upsert_customer(self, tenant: Tenant, raw: Dict[str, Any]) -> UpsertOutcome:
        row = map_customer(raw, tenant.id)
        return await self._executor.execute(
            lambda: self._repository.upsert_customer(row),
            label=f"upsert customer {row['shopify_id']} ({tenant.shop})",
        )

    async def upsert_order(
        self,
        tenant: Tenant,
        raw: Dict[str, Any],
        resolve_customer: CustomerResolver,
    ) -> Tuple[UpsertOutcome, Optional[str]]:
        """
        Upsert de un pedido resolviendo su cliente.

        Un cliente que no existe localmente no es un error: el pedido queda
        como invitado (customer_id NULL).

        Returns:
            (UpsertOutcome, customer_id local o None)
        """
        external_customer = customer_external_id(raw)
        customer_id: Optional[str] = None
        if external_customer is not None:
            customer_id = await resolve_customer(external_customer)
            if customer_id is None:
                logger.debug(
                    f"[ingest:{tenant.shop}] pedido {raw.get('id')} referencia cliente "
                    f"desconocido {external_customer}; se guarda sin cliente"
                )

        row = map_order(raw, tenant.id, customer_id)
        outcome = await self._executor.execute(
            lambda: self._repository.upsert_order(row),
            label=f"upsert order {row['shopify_id']} ({tenant.shop})",
        )
        return outcome, customer_id

    def lookup_customer(self, tenant: Tenant) -> CustomerResolver:
        """Resolver que consulta la base (un SELECT por pedido)."""

        async def _resolve(external_id: str) -> Optional[str]:
            return await self._executor.execute(
                lambda: self._repository.find_customer_id(tenant.id, external_id),
                label=f"find customer {external_id} ({tenant.shop})",
            )

        return _resolve


def resolver_from_map(customer_map: Dict[str, str]) -> CustomerResolver:
    """Resolver sobre un mapa shopify_id -> id local ya cargado."""

    async def _resolve(external_id: str) -> Optional[str]:
        return customer_map.get(external_id)

    return _resolve
