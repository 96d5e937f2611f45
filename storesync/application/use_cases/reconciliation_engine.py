"""
Sync histórico Shopify -> base de datos para una tienda.

Diseño (resumen):
- Descarga en paralelo la colección completa de clientes y de pedidos
- Upsert de clientes por (shopify_id, store_id)
- Carga el mapa shopify_id -> id local de los clientes de la tienda
- Upsert de pedidos resolviendo su cliente por ese mapa (desconocido = invitado)

Orden: las descargas pueden ir en cualquier orden, pero los clientes se
escriben SIEMPRE antes que los pedidos que los referencian.

Fallos: un error de Shopify aborta la corrida. Lo ya escrito no se deshace;
los upserts son idempotentes y reintentar converge al mismo estado final.
Los contadores y fallos del reporte reflejan lo escrito antes del aborto.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from storesync.application.services.batch_upserter import BatchResult, BatchUpserter
from storesync.application.services.record_ingestor import RecordIngestor, resolver_from_map
from storesync.application.services.retrying_executor import RetryingExecutor
from storesync.domain.entities.sync import SyncReport, UpsertOutcome
from storesync.domain.entities.tenant import Tenant
from storesync.domain.repositories.commerce_repository import ICommerceRepository
from storesync.infrastructure.external.shopify.shopify_client import ShopifyClient
from storesync.infrastructure.external.shopify.types import ShopifyCredentials, utc_now
from storesync.shared.constants.sync_constants import (
    CUSTOMERS_COLLECTION,
    ORDERS_COLLECTION,
    SyncOutcome,
)
from storesync.shared.exceptions.sync import UpstreamError


def _raw_key(raw: Any) -> str:
    if isinstance(raw, dict):
        return str(raw.get("id"))
    return repr(raw)


class ReconciliationEngine:
    """
    Orquestador fetch -> transform -> link -> upsert de una tienda.
    """

    def __init__(
        self,
        *,
        repository: ICommerceRepository,
        shopify: ShopifyClient,
        executor: RetryingExecutor,
        upserter: BatchUpserter,
    ) -> None:
        self._repository = repository
        self._shopify = shopify
        self._executor = executor
        self._upserter = upserter
        self._ingestor = RecordIngestor(repository, executor)

    async def sync(self, tenant: Tenant) -> SyncReport:
        """
        Ejecuta una reconciliación completa para la tienda.

        Nunca levanta por fallos de Shopify o de la base: el resultado y el
        error terminal quedan en el SyncReport.
        """
        tag = f"[sync:{tenant.shop}]"
        report = SyncReport(store_id=tenant.id, shop=tenant.shop, started_at=utc_now())
        logger.info(f"{tag} Iniciando sync histórico")

        try:
            raw_customers, raw_orders = await self._fetch_collections(tenant)
            report.customers_fetched = len(raw_customers)
            report.orders_fetched = len(raw_orders)
            logger.info(
                f"{tag} Descargados {report.customers_fetched} cliente(s) y "
                f"{report.orders_fetched} pedido(s) de Shopify"
            )

            await self._sync_customers(tenant, raw_customers, report)

            customer_map = await self._executor.execute(
                lambda: self._repository.customer_id_map(tenant.id),
                label=f"customer_id_map ({tenant.shop})",
            )

            await self._sync_orders(tenant, raw_orders, customer_map, report)

            report.status = SyncOutcome.PARTIAL_FAILURE if report.failures else SyncOutcome.SUCCESS

        except UpstreamError as e:
            logger.error(f"{tag} Error de Shopify, sync abortado: {e}")
            report.status = SyncOutcome.FAILURE
            report.error = str(e)
        except Exception as e:
            logger.exception(f"{tag} Error durante sync histórico: {e}")
            report.status = SyncOutcome.FAILURE
            report.error = str(e)
        finally:
            report.finished_at = utc_now()

        logger.info(
            f"{tag} Sync {report.status.value}: clientes={report.customers_upserted}/"
            f"{report.customers_fetched}, pedidos={report.orders_upserted}/{report.orders_fetched} "
            f"(vinculados={report.orders_linked}, fallos={len(report.failures)})"
        )
        return report

    async def _fetch_collections(
        self, tenant: Tenant
    ) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        """
        Descarga clientes y pedidos en paralelo (páginas secuenciales dentro
        de cada colección). Si una falla, la otra se cancela.
        """
        credentials = ShopifyCredentials(shop=tenant.shop, access_token=tenant.access_token)
        tasks = [
            asyncio.ensure_future(self._shopify.collect(CUSTOMERS_COLLECTION, credentials)),
            asyncio.ensure_future(
                self._shopify.collect(ORDERS_COLLECTION, credentials, {"status": "any"})
            ),
        ]
        try:
            customers, orders = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return customers, orders

    async def _sync_customers(
        self,
        tenant: Tenant,
        raw_customers: List[Dict[str, Any]],
        report: SyncReport,
    ) -> None:
        async def _upsert(raw: Dict[str, Any]) -> UpsertOutcome:
            return await self._ingestor.upsert_customer(tenant, raw)

        result: BatchResult[UpsertOutcome] = BatchResult()
        try:
            await self._upserter.apply(
                raw_customers, _upsert, key=_raw_key, label=f"customers:{tenant.shop}", into=result
            )
        finally:
            report.customers_upserted = result.succeeded
            report.failures.extend(result.failures)

    async def _sync_orders(
        self,
        tenant: Tenant,
        raw_orders: List[Dict[str, Any]],
        customer_map: Dict[str, str],
        report: SyncReport,
    ) -> None:
        resolve = resolver_from_map(customer_map)

        async def _upsert(raw: Dict[str, Any]) -> Tuple[UpsertOutcome, Optional[str]]:
            return await self._ingestor.upsert_order(tenant, raw, resolve)

        result: BatchResult[Tuple[UpsertOutcome, Optional[str]]] = BatchResult()
        try:
            await self._upserter.apply(
                raw_orders, _upsert, key=_raw_key, label=f"orders:{tenant.shop}", into=result
            )
        finally:
            report.orders_upserted = result.succeeded
            report.orders_linked = sum(1 for _, customer_id in result.results if customer_id)
            report.failures.extend(result.failures)
