"""
CLI: sync histórico Shopify -> base de datos para una tienda.

Uso recomendado:
  - Backfills y re-sincronizaciones manuales fuera del proceso de la API.
  - La exclusividad por tienda del API no aplica aquí: no lanzarlo mientras
    la API está sincronizando la misma tienda.

Ejecución:
  python scripts/run_sync.py --store-id <uuid>
  python scripts/run_sync.py --store-id <uuid> --best-effort
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

load_dotenv(_ROOT / ".env", override=False)

from storesync.application.services.batch_upserter import BatchUpserter
from storesync.application.services.retrying_executor import RetryingExecutor
from storesync.application.use_cases.reconciliation_engine import ReconciliationEngine
from storesync.core.config import settings
from storesync.infrastructure.database.session import Database
from storesync.infrastructure.external.shopify.shopify_client import ShopifyClient
from storesync.infrastructure.repositories.commerce_repository import SqlAlchemyCommerceRepository
from storesync.shared.constants.sync_constants import SyncOutcome


async def run(store_id: str, fail_fast: bool) -> int:
    database = Database.from_settings(settings)
    shopify = ShopifyClient.from_settings(settings)
    try:
        repository = SqlAlchemyCommerceRepository(database.session_factory)
        tenant = await repository.get_store(store_id)
        if tenant is None:
            logger.error(f"Tienda {store_id} no encontrada")
            return 2

        engine = ReconciliationEngine(
            repository=repository,
            shopify=shopify,
            executor=RetryingExecutor(
                max_retries=settings.STORE_MAX_RETRIES,
                base_delay=settings.STORE_RETRY_BASE_DELAY_S,
            ),
            upserter=BatchUpserter(
                batch_size=settings.SYNC_BATCH_SIZE,
                concurrency_limit=settings.SYNC_CONCURRENCY_LIMIT,
                fail_fast=fail_fast,
            ),
        )
        report = await engine.sync(tenant)
    finally:
        await shopify.aclose()
        await database.close()

    print(json.dumps({**asdict(report), "counts": report.counts}, indent=2, default=str))
    return 1 if report.status == SyncOutcome.FAILURE else 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Sincroniza clientes y pedidos de una tienda.")
    parser.add_argument("--store-id", required=True, help="ID local de la tienda.")
    parser.add_argument(
        "--best-effort",
        action="store_true",
        help="No abortar el lote ante fallos individuales (se reportan como partial_failure).",
    )
    args = parser.parse_args()

    fail_fast = settings.SYNC_FAIL_FAST and not args.best_effort
    logger.info(f"Iniciando sync de tienda {args.store_id} (fail_fast={fail_fast})...")
    return asyncio.run(run(args.store_id, fail_fast))


if __name__ == "__main__":
    raise SystemExit(main())
