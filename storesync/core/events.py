"""
Manejadores de eventos de inicio y cierre de la aplicación.

El startup abre la base de datos y arma el grafo de servicios del sync; todo
queda en `app.state` y las dependencias de la API lo leen de ahí.
"""
from typing import Callable
from fastapi import FastAPI
from loguru import logger

from storesync.core.config import settings
from storesync.application.services.batch_upserter import BatchUpserter
from storesync.application.services.retrying_executor import RetryingExecutor
from storesync.application.use_cases.event_applier import EventApplier
from storesync.application.use_cases.reconciliation_engine import ReconciliationEngine
from storesync.application.use_cases.sync_use_cases import SyncOrchestrator
from storesync.infrastructure.database.session import Database
from storesync.infrastructure.external.shopify.shopify_client import ShopifyClient
from storesync.infrastructure.repositories.commerce_repository import SqlAlchemyCommerceRepository


def startup_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de inicio de la aplicación.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Función asíncrona de inicio
    """
    async def startup() -> None:
        """Inicializa recursos al inicio de la aplicación."""
        try:
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")

            # Configurar logging adicional
            logger.add(
                settings.LOG_FILE,
                rotation="500 MB",
                retention="10 days",
                level=settings.LOG_LEVEL
            )

            _validate_config()

            # Inicializar base de datos (crea tablas si no existen)
            database = Database.from_settings(settings)
            await database.create_all()
            app.state.database = database
            logger.info("Base de datos inicializada")

            _wire_services(app, database)
            logger.info(
                f"Servicios de sync listos (batch={settings.SYNC_BATCH_SIZE}, "
                f"concurrencia={settings.SYNC_CONCURRENCY_LIMIT}, "
                f"fail_fast={settings.SYNC_FAIL_FAST})"
            )

            logger.success("Aplicación iniciada correctamente")

            _print_available_urls()

        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise

    return startup


def _wire_services(app: FastAPI, database: Database) -> None:
    """Arma Shopify client, repositorio, engine, orquestador y applier."""
    repository = SqlAlchemyCommerceRepository(database.session_factory)
    shopify = ShopifyClient.from_settings(settings)
    executor = RetryingExecutor(
        max_retries=settings.STORE_MAX_RETRIES,
        base_delay=settings.STORE_RETRY_BASE_DELAY_S,
    )
    upserter = BatchUpserter(
        batch_size=settings.SYNC_BATCH_SIZE,
        concurrency_limit=settings.SYNC_CONCURRENCY_LIMIT,
        fail_fast=settings.SYNC_FAIL_FAST,
    )
    engine = ReconciliationEngine(
        repository=repository,
        shopify=shopify,
        executor=executor,
        upserter=upserter,
    )

    app.state.shopify_client = shopify
    app.state.sync_orchestrator = SyncOrchestrator(
        repository=repository,
        engine=engine,
        timeout_s=settings.SYNC_TIMEOUT_SECONDS,
    )
    app.state.event_applier = EventApplier(repository, executor)


def _validate_config() -> None:
    """Valida que la configuración crítica esté presente."""
    warnings = []

    if settings.SECRET_KEY == "change-this-secret-key-in-production" and not settings.is_development:
        warnings.append("SECRET_KEY por defecto fuera de development")
    if settings.DB_POOL_SIZE + settings.DB_MAX_OVERFLOW < settings.SYNC_CONCURRENCY_LIMIT:
        warnings.append(
            "SYNC_CONCURRENCY_LIMIT supera el tamaño del pool; los upserts esperaran conexión"
        )

    for warning in warnings:
        logger.warning(f"CONFIG: {warning}")


def _print_available_urls() -> None:
    """Imprime las URLs disponibles de la aplicación."""
    if settings.HOST == "0.0.0.0":
        access_host = "localhost"
    else:
        access_host = settings.HOST

    base_url = f"http://{access_host}:{settings.PORT}"

    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")
    logger.opt(colors=True).info("<bold><green>URLS DISPONIBLES:</green></bold>")
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")
    logger.opt(colors=True).info(f"<cyan>  Swagger UI:  {base_url}/docs</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Health:      {base_url}/health</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Sync:        {base_url}/api/v1/sync</cyan>")
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicación.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Función asíncrona de cierre
    """
    async def shutdown() -> None:
        """Libera recursos al cerrar la aplicación."""
        logger.info("Cerrando aplicación...")

        orchestrator = getattr(app.state, "sync_orchestrator", None)
        if orchestrator is not None:
            cancelled = await orchestrator.aclose()
            logger.info(f"Syncs en curso cancelados: {cancelled}")

        shopify = getattr(app.state, "shopify_client", None)
        if shopify is not None:
            await shopify.aclose()
            logger.info("Cliente de Shopify cerrado")

        database = getattr(app.state, "database", None)
        if database is not None:
            await database.close()
            logger.info("Conexiones de base de datos cerradas")

        logger.success("Aplicación cerrada correctamente")

    return shutdown
