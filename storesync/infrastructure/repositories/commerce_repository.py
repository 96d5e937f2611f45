"""
Implementación SQLAlchemy del repositorio de comercio.

Cada operación abre su propia sesión corta desde el `async_sessionmaker`
inyectado: los upserts concurrentes de un lote usan conexiones distintas
del pool, y el número de operaciones en vuelo lo acota el BatchUpserter.

UPSERT por (shopify_id, store_id) con INSERT ... ON CONFLICT DO UPDATE
(PostgreSQL en producción, SQLite en tests). El ID local candidato se genera
antes del INSERT: si RETURNING devuelve ese mismo ID la fila es nueva.
"""
from __future__ import annotations

import asyncio
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from loguru import logger
from sqlalchemy import exc as sa_exc
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql import func

from storesync.domain.entities.sync import UpsertOutcome
from storesync.domain.entities.tenant import Tenant, normalize_shop
from storesync.domain.repositories.commerce_repository import ICommerceRepository
from storesync.infrastructure.database.models import CustomerModel, OrderModel, StoreModel
from storesync.shared.exceptions.sync import (
    PermanentStoreError,
    StoreError,
    StoreErrorKind,
    TransientStoreError,
)


CUSTOMER_UPDATE_COLUMNS = ("email", "first_name", "last_name")
ORDER_UPDATE_COLUMNS = (
    "order_number",
    "total_price",
    "currency",
    "financial_status",
    "fulfillment_status",
    "processed_at",
    "customer_id",
)
NATURAL_KEY = ("shopify_id", "store_id")


def classify_store_error(error: BaseException, operation: str) -> StoreError:
    """
    Traduce una excepción del driver/SQLAlchemy a un StoreError con `kind`.

    - TimeoutError de SQLAlchemy = checkout del pool agotado
    - conexión invalidada / OperationalError / InterfaceError = conexión
    - IntegrityError = restricción violada (no se reintenta)
    """
    message = f"{operation}: {error}"

    if isinstance(error, sa_exc.TimeoutError):
        return TransientStoreError(message, StoreErrorKind.POOL_EXHAUSTED)
    if isinstance(error, sa_exc.IntegrityError):
        return PermanentStoreError(message, StoreErrorKind.CONSTRAINT)
    if isinstance(error, sa_exc.DBAPIError) and error.connection_invalidated:
        return TransientStoreError(message, StoreErrorKind.CONNECTION)
    if isinstance(error, (sa_exc.OperationalError, sa_exc.InterfaceError, sa_exc.DisconnectionError)):
        return TransientStoreError(message, StoreErrorKind.CONNECTION)
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return TransientStoreError(message, StoreErrorKind.TIMEOUT)
    if isinstance(error, (ConnectionError, OSError)):
        return TransientStoreError(message, StoreErrorKind.CONNECTION)
    return PermanentStoreError(message, StoreErrorKind.UNKNOWN)


def _to_tenant(store: StoreModel) -> Tenant:
    return Tenant(
        id=store.id,
        shop=store.shop,
        access_token=store.access_token,
        user_id=store.user_id,
    )


class SqlAlchemyCommerceRepository(ICommerceRepository):
    """Repositorio de tiendas, clientes y pedidos sobre SQLAlchemy async."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except StoreError:
            raise
        except (sa_exc.SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            error = classify_store_error(e, operation)
            logger.debug(f"[store] {operation} falló ({error.kind.value}): {e}")
            raise error from e

    # ------------------------------------------------------------------
    # Tiendas
    # ------------------------------------------------------------------

    async def get_store(self, store_id: str) -> Optional[Tenant]:
        async with self._session("get_store") as session:
            store = await session.get(StoreModel, store_id)
            return _to_tenant(store) if store else None

    async def get_store_by_shop(self, shop: str) -> Optional[Tenant]:
        async with self._session("get_store_by_shop") as session:
            result = await session.execute(
                select(StoreModel).where(StoreModel.shop == normalize_shop(shop))
            )
            store = result.scalars().first()
            return _to_tenant(store) if store else None

    async def get_default_store_for_user(self, user_id: str) -> Optional[Tenant]:
        stores = await self.list_stores_for_user(user_id)
        return stores[0] if stores else None

    async def list_stores_for_user(self, user_id: str) -> List[Tenant]:
        async with self._session("list_stores_for_user") as session:
            result = await session.execute(
                select(StoreModel)
                .where(StoreModel.user_id == user_id)
                .order_by(StoreModel.created_at, StoreModel.id)
            )
            return [_to_tenant(s) for s in result.scalars().all()]

    async def add_store(self, *, shop: str, access_token: str, user_id: str) -> Tenant:
        """
        Registra una tienda. En producción lo hace el callback de OAuth;
        aquí lo usan scripts y tests.
        El dominio se guarda normalizado, igual que se busca.
        """
        async with self._session("add_store") as session:
            store = StoreModel(shop=normalize_shop(shop), access_token=access_token, user_id=user_id)
            session.add(store)
            await session.commit()
            return _to_tenant(store)

    # ------------------------------------------------------------------
    # Clientes y pedidos
    # ------------------------------------------------------------------

    async def upsert_customer(self, row: Dict[str, Any]) -> UpsertOutcome:
        return await self._upsert(CustomerModel, row, CUSTOMER_UPDATE_COLUMNS)

    async def upsert_order(self, row: Dict[str, Any]) -> UpsertOutcome:
        return await self._upsert(OrderModel, row, ORDER_UPDATE_COLUMNS)

    async def customer_id_map(self, store_id: str) -> Dict[str, str]:
        async with self._session("customer_id_map") as session:
            result = await session.execute(
                select(CustomerModel.shopify_id, CustomerModel.id)
                .where(CustomerModel.store_id == store_id)
            )
            return {shopify_id: local_id for shopify_id, local_id in result.all()}

    async def find_customer_id(self, store_id: str, shopify_id: str) -> Optional[str]:
        async with self._session("find_customer_id") as session:
            result = await session.execute(
                select(CustomerModel.id).where(
                    CustomerModel.store_id == store_id,
                    CustomerModel.shopify_id == shopify_id,
                )
            )
            return result.scalars().first()

    async def _upsert(
        self,
        model,
        row: Dict[str, Any],
        update_columns: Sequence[str],
    ) -> UpsertOutcome:
        """
        UPSERT por (shopify_id, store_id): último valor gana en las columnas
        de `update_columns`; id y created_at no se tocan en el UPDATE.
        """
        for key in NATURAL_KEY:
            if not row.get(key):
                raise ValueError(f"Falta '{key}' en row para UPSERT de {model.__tablename__}")

        candidate_id = str(uuid.uuid4())
        operation = f"upsert {model.__tablename__} shopify_id={row['shopify_id']}"

        async with self._session(operation) as session:
            stmt = self._insert_for(session, model).values(id=candidate_id, **row)
            set_ = {col: getattr(stmt.excluded, col) for col in update_columns if col in row}
            set_["updated_at"] = func.now()
            stmt = stmt.on_conflict_do_update(
                index_elements=list(NATURAL_KEY),
                set_=set_,
            ).returning(model.id)

            result = await session.execute(stmt)
            local_id = result.scalar_one()
            await session.commit()

        return UpsertOutcome(local_id=local_id, created=local_id == candidate_id)

    @staticmethod
    def _insert_for(session: AsyncSession, model):
        dialect = session.bind.dialect.name
        if dialect == "postgresql":
            return postgresql.insert(model)
        if dialect == "sqlite":
            return sqlite.insert(model)
        raise PermanentStoreError(
            f"Dialecto '{dialect}' sin soporte de UPSERT", StoreErrorKind.UNKNOWN
        )
