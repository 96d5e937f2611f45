"""
Tests unitarios para SqlAlchemyCommerceRepository (SQLite temporal).

- UPSERT por (shopify_id, store_id): crea una vez, luego actualiza.
- El mismo shopify_id en dos tiendas son dos filas distintas.
- Los errores del driver se clasifican por tipo, no por mensaje.
"""
from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import exc as sa_exc
from sqlalchemy import func, select

from storesync.infrastructure.database.models import CustomerModel, OrderModel
from storesync.infrastructure.repositories.commerce_repository import classify_store_error
from storesync.shared.exceptions.sync import (
    PermanentStoreError,
    StoreErrorKind,
    TransientStoreError,
)


def _customer_row(store_id: str, shopify_id: str = "1", email: str = "a@example.com") -> dict:
    return {
        "store_id": store_id,
        "shopify_id": shopify_id,
        "email": email,
        "first_name": "Ana",
        "last_name": "Diaz",
    }


async def _count(database, model) -> int:
    async with database.session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.mark.asyncio
async def test_upsert_customer_creates_then_updates(database, repository, tenant) -> None:
    first = await repository.upsert_customer(_customer_row(tenant.id))
    second = await repository.upsert_customer(_customer_row(tenant.id, email="nuevo@example.com"))

    assert first.created is True
    assert second.created is False
    assert second.local_id == first.local_id
    assert await _count(database, CustomerModel) == 1

    async with database.session_factory() as session:
        customer = await session.get(CustomerModel, first.local_id)
    assert customer.email == "nuevo@example.com"


@pytest.mark.asyncio
async def test_same_external_id_in_two_stores_are_distinct_rows(database, repository, tenant) -> None:
    other = await repository.add_store(shop="other.myshopify.com", access_token="t", user_id="user-2")

    a = await repository.upsert_customer(_customer_row(tenant.id))
    b = await repository.upsert_customer(_customer_row(other.id))

    assert a.local_id != b.local_id
    assert a.created and b.created
    assert await _count(database, CustomerModel) == 2


@pytest.mark.asyncio
async def test_upsert_order_last_write_wins_including_customer(database, repository, tenant) -> None:
    customer = await repository.upsert_customer(_customer_row(tenant.id))
    row = {
        "store_id": tenant.id,
        "shopify_id": "1001",
        "order_number": "#1001",
        "total_price": Decimal("10.00"),
        "currency": "USD",
        "financial_status": "pending",
        "fulfillment_status": None,
        "processed_at": None,
        "customer_id": None,
    }

    created = await repository.upsert_order(row)
    updated = await repository.upsert_order(
        {**row, "financial_status": "paid", "total_price": Decimal("12.50"), "customer_id": customer.local_id}
    )

    assert created.created is True
    assert updated.created is False
    async with database.session_factory() as session:
        order = await session.get(OrderModel, created.local_id)
    assert order.financial_status == "paid"
    assert order.total_price == Decimal("12.50")
    assert order.customer_id == customer.local_id


@pytest.mark.asyncio
async def test_customer_lookups_are_scoped_by_store(repository, tenant) -> None:
    other = await repository.add_store(shop="other.myshopify.com", access_token="t", user_id="user-2")
    mine = await repository.upsert_customer(_customer_row(tenant.id, shopify_id="7"))
    await repository.upsert_customer(_customer_row(other.id, shopify_id="8"))

    assert await repository.customer_id_map(tenant.id) == {"7": mine.local_id}
    assert await repository.find_customer_id(tenant.id, "7") == mine.local_id
    assert await repository.find_customer_id(tenant.id, "8") is None


@pytest.mark.asyncio
async def test_store_queries(repository, tenant) -> None:
    assert await repository.get_store(tenant.id) == tenant
    assert await repository.get_store("missing") is None
    assert (await repository.get_store_by_shop(tenant.shop)).id == tenant.id
    assert (await repository.get_default_store_for_user(tenant.user_id)).id == tenant.id
    assert await repository.get_default_store_for_user("nobody") is None

    second = await repository.add_store(shop="second.myshopify.com", access_token="t", user_id=tenant.user_id)
    stores = await repository.list_stores_for_user(tenant.user_id)
    assert {t.id for t in stores} == {tenant.id, second.id}


@pytest.mark.asyncio
async def test_shop_domain_is_stored_and_matched_normalized(repository) -> None:
    store = await repository.add_store(shop="  Mixed-Case.MyShopify.com ", access_token="t", user_id="user-9")

    assert store.shop == "mixed-case.myshopify.com"
    assert (await repository.get_store_by_shop("mixed-case.myshopify.com")).id == store.id
    assert (await repository.get_store_by_shop("MIXED-CASE.myshopify.com")).id == store.id


@pytest.mark.asyncio
async def test_upsert_requires_natural_key(repository, tenant) -> None:
    with pytest.raises(ValueError):
        await repository.upsert_customer({"store_id": tenant.id, "email": "x@example.com"})


@pytest.mark.asyncio
async def test_concurrent_upserts_of_same_record_leave_one_row(database, repository, tenant) -> None:
    outcomes = await asyncio.gather(
        *(repository.upsert_customer(_customer_row(tenant.id)) for _ in range(3)),
        return_exceptions=True,
    )

    ok = [o for o in outcomes if not isinstance(o, BaseException)]
    assert ok
    assert len({o.local_id for o in ok}) == 1
    assert await _count(database, CustomerModel) == 1


class TestClassifyStoreError:
    """Clasificación estructurada de errores del driver."""

    def test_pool_timeout_is_transient_pool_exhausted(self) -> None:
        error = classify_store_error(sa_exc.TimeoutError("QueuePool limit reached"), "op")
        assert isinstance(error, TransientStoreError)
        assert error.kind == StoreErrorKind.POOL_EXHAUSTED
        assert error.retryable

    def test_operational_error_is_transient_connection(self) -> None:
        error = classify_store_error(
            sa_exc.OperationalError("SELECT 1", {}, Exception("server closed the connection")), "op"
        )
        assert isinstance(error, TransientStoreError)
        assert error.kind == StoreErrorKind.CONNECTION

    def test_integrity_error_is_permanent_constraint(self) -> None:
        error = classify_store_error(
            sa_exc.IntegrityError("INSERT", {}, Exception("violates foreign key")), "op"
        )
        assert isinstance(error, PermanentStoreError)
        assert error.kind == StoreErrorKind.CONSTRAINT
        assert error.status_code == 409
        assert not error.retryable

    def test_driver_timeout_is_transient_timeout(self) -> None:
        error = classify_store_error(asyncio.TimeoutError(), "op")
        assert error.kind == StoreErrorKind.TIMEOUT
        assert error.retryable

    def test_unknown_error_is_permanent(self) -> None:
        # Aunque el mensaje hable de timeouts, sin tipo no se reintenta
        error = classify_store_error(sa_exc.ArgumentError("connection timeout"), "op")
        assert isinstance(error, PermanentStoreError)
        assert error.kind == StoreErrorKind.UNKNOWN
