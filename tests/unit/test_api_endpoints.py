"""
Tests del contrato HTTP (sync, tiendas, webhooks).

La app se arma con `create_application()` y los servicios se inyectan por
`dependency_overrides` (ASGITransport no ejecuta el startup).
"""
from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from storesync.api.v1.dependencies.repository_deps import get_commerce_repository
from storesync.api.v1.dependencies.use_case_deps import get_event_applier, get_sync_orchestrator
from storesync.application.use_cases.event_applier import EventApplier
from storesync.application.use_cases.sync_use_cases import SyncOrchestrator
from storesync.core.security import security_service
from storesync.domain.entities.sync import SyncReport
from storesync.shared.constants.sync_constants import SyncOutcome


class _ControlledEngine:
    def __init__(self):
        self.outcome = SyncOutcome.SUCCESS
        self.release = asyncio.Event()
        self.release.set()

    async def sync(self, tenant) -> SyncReport:
        await self.release.wait()
        report = SyncReport(
            store_id=tenant.id,
            shop=tenant.shop,
            status=self.outcome,
            customers_fetched=5,
            orders_fetched=4,
            customers_upserted=5,
            orders_upserted=4,
            orders_linked=3,
        )
        if self.outcome == SyncOutcome.FAILURE:
            report.error = "Shopify request falló 503"
        return report


@pytest.fixture
def controlled_engine() -> _ControlledEngine:
    return _ControlledEngine()


@pytest_asyncio.fixture
async def orchestrator(repository, controlled_engine):
    orchestrator = SyncOrchestrator(repository=repository, engine=controlled_engine)
    yield orchestrator
    controlled_engine.release.set()
    await orchestrator.aclose()


@pytest.fixture
def app(repository, orchestrator, executor):
    from main import create_application
    application = create_application()
    application.dependency_overrides[get_commerce_repository] = lambda: repository
    application.dependency_overrides[get_sync_orchestrator] = lambda: orchestrator
    application.dependency_overrides[get_event_applier] = lambda: EventApplier(repository, executor)
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def _auth(user_id: str) -> dict:
    token = security_service.create_access_token({"sub": user_id})
    return {"Authorization": f"Bearer {token}"}


# =========================================================================
# POST /api/v1/sync
# =========================================================================

@pytest.mark.asyncio
async def test_sync_requires_token(client, tenant) -> None:
    response = await client.post("/api/v1/sync", params={"storeId": tenant.id})

    assert response.status_code == 401
    assert response.json()["error"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_sync_rejects_invalid_token(client, tenant) -> None:
    response = await client.post(
        "/api/v1/sync",
        params={"storeId": tenant.id},
        headers={"Authorization": "Bearer no-es-un-jwt"},
    )

    assert response.status_code == 401
    assert response.json()["error"] == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_detached_sync_is_accepted(client, tenant, controlled_engine) -> None:
    controlled_engine.release.clear()

    response = await client.post(
        "/api/v1/sync", params={"storeId": tenant.id}, headers=_auth(tenant.user_id)
    )

    assert response.status_code == 202
    data = response.json()
    assert data["ok"] is True
    assert data["message"] == "Sync started"
    assert data["store_id"] == tenant.id
    assert data["status"] == "running"
    assert data["job_id"]

    controlled_engine.release.set()


@pytest.mark.asyncio
async def test_wait_sync_returns_report(client, tenant) -> None:
    response = await client.post(
        "/api/v1/sync",
        params={"storeId": tenant.id, "wait": "true"},
        headers=_auth(tenant.user_id),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["report"]["status"] == "success"
    assert data["report"]["counts"] == {"customers": 5, "orders": 4}
    assert data["report"]["orders_linked"] == 3


@pytest.mark.asyncio
async def test_wait_sync_failure_is_502(client, tenant, controlled_engine) -> None:
    controlled_engine.outcome = SyncOutcome.FAILURE

    response = await client.post(
        "/api/v1/sync",
        params={"storeId": tenant.id, "wait": "true"},
        headers=_auth(tenant.user_id),
    )

    assert response.status_code == 502
    data = response.json()
    assert data["error"] == "SYNC_FAILED"
    assert "503" in data["message"]
    assert data["details"]["report"]["status"] == "failure"


@pytest.mark.asyncio
async def test_sync_of_foreign_store_is_403(client, tenant) -> None:
    response = await client.post(
        "/api/v1/sync", params={"storeId": tenant.id}, headers=_auth("intruso")
    )

    assert response.status_code == 403
    assert response.json()["error"] == "ACCESS_DENIED"


@pytest.mark.asyncio
async def test_sync_of_unknown_store_is_404(client, tenant) -> None:
    response = await client.post(
        "/api/v1/sync", params={"storeId": "no-existe"}, headers=_auth(tenant.user_id)
    )

    assert response.status_code == 404
    assert response.json()["error"] == "TENANT_NOT_FOUND"


@pytest.mark.asyncio
async def test_sync_without_store_id_uses_first_store(client, tenant) -> None:
    response = await client.post(
        "/api/v1/sync", params={"wait": "true"}, headers=_auth(tenant.user_id)
    )

    assert response.status_code == 200
    assert response.json()["store_id"] == tenant.id


# =========================================================================
# Estado de jobs y tiendas
# =========================================================================

@pytest.mark.asyncio
async def test_job_status_polling(client, tenant) -> None:
    started = await client.post(
        "/api/v1/sync",
        params={"storeId": tenant.id, "wait": "true"},
        headers=_auth(tenant.user_id),
    )
    job_id = started.json()["job_id"]

    response = await client.get(f"/api/v1/sync/jobs/{job_id}", headers=_auth(tenant.user_id))

    assert response.status_code == 200
    data = response.json()
    assert data["job_id"] == job_id
    assert data["status"] == "completed"
    assert data["report"]["customers_upserted"] == 5


@pytest.mark.asyncio
async def test_unknown_job_is_404(client, tenant) -> None:
    response = await client.get("/api/v1/sync/jobs/no-existe", headers=_auth(tenant.user_id))

    assert response.status_code == 404
    assert response.json()["error"] == "SYNC_JOB_NOT_FOUND"


@pytest.mark.asyncio
async def test_store_status_reports_running_then_idle(client, tenant, controlled_engine, orchestrator) -> None:
    controlled_engine.release.clear()
    await client.post("/api/v1/sync", params={"storeId": tenant.id}, headers=_auth(tenant.user_id))

    running = await client.get(f"/api/v1/sync/stores/{tenant.id}/status", headers=_auth(tenant.user_id))
    assert running.json()["state"] == "running"

    controlled_engine.release.set()
    for _ in range(200):
        idle = await client.get(f"/api/v1/sync/stores/{tenant.id}/status", headers=_auth(tenant.user_id))
        if idle.json()["state"] == "idle":
            break
        await asyncio.sleep(0.005)

    data = idle.json()
    assert data["state"] == "idle"
    assert data["last_job"]["status"] == "completed"


@pytest.mark.asyncio
async def test_list_stores_only_returns_own_stores(client, repository, tenant) -> None:
    await repository.add_store(shop="ajena.myshopify.com", access_token="t", user_id="otro")

    response = await client.get("/api/v1/stores", headers=_auth(tenant.user_id))

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["stores"] == [{"id": tenant.id, "shop": tenant.shop}]


# =========================================================================
# Webhooks
# =========================================================================

ORDER = {"id": 820982911946154508, "name": "#9999", "total_price": "403.00", "customer": {"id": 115310627314723954}}


@pytest.mark.asyncio
async def test_order_webhook_is_idempotent(client, tenant) -> None:
    headers = {"X-Shopify-Shop-Domain": tenant.shop}

    created = await client.post("/api/v1/webhooks/orders/create", json=ORDER, headers=headers)
    updated = await client.post(
        "/api/v1/webhooks/orders/updated", json={**ORDER, "financial_status": "paid"}, headers=headers
    )

    assert created.status_code == 200
    assert created.json()["created"] is True
    assert created.json()["external_id"] == "820982911946154508"
    assert updated.json()["created"] is False
    assert updated.json()["local_id"] == created.json()["local_id"]


@pytest.mark.asyncio
async def test_customer_then_order_webhooks_link(client, tenant) -> None:
    headers = {"X-Shopify-Shop-Domain": tenant.shop}

    customer = await client.post(
        "/api/v1/webhooks/customers/create",
        json={"id": 115310627314723954, "email": "john@example.com"},
        headers=headers,
    )
    order = await client.post("/api/v1/webhooks/orders/create", json=ORDER, headers=headers)

    assert customer.json()["entity"] == "customer"
    assert order.json()["customer_id"] == customer.json()["local_id"]


@pytest.mark.asyncio
async def test_webhook_for_unknown_shop_is_404(client, tenant) -> None:
    response = await client.post(
        "/api/v1/webhooks/customers/update",
        json={"id": 1},
        headers={"X-Shopify-Shop-Domain": "desconocida.myshopify.com"},
    )

    assert response.status_code == 404
    assert response.json()["error"] == "TENANT_NOT_FOUND"


@pytest.mark.asyncio
async def test_webhook_reaches_store_registered_with_mixed_case(client, repository) -> None:
    store = await repository.add_store(shop="Mixta.MyShopify.com", access_token="t", user_id="user-3")

    response = await client.post(
        "/api/v1/webhooks/customers/create",
        json={"id": 5, "email": "mixta@example.com"},
        headers={"X-Shopify-Shop-Domain": "mixta.myshopify.com"},
    )

    assert response.status_code == 200
    assert await repository.customer_id_map(store.id) == {"5": response.json()["local_id"]}


@pytest.mark.asyncio
async def test_webhook_without_shop_header_is_422(client, tenant) -> None:
    response = await client.post("/api/v1/webhooks/orders/create", json=ORDER)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_invalid_webhook_record_is_400(client, tenant) -> None:
    response = await client.post(
        "/api/v1/webhooks/orders/create",
        json={"name": "#sin-id"},
        headers={"X-Shopify-Shop-Domain": tenant.shop},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_RECORD"


@pytest.mark.asyncio
async def test_health(client) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
