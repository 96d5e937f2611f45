"""
Configuración de fixtures para pytest.

- La base de datos es un archivo SQLite temporal por test (aiosqlite): los
  upserts concurrentes usan conexiones distintas, cosa que `:memory:` no
  comparte entre conexiones.
- Shopify se simula con `httpx.MockTransport` sirviendo páginas enlazadas
  por el header Link.
"""
from __future__ import annotations

from typing import Any, AsyncGenerator, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio

from storesync.application.services.batch_upserter import BatchUpserter
from storesync.application.services.retrying_executor import RetryingExecutor
from storesync.application.use_cases.reconciliation_engine import ReconciliationEngine
from storesync.domain.entities.tenant import Tenant
from storesync.infrastructure.database.session import Database
from storesync.infrastructure.external.shopify.shopify_client import ShopifyClient
from storesync.infrastructure.repositories.commerce_repository import SqlAlchemyCommerceRepository


SHOP = "acme.myshopify.com"
OWNER_ID = "user-1"


class FakeShopify:
    """
    Admin API falsa: sirve cada colección en las páginas indicadas y
    registra cada request recibida.
    """

    def __init__(self, pages: Optional[Dict[str, List[List[Dict[str, Any]]]]] = None):
        self.pages = pages or {}
        self.requests: List[httpx.Request] = []
        self.failures: Dict[str, httpx.Response] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        collection = request.url.path.rsplit("/", 1)[-1].removesuffix(".json")

        if collection in self.failures:
            return self.failures[collection]

        pages = self.pages.get(collection, [[]])
        index = int(request.url.params.get("page_info", "0"))
        headers = {}
        if index + 1 < len(pages):
            next_url = f"https://{request.url.host}{request.url.path}?limit=3&page_info={index + 1}"
            headers["Link"] = f'<{next_url}>; rel="next"'
        return httpx.Response(200, json={collection: pages[index]}, headers=headers)

    def requests_for(self, collection: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(f"/{collection}.json")]


async def _no_sleep(_seconds: float) -> None:
    return None


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """Base de datos con el esquema creado, limpia para cada test."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'storesync.db'}")
    await db.create_all()
    yield db
    await db.close()


@pytest.fixture
def repository(database: Database) -> SqlAlchemyCommerceRepository:
    return SqlAlchemyCommerceRepository(database.session_factory)


@pytest_asyncio.fixture
async def tenant(repository: SqlAlchemyCommerceRepository) -> Tenant:
    return await repository.add_store(shop=SHOP, access_token="shpat_test", user_id=OWNER_ID)


@pytest.fixture
def fake_shopify() -> FakeShopify:
    return FakeShopify()


@pytest_asyncio.fixture
async def shopify_client(fake_shopify: FakeShopify) -> AsyncGenerator[ShopifyClient, None]:
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake_shopify.handler))
    client = ShopifyClient(http_client=http, page_limit=3, sleep=_no_sleep)
    yield client
    await http.aclose()


@pytest.fixture
def executor() -> RetryingExecutor:
    return RetryingExecutor(max_retries=3, base_delay=0.01, sleep=_no_sleep)


@pytest.fixture
def engine(repository, shopify_client, executor) -> ReconciliationEngine:
    return ReconciliationEngine(
        repository=repository,
        shopify=shopify_client,
        executor=executor,
        upserter=BatchUpserter(batch_size=2, concurrency_limit=2),
    )
