"""
Cliente mínimo de la Admin API REST de Shopify (sin SDKs externos).

Requisitos cubiertos:
- httpx async
- paginación por cursor (header Link, rel="next")
- rate-limit: 429 con Retry-After
- credencial por tienda (X-Shopify-Access-Token)
"""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

import httpx
from loguru import logger

from storesync.shared.exceptions.sync import UpstreamError

from .types import ShopifyCredentials


DEFAULT_RETRY_AFTER_S = 2.0

SleepFn = Callable[[float], Awaitable[None]]


class ShopifyClient:
    """
    Cliente HTTP de Shopify. Expone un async generator por colección.

    Importante:
    - No transforma registros: eso se decide en `mappings`.
    - No asume número de páginas ni de registros: sigue el cursor `next`
      hasta que deja de venir.
    - Solo lectura; no hay efectos aparte de las llamadas HTTP.
    """

    def __init__(
        self,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        api_version: str = "2024-07",
        page_limit: int = 250,
        timeout_s: float = 30.0,
        rate_limit_retries: int = 3,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout_s)
        self._api_version = api_version
        self._page_limit = page_limit
        self._rate_limit_retries = rate_limit_retries
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings, **kwargs: Any) -> "ShopifyClient":
        return cls(
            api_version=settings.SHOPIFY_API_VERSION,
            page_limit=settings.SHOPIFY_PAGE_LIMIT,
            timeout_s=settings.SHOPIFY_TIMEOUT_S,
            rate_limit_retries=settings.SHOPIFY_RATE_LIMIT_RETRIES,
            **kwargs,
        )

    def collection_url(self, shop: str, collection: str) -> str:
        return f"https://{shop}/admin/api/{self._api_version}/{collection}.json"

    async def fetch_all(
        self,
        collection: str,
        credentials: ShopifyCredentials,
        params: Optional[Dict[str, Any]] = None,
    ) -> AsyncIterator[Dict[str, Any]]:
        """
        Itera todos los registros de una colección (`customers`, `orders`...).

        - La primera página se pide con `limit` + params
        - Las siguientes usan exactamente la URL rel="next" del header Link
          (Shopify no admite otros filtros junto a page_info)
        """
        url: Optional[str] = self.collection_url(credentials.shop, collection)
        query: Optional[Dict[str, Any]] = {"limit": self._page_limit, **(params or {})}
        page = 0

        while url:
            response = await self._get(url, credentials, query)
            page += 1

            try:
                payload = response.json()
            except ValueError as e:
                raise UpstreamError(
                    f"Respuesta de Shopify no es JSON ({collection}): {e}",
                    status_code=response.status_code,
                    body=response.text,
                    url=str(response.url),
                ) from e

            records = payload.get(collection) if isinstance(payload, dict) else None
            if records is None:
                raise UpstreamError(
                    f"Respuesta de Shopify sin la clave '{collection}'",
                    status_code=response.status_code,
                    body=response.text,
                    url=str(response.url),
                )

            logger.debug(
                f"[shopify:{credentials.shop}] {collection} página {page}: {len(records)} registro(s)"
            )
            for record in records:
                yield record

            url = next_page_url(response)
            query = None

    async def collect(
        self,
        collection: str,
        credentials: ShopifyCredentials,
        params: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Materializa `fetch_all` en una lista."""
        return [record async for record in self.fetch_all(collection, credentials, params)]

    async def _get(
        self,
        url: str,
        credentials: ShopifyCredentials,
        query: Optional[Dict[str, Any]],
    ) -> httpx.Response:
        """
        GET con manejo de rate limit.

        Estrategia:
        - 2xx: se retorna la respuesta.
        - 429: respeta Retry-After (hasta `rate_limit_retries` veces).
        - resto: UpstreamError inmediato con el body para diagnóstico.
        """
        headers = {
            "X-Shopify-Access-Token": credentials.access_token,
            "Accept": "application/json",
        }

        attempt = 0
        while True:
            try:
                response = await self._http.get(url, params=query, headers=headers)
            except httpx.HTTPError as e:
                raise UpstreamError(
                    f"Fallo de red hablando con Shopify ({credentials.shop}): {e}",
                    url=url,
                ) from e

            if response.is_success:
                return response

            if response.status_code == 429 and attempt < self._rate_limit_retries:
                sleep_s = _retry_after_seconds(response)
                logger.warning(
                    f"[shopify:{credentials.shop}] 429 rate limit, esperando {sleep_s}s "
                    f"(intento {attempt + 1}/{self._rate_limit_retries})"
                )
                await self._sleep(sleep_s)
                attempt += 1
                continue

            raise UpstreamError(
                f"Shopify request falló {response.status_code}: {response.text[:500]}",
                status_code=response.status_code,
                body=response.text,
                url=url,
            )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()


def next_page_url(response: httpx.Response) -> Optional[str]:
    """URL del rel="next" del header Link, o None si es la última página."""
    next_link = response.links.get("next")
    if not next_link:
        return None
    return next_link.get("url") or None


def _retry_after_seconds(response: httpx.Response) -> float:
    retry_after = response.headers.get("Retry-After")
    if not retry_after:
        return DEFAULT_RETRY_AFTER_S
    try:
        return max(0.0, float(retry_after))
    except ValueError:
        return DEFAULT_RETRY_AFTER_S
