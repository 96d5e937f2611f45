"""
Endpoints de webhooks de Shopify (pedidos y clientes).

La tienda se identifica por el header `X-Shopify-Shop-Domain`; el body es
el registro crudo tal como lo envía Shopify. Shopify reentrega con
semántica at-least-once: aplicar dos veces el mismo evento es seguro.
"""
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Header

from storesync.application.dto.webhook_dto import ApplyResultDTO
from storesync.application.use_cases.event_applier import EventApplier
from storesync.api.v1.dependencies.repository_deps import get_commerce_repository
from storesync.api.v1.dependencies.use_case_deps import get_event_applier
from storesync.domain.entities.tenant import Tenant
from storesync.domain.repositories.commerce_repository import ICommerceRepository
from storesync.shared.exceptions.domain import TenantNotFound


router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


async def get_webhook_tenant(
    shop_domain: str = Header(..., alias="X-Shopify-Shop-Domain"),
    repository: ICommerceRepository = Depends(get_commerce_repository),
) -> Tenant:
    """Tienda destinataria del webhook (404 si no está registrada)."""
    tenant = await repository.get_store_by_shop(shop_domain)
    if tenant is None:
        raise TenantNotFound(shop=shop_domain)
    return tenant


@router.post("/orders/create", response_model=ApplyResultDTO, summary="Pedido creado")
async def order_created(
    payload: Dict[str, Any] = Body(...),
    tenant: Tenant = Depends(get_webhook_tenant),
    applier: EventApplier = Depends(get_event_applier),
) -> ApplyResultDTO:
    return ApplyResultDTO.from_result(await applier.apply_order_event(tenant, payload))


@router.post("/orders/updated", response_model=ApplyResultDTO, summary="Pedido actualizado")
async def order_updated(
    payload: Dict[str, Any] = Body(...),
    tenant: Tenant = Depends(get_webhook_tenant),
    applier: EventApplier = Depends(get_event_applier),
) -> ApplyResultDTO:
    return ApplyResultDTO.from_result(await applier.apply_order_event(tenant, payload))


@router.post("/customers/create", response_model=ApplyResultDTO, summary="Cliente creado")
async def customer_created(
    payload: Dict[str, Any] = Body(...),
    tenant: Tenant = Depends(get_webhook_tenant),
    applier: EventApplier = Depends(get_event_applier),
) -> ApplyResultDTO:
    return ApplyResultDTO.from_result(await applier.apply_customer_event(tenant, payload))


@router.post("/customers/update", response_model=ApplyResultDTO, summary="Cliente actualizado")
async def customer_updated(
    payload: Dict[str, Any] = Body(...),
    tenant: Tenant = Depends(get_webhook_tenant),
    applier: EventApplier = Depends(get_event_applier),
) -> ApplyResultDTO:
    return ApplyResultDTO.from_result(await applier.apply_customer_event(tenant, payload))
