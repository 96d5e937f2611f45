"""
Endpoints para sincronización histórica de tiendas Shopify.

- POST /sync: dispara un sync (desacoplado por defecto, `wait=true` para esperar)
- GET /sync/jobs/{job_id}: polling del job
- GET /sync/stores/{store_id}/status: idle/running de una tienda
"""

from __future__ import annotations

from typing import Optional, Union

from fastapi import APIRouter, Depends, Query, Response, status
from loguru import logger

from storesync.application.dto.sync_dto import (
    SyncAcceptedDTO,
    SyncCompletedDTO,
    SyncJobStatusDTO,
    SyncReportDTO,
    TenantSyncStatusDTO,
)
from storesync.application.use_cases.sync_use_cases import SyncOrchestrator
from storesync.api.v1.dependencies.auth_deps import get_current_user_id
from storesync.api.v1.dependencies.use_case_deps import get_sync_orchestrator
from storesync.shared.constants.sync_constants import JobStatus
from storesync.shared.exceptions.domain import SyncFailedException


router = APIRouter(prefix="/sync", tags=["Sync"])


@router.post(
    "",
    response_model=Union[SyncCompletedDTO, SyncAcceptedDTO],
    status_code=status.HTTP_202_ACCEPTED,
    summary="Sincronizar clientes y pedidos de una tienda"
)
async def start_sync(
    response: Response,
    store_id: Optional[str] = Query(
        default=None,
        alias="storeId",
        description="Tienda a sincronizar. Si se omite, la primera tienda del usuario."
    ),
    wait: bool = Query(
        default=False,
        description="Si True, espera a que termine y devuelve el reporte."
    ),
    user_id: str = Depends(get_current_user_id),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
) -> Union[SyncCompletedDTO, SyncAcceptedDTO]:
    """
    Dispara el sync histórico Shopify -> base de datos.

    - wait=False: responde 202 de inmediato; el resultado se consulta por job_id
    - wait=True: responde 200 con el reporte, o 502 si la corrida falló
    - Si la tienda ya tiene un sync en curso, la petición se une a ese job
    """
    handle = await orchestrator.request_sync(user_id, store_id=store_id, wait=wait)

    if not wait:
        return SyncAcceptedDTO.from_handle(handle)

    if handle.status == JobStatus.FAILED:
        logger.warning(f"[sync:{handle.shop}] Sync en modo espera fallido: {handle.error}")
        raise SyncFailedException(
            handle.error,
            details={
                "job_id": handle.job_id,
                "store_id": handle.store_id,
                "report": (
                    SyncReportDTO.from_report(handle.report).model_dump(mode="json")
                    if handle.report else None
                ),
            },
        )

    response.status_code = status.HTTP_200_OK
    return SyncCompletedDTO.from_handle(handle)


@router.get(
    "/jobs/{job_id}",
    response_model=SyncJobStatusDTO,
    summary="Obtener estado de un job de sync (polling)"
)
async def get_sync_job_status(
    job_id: str,
    user_id: str = Depends(get_current_user_id),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
) -> SyncJobStatusDTO:
    """Retorna el estado actual del job. Ideal para polling desde frontend."""
    handle = await orchestrator.get_job_status(job_id, requester=user_id)
    return SyncJobStatusDTO.from_handle(handle)


@router.get(
    "/stores/{store_id}/status",
    response_model=TenantSyncStatusDTO,
    summary="Estado de sync de una tienda"
)
async def get_store_sync_status(
    store_id: str,
    user_id: str = Depends(get_current_user_id),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
) -> TenantSyncStatusDTO:
    tenant_status = await orchestrator.get_tenant_state(user_id, store_id)
    return TenantSyncStatusDTO.from_status(tenant_status)
