"""
DTOs para el sync histórico de tiendas Shopify.

Los use cases devuelven dataclasses de dominio (`SyncHandle`, `SyncReport`);
estos modelos son la forma en que la API los serializa.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from storesync.application.use_cases.sync_use_cases import SyncHandle, TenantStatus
from storesync.domain.entities.sync import SyncReport


class ItemFailureDTO(BaseModel):
    key: str
    error: str


class SyncCountsDTO(BaseModel):
    customers: int
    orders: int


class SyncReportDTO(BaseModel):
    """Resultado de una corrida de reconciliación."""

    store_id: str
    shop: str
    status: str = Field(..., description="success | partial_failure | failure")
    counts: SyncCountsDTO = Field(..., description="Registros descargados de Shopify")
    customers_upserted: int
    orders_upserted: int
    orders_linked: int = Field(..., description="Pedidos vinculados a un cliente local")
    failures: List[ItemFailureDTO] = Field(default_factory=list)
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @classmethod
    def from_report(cls, report: SyncReport) -> "SyncReportDTO":
        return cls(
            store_id=report.store_id,
            shop=report.shop,
            status=report.status.value,
            counts=SyncCountsDTO(**report.counts),
            customers_upserted=report.customers_upserted,
            orders_upserted=report.orders_upserted,
            orders_linked=report.orders_linked,
            failures=[ItemFailureDTO(key=f.key, error=f.error) for f in report.failures],
            error=report.error,
            started_at=report.started_at,
            finished_at=report.finished_at,
        )


class SyncAcceptedDTO(BaseModel):
    """Respuesta inmediata al despachar un sync desacoplado."""

    ok: bool = True
    message: str = "Sync started"
    job_id: str
    store_id: str
    status: str
    coalesced: bool = Field(False, description="True si se unio a un sync ya en curso")
    created_at: datetime

    @classmethod
    def from_handle(cls, handle: SyncHandle) -> "SyncAcceptedDTO":
        return cls(
            job_id=handle.job_id,
            store_id=handle.store_id,
            status=handle.status.value,
            coalesced=handle.coalesced,
            created_at=handle.created_at,
        )


class SyncCompletedDTO(BaseModel):
    """Respuesta de un sync ejecutado en modo espera."""

    ok: bool = True
    job_id: str
    store_id: str
    status: str
    coalesced: bool = False
    report: SyncReportDTO

    @classmethod
    def from_handle(cls, handle: SyncHandle) -> "SyncCompletedDTO":
        return cls(
            job_id=handle.job_id,
            store_id=handle.store_id,
            status=handle.status.value,
            coalesced=handle.coalesced,
            report=SyncReportDTO.from_report(handle.report),
        )


class SyncJobStatusDTO(BaseModel):
    """Estado actual del job (polling)."""

    job_id: str
    store_id: str
    shop: str
    status: str
    created_at: datetime
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
    report: Optional[SyncReportDTO] = None

    @classmethod
    def from_handle(cls, handle: SyncHandle) -> "SyncJobStatusDTO":
        return cls(
            job_id=handle.job_id,
            store_id=handle.store_id,
            shop=handle.shop,
            status=handle.status.value,
            created_at=handle.created_at,
            completed_at=handle.completed_at,
            error=handle.error,
            report=SyncReportDTO.from_report(handle.report) if handle.report else None,
        )


class TenantSyncStatusDTO(BaseModel):
    """Estado de sync de una tienda."""

    store_id: str
    state: str = Field(..., description="idle | running")
    last_job: Optional[SyncJobStatusDTO] = None

    @classmethod
    def from_status(cls, status: TenantStatus) -> "TenantSyncStatusDTO":
        return cls(
            store_id=status.store_id,
            state=status.state.value,
            last_job=SyncJobStatusDTO.from_handle(status.last_job) if status.last_job else None,
        )
