"""
Casos de uso para disparar el sync histórico de una tienda.

Patron de jobs supervisados:
- Cada corrida es un job en memoria con estado running -> completed | failed.
- Modo espera: la request aguarda el SyncReport del job.
- Modo desacoplado: se responde "aceptado" de inmediato y el job sigue en
  background; su resultado queda consultable por job_id (polling) y en logs.

Exclusividad por tienda: mientras una tienda tiene un job `running`, las
nuevas peticiones se unen a ese mismo job (no se lanzan corridas paralelas
para la misma tienda).
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from loguru import logger

from storesync.application.use_cases.reconciliation_engine import ReconciliationEngine
from storesync.domain.entities.sync import SyncReport
from storesync.domain.entities.tenant import Tenant
from storesync.domain.repositories.commerce_repository import ICommerceRepository
from storesync.infrastructure.external.shopify.types import utc_now
from storesync.shared.constants.sync_constants import (
    JobStatus,
    SyncMode,
    SyncOutcome,
    TenantSyncState,
)
from storesync.shared.exceptions.auth import AccessDenied
from storesync.shared.exceptions.domain import SyncJobNotFound, TenantNotFound


@dataclass
class _JobState:
    """Estado interno de un job de sincronización."""

    job_id: str
    store_id: str
    shop: str
    owner_id: str
    status: JobStatus
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    report: Optional[SyncReport] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class SyncHandle:
    """Vista inmutable de un job para quien pidio el sync."""

    job_id: str
    store_id: str
    shop: str
    status: JobStatus
    mode: SyncMode
    created_at: datetime
    coalesced: bool = False
    completed_at: Optional[datetime] = None
    report: Optional[SyncReport] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class TenantStatus:
    """Estado de sync de una tienda y su último job."""

    store_id: str
    state: TenantSyncState
    last_job: Optional[SyncHandle] = None


@dataclass
class _Registry:
    jobs: Dict[str, _JobState] = field(default_factory=dict)
    tasks: Dict[str, "asyncio.Task[None]"] = field(default_factory=dict)
    active: Dict[str, str] = field(default_factory=dict)  # store_id -> job_id
    last: Dict[str, str] = field(default_factory=dict)  # store_id -> job_id


class SyncOrchestrator:
    """
    Puerta de entrada del sync: autoriza, resuelve la tienda y despacha.

    Una instancia vive en `app.state` durante toda la vida del proceso.
    """

    def __init__(
        self,
        *,
        repository: ICommerceRepository,
        engine: ReconciliationEngine,
        timeout_s: float = 300.0,
        max_finished_jobs: int = 500,
    ) -> None:
        self._repository = repository
        self._engine = engine
        self._timeout_s = timeout_s
        self._max_finished_jobs = max_finished_jobs
        self._registry = _Registry()
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Autorización
    # ------------------------------------------------------------------

    async def resolve_tenant(self, requester: str, store_id: Optional[str] = None) -> Tenant:
        """
        Resuelve la tienda objetivo verificando que pertenezca al usuario.

        Sin store_id se usa la primera tienda conectada por el usuario.

        Raises:
            TenantNotFound: si la tienda no existe (o el usuario no tiene ninguna)
            AccessDenied: si la tienda es de otro usuario
        """
        if store_id:
            tenant = await self._repository.get_store(store_id)
            if tenant is None:
                raise TenantNotFound(store_id=store_id)
            if not tenant.is_owned_by(requester):
                logger.warning(f"[sync] Usuario {requester} sin acceso a tienda {store_id}")
                raise AccessDenied(store_id=store_id, user_id=requester)
            return tenant

        tenant = await self._repository.get_default_store_for_user(requester)
        if tenant is None:
            raise TenantNotFound()
        return tenant

    # ------------------------------------------------------------------
    # Despacho
    # ------------------------------------------------------------------

    async def request_sync(
        self,
        requester: str,
        store_id: Optional[str] = None,
        wait: bool = False,
    ) -> SyncHandle:
        """
        Pide un sync histórico para una tienda.

        Args:
            requester: ID del usuario autenticado
            store_id: Tienda objetivo (opcional)
            wait: True = esperar el SyncReport; False = fire-and-forget supervisado

        Returns:
            SyncHandle: estado terminal (wait=True) o "running" (wait=False)
        """
        tenant = await self.resolve_tenant(requester, store_id)
        mode = SyncMode.WAIT if wait else SyncMode.DETACHED

        async with self._lock:
            active_job_id = self._registry.active.get(tenant.id)
            coalesced = active_job_id is not None
            if coalesced:
                job_id = active_job_id
            else:
                job_id = self._start_job(tenant)
            task = self._registry.tasks.get(job_id)

        if coalesced:
            logger.info(
                f"[sync:{tenant.shop}] Ya hay un sync en curso (job {job_id}); "
                f"la petición se une a ese job"
            )
        else:
            logger.info(f"[sync:{tenant.shop}] Sync {mode.value} iniciado (job {job_id})")

        if wait and task is not None:
            # shield: si el cliente HTTP corta, el job sigue corriendo
            await asyncio.shield(task)

        return await self._handle(job_id, mode=mode, coalesced=coalesced)

    def _start_job(self, tenant: Tenant) -> str:
        """Registra el job y lanza su task. Llamar con `_lock` tomado."""
        job_id = str(uuid.uuid4())
        now = utc_now()
        self._registry.jobs[job_id] = _JobState(
            job_id=job_id,
            store_id=tenant.id,
            shop=tenant.shop,
            owner_id=tenant.user_id,
            status=JobStatus.RUNNING,
            created_at=now,
            updated_at=now,
        )
        self._registry.active[tenant.id] = job_id
        self._registry.last[tenant.id] = job_id
        self._registry.tasks[job_id] = asyncio.create_task(
            self._run_job(job_id, tenant), name=f"sync:{tenant.shop}:{job_id}"
        )
        return job_id

    async def _run_job(self, job_id: str, tenant: Tenant) -> None:
        """
        Ejecuta el engine bajo el techo de tiempo y registra el estado terminal.
        """
        tag = f"[sync-job:{job_id}]"
        report: Optional[SyncReport] = None
        error: Optional[str] = None

        try:
            report = await asyncio.wait_for(self._engine.sync(tenant), timeout=self._timeout_s)
            error = report.error
        except asyncio.TimeoutError:
            error = f"El sync excedió el límite de {self._timeout_s:.0f}s y fue abandonado"
            logger.error(f"{tag} {error} ({tenant.shop})")
        except asyncio.CancelledError:
            await self._finish(job_id, tenant.id, None, "Sync cancelado")
            raise
        except Exception as e:
            logger.exception(f"{tag} Error inesperado en job: {e}")
            error = str(e)

        await self._finish(job_id, tenant.id, report, error)

    async def _finish(
        self,
        job_id: str,
        store_id: str,
        report: Optional[SyncReport],
        error: Optional[str],
    ) -> None:
        failed = report is None or report.status == SyncOutcome.FAILURE
        now = utc_now()

        async with self._lock:
            job = self._registry.jobs.get(job_id)
            if job is not None:
                job.status = JobStatus.FAILED if failed else JobStatus.COMPLETED
                job.report = report
                job.error = error
                job.updated_at = now
                job.completed_at = now
            if self._registry.active.get(store_id) == job_id:
                del self._registry.active[store_id]
            self._registry.tasks.pop(job_id, None)
            self._prune_finished_jobs()

        if failed:
            logger.error(f"[sync-job:{job_id}] Job fallido: {error}")
        else:
            logger.success(f"[sync-job:{job_id}] Job completado")

    def _prune_finished_jobs(self) -> None:
        finished = [
            job for job in self._registry.jobs.values() if job.status != JobStatus.RUNNING
        ]
        excess = len(finished) - self._max_finished_jobs
        if excess <= 0:
            return
        finished.sort(key=lambda job: job.created_at)
        for job in finished[:excess]:
            del self._registry.jobs[job.job_id]
            if self._registry.last.get(job.store_id) == job.job_id:
                del self._registry.last[job.store_id]

    # ------------------------------------------------------------------
    # Consultas de estado
    # ------------------------------------------------------------------

    async def get_job_status(self, job_id: str, requester: Optional[str] = None) -> SyncHandle:
        """
        Estado actual de un job (para polling).

        Raises:
            SyncJobNotFound: si el job no existe (o ya se purgo)
            AccessDenied: si el job es de una tienda de otro usuario
        """
        async with self._lock:
            job = self._registry.jobs.get(job_id)
            if job is None:
                raise SyncJobNotFound(job_id)
            if requester is not None and job.owner_id != requester:
                raise AccessDenied(store_id=job.store_id, user_id=requester)
            return _snapshot(job, mode=SyncMode.DETACHED, coalesced=False)

    async def get_tenant_state(self, requester: str, store_id: str) -> TenantStatus:
        """Idle/Running de una tienda y su último job conocido."""
        tenant = await self.resolve_tenant(requester, store_id)
        async with self._lock:
            running = tenant.id in self._registry.active
            last = self._registry.jobs.get(self._registry.last.get(tenant.id, ""))
            last_job = _snapshot(last, mode=SyncMode.DETACHED, coalesced=False) if last else None

        return TenantStatus(
            store_id=tenant.id,
            state=TenantSyncState.RUNNING if running else TenantSyncState.IDLE,
            last_job=last_job,
        )

    async def _handle(self, job_id: str, *, mode: SyncMode, coalesced: bool) -> SyncHandle:
        async with self._lock:
            return _snapshot(self._registry.jobs[job_id], mode=mode, coalesced=coalesced)

    # ------------------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------------------

    async def aclose(self) -> int:
        """Cancela los jobs en curso (shutdown). Retorna cuántos canceló."""
        async with self._lock:
            tasks = list(self._registry.tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        return len(tasks)


def _snapshot(job: _JobState, *, mode: SyncMode, coalesced: bool) -> SyncHandle:
    return SyncHandle(
        job_id=job.job_id,
        store_id=job.store_id,
        shop=job.shop,
        status=job.status,
        mode=mode,
        created_at=job.created_at,
        coalesced=coalesced,
        completed_at=job.completed_at,
        report=job.report,
        error=job.error,
    )
