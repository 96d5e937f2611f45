"""
Excepciones relacionadas con la lógica de dominio.
"""
from typing import Any, Optional

from storesync.shared.exceptions.base import AppException


class DomainException(AppException):
    """Excepción base para errores de dominio."""

    def __init__(self, message: str, error_code: str = "DOMAIN_ERROR", details=None):
        super().__init__(
            message=message,
            status_code=400,
            error_code=error_code,
            details=details
        )


class TenantNotFound(DomainException):
    """No existe la tienda (tenant) solicitada."""

    def __init__(self, store_id: Optional[str] = None, shop: Optional[str] = None):
        if store_id:
            message = f"Tienda con ID '{store_id}' no encontrada"
        elif shop:
            message = f"Tienda '{shop}' no registrada"
        else:
            message = "No hay ninguna tienda conectada para este usuario"
        super().__init__(
            message=message,
            error_code="TENANT_NOT_FOUND",
            details={"store_id": store_id, "shop": shop}
        )
        self.status_code = 404


class RecordMappingError(DomainException):
    """Un registro de Shopify no se puede mapear al esquema local."""

    def __init__(self, entity: str, reason: str, record_id: Any = None):
        super().__init__(
            message=f"Registro de {entity} inválido: {reason}",
            error_code="INVALID_RECORD",
            details={"entity": entity, "id": None if record_id is None else str(record_id)}
        )


class SyncJobNotFound(DomainException):
    """Excepción cuando no se encuentra un job de sincronización."""

    def __init__(self, job_id: str):
        super().__init__(
            message=f"Job de sincronización '{job_id}' no encontrado",
            error_code="SYNC_JOB_NOT_FOUND",
            details={"job_id": job_id}
        )
        self.status_code = 404


class SyncFailedException(AppException):
    """Un sync ejecutado en modo espera terminó en fallo."""

    def __init__(self, cause: Optional[str], details: Optional[dict] = None):
        super().__init__(
            message=f"La sincronización falló: {cause or 'error desconocido'}",
            status_code=502,
            error_code="SYNC_FAILED",
            details=details
        )
