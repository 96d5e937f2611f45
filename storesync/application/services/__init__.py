"""
Servicios de aplicación.

Piezas reutilizables del pipeline de ingesta que no pertenecen
a un caso de uso específico.
"""
from storesync.application.services.retrying_executor import RetryingExecutor, is_transient
from storesync.application.services.batch_upserter import BatchResult, BatchUpserter
from storesync.application.services.record_ingestor import RecordIngestor, resolver_from_map

__all__ = [
    # Reintentos de la base de datos
    "RetryingExecutor",
    "is_transient",
    # Lotes con concurrencia acotada
    "BatchUpserter",
    "BatchResult",
    # Transformación + upsert de un registro
    "RecordIngestor",
    "resolver_from_map",
]
