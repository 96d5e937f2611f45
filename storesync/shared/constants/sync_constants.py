"""
Constantes relacionadas con la sincronización de tiendas Shopify.
"""
from enum import Enum


class SyncOutcome(str, Enum):
    """Resultado final de una corrida de reconciliación."""
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    FAILURE = "failure"


class JobStatus(str, Enum):
    """Estados de un job de sincronización supervisado."""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class TenantSyncState(str, Enum):
    """Estado de sync de una tienda (se vuelve a IDLE al terminar)."""
    IDLE = "idle"
    RUNNING = "running"


class SyncMode(str, Enum):
    """Modo de despacho del sync."""
    WAIT = "wait"
    DETACHED = "detached"


# Colecciones de la Admin API de Shopify
CUSTOMERS_COLLECTION = "customers"
ORDERS_COLLECTION = "orders"
