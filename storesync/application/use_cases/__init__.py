"""
Casos de uso de la aplicación.
"""
from .reconciliation_engine import ReconciliationEngine
from .event_applier import EventApplier
from .sync_use_cases import SyncHandle, SyncOrchestrator, TenantStatus

__all__ = [
    "ReconciliationEngine",
    "EventApplier",
    "SyncOrchestrator",
    "SyncHandle",
    "TenantStatus",
]
