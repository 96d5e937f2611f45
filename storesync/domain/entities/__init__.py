"""
Entidades del dominio.
"""
from storesync.domain.entities.tenant import Tenant
from storesync.domain.entities.sync import (
    ApplyResult,
    ItemFailure,
    SyncReport,
    UpsertOutcome,
)

__all__ = ["Tenant", "ApplyResult", "ItemFailure", "SyncReport", "UpsertOutcome"]
