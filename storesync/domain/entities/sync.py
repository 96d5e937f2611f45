"""
Entidades de dominio del pipeline de sync: reportes y resultados.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from storesync.shared.constants.sync_constants import SyncOutcome


@dataclass(frozen=True)
class UpsertOutcome:
    """Resultado de un upsert por clave natural (shopify_id, store_id)."""

    local_id: str
    created: bool


@dataclass(frozen=True)
class ItemFailure:
    """Fallo aislado de un item dentro de un lote (modo best-effort)."""

    key: str
    error: str


@dataclass
class SyncReport:
    """
    Reporte de una corrida de reconciliación para una tienda.

    status:
    - success: todo leido y escrito
    - partial_failure: lote best-effort con items fallidos
    - failure: la corrida se aborto (ver `error`)
    """

    store_id: str
    shop: str
    status: SyncOutcome = SyncOutcome.SUCCESS
    customers_fetched: int = 0
    orders_fetched: int = 0
    customers_upserted: int = 0
    orders_upserted: int = 0
    orders_linked: int = 0
    failures: List[ItemFailure] = field(default_factory=list)
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def counts(self) -> Dict[str, int]:
        return {"customers": self.customers_fetched, "orders": self.orders_fetched}


@dataclass(frozen=True)
class ApplyResult:
    """Resultado de aplicar un evento (webhook) de un solo registro."""

    entity: str
    external_id: str
    local_id: str
    created: bool
    customer_id: Optional[str] = None
