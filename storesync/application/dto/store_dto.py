"""
DTOs de tiendas conectadas.
"""
from typing import List

from pydantic import BaseModel

from storesync.domain.entities.tenant import Tenant


class StoreResponseDTO(BaseModel):
    """Tienda conectada (nunca expone el access token)."""
    id: str
    shop: str

    @classmethod
    def from_tenant(cls, tenant: Tenant) -> "StoreResponseDTO":
        return cls(id=tenant.id, shop=tenant.shop)


class StoreListResponseDTO(BaseModel):
    stores: List[StoreResponseDTO]
    total: int
