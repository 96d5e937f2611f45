"""
DTOs de eventos (webhooks) de Shopify.
"""
from typing import Optional

from pydantic import BaseModel, Field

from storesync.domain.entities.sync import ApplyResult


class ApplyResultDTO(BaseModel):
    """Resultado de aplicar un evento de un solo registro."""

    entity: str = Field(..., description="order | customer")
    external_id: str = Field(..., description="ID del registro en Shopify")
    local_id: str
    created: bool = Field(..., description="False si fue una reentrega o actualización")
    customer_id: Optional[str] = None

    @classmethod
    def from_result(cls, result: ApplyResult) -> "ApplyResultDTO":
        return cls(
            entity=result.entity,
            external_id=result.external_id,
            local_id=result.local_id,
            created=result.created,
            customer_id=result.customer_id,
        )
