"""
Endpoints de tiendas conectadas del usuario.
"""
from fastapi import APIRouter, Depends

from storesync.application.dto.store_dto import StoreListResponseDTO, StoreResponseDTO
from storesync.api.v1.dependencies.auth_deps import get_current_user_id
from storesync.api.v1.dependencies.repository_deps import get_commerce_repository
from storesync.domain.repositories.commerce_repository import ICommerceRepository


router = APIRouter(prefix="/stores", tags=["Stores"])


@router.get(
    "",
    response_model=StoreListResponseDTO,
    summary="Listar tiendas del usuario"
)
async def list_stores(
    user_id: str = Depends(get_current_user_id),
    repository: ICommerceRepository = Depends(get_commerce_repository),
) -> StoreListResponseDTO:
    """Tiendas Shopify conectadas por el usuario autenticado."""
    tenants = await repository.list_stores_for_user(user_id)
    stores = [StoreResponseDTO.from_tenant(t) for t in tenants]
    return StoreListResponseDTO(stores=stores, total=len(stores))
