"""
Interfaz del repositorio de comercio (tiendas, clientes, pedidos).
Define el contrato que debe cumplir cualquier implementación.

Todas las escrituras son upserts por la clave natural (shopify_id, store_id):
aplicar dos veces el mismo registro deja una sola fila con los últimos valores.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from storesync.domain.entities.sync import UpsertOutcome
from storesync.domain.entities.tenant import Tenant


class ICommerceRepository(ABC):
    """
    Interfaz del repositorio de comercio.
    Los errores de acceso se levantan ya clasificados como
    TransientStoreError / PermanentStoreError.
    """

    @abstractmethod
    async def get_store(self, store_id: str) -> Optional[Tenant]:
        """
        Obtiene una tienda por su ID local.

        Args:
            store_id: ID local de la tienda

        Returns:
            Optional[Tenant]: Tienda encontrada o None
        """
        pass

    @abstractmethod
    async def get_store_by_shop(self, shop: str) -> Optional[Tenant]:
        """
        Obtiene una tienda por su dominio Shopify (p.ej. `demo.myshopify.com`).
        """
        pass

    @abstractmethod
    async def get_default_store_for_user(self, user_id: str) -> Optional[Tenant]:
        """Primera tienda conectada por el usuario (orden de creación)."""
        pass

    @abstractmethod
    async def list_stores_for_user(self, user_id: str) -> List[Tenant]:
        """Tiendas que pertenecen al usuario."""
        pass

    @abstractmethod
    async def upsert_customer(self, row: Dict[str, Any]) -> UpsertOutcome:
        """
        Inserta o actualiza un cliente.

        Args:
            row: Fila ya mapeada (incluye shopify_id y store_id)

        Returns:
            UpsertOutcome: ID local y si la fila fue creada
        """
        pass

    @abstractmethod
    async def upsert_order(self, row: Dict[str, Any]) -> UpsertOutcome:
        """
        Inserta o actualiza un pedido.

        Args:
            row: Fila ya mapeada (incluye shopify_id, store_id y customer_id resuelto)

        Returns:
            UpsertOutcome: ID local y si la fila fue creada
        """
        pass

    @abstractmethod
    async def customer_id_map(self, store_id: str) -> Dict[str, str]:
        """
        Mapa shopify_id -> id local de todos los clientes de la tienda.
        """
        pass

    @abstractmethod
    async def find_customer_id(self, store_id: str, shopify_id: str) -> Optional[str]:
        """ID local del cliente de la tienda con ese shopify_id, o None."""
        pass
