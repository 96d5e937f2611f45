"""
Entidad de dominio: Tenant (tienda Shopify conectada).
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class Tenant:
    """
    Tienda aislada. Todos los clientes y pedidos cuelgan de `id`.

    `access_token` es la credencial de la Admin API obtenida en el OAuth
    (el handshake vive fuera de este servicio).
    """

    id: str
    shop: str
    access_token: str
    user_id: str

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, shop={self.shop}, user_id={self.user_id})>"

    def is_owned_by(self, user_id: str) -> bool:
        return bool(user_id) and self.user_id == user_id


def normalize_shop(shop: str) -> str:
    """Forma canónica del dominio myshopify (sin espacios, en minúsculas)."""
    return shop.strip().lower()
