"""
Modelos de base de datos (ORM).

Cada cliente y pedido pertenece a exactamente una tienda. La pareja
(shopify_id, store_id) es única y es la clave de idempotencia de los upserts.
"""
import uuid

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from storesync.infrastructure.database.session import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class StoreModel(Base):
    """
    Modelo de base de datos para tiendas Shopify conectadas.
    La fila la crea el callback de OAuth (fuera de este servicio).
    """

    __tablename__ = "stores"

    id = Column(String(36), primary_key=True, default=_new_id)
    shop = Column(String(255), nullable=False, unique=True, index=True)
    access_token = Column(String(255), nullable=False)
    user_id = Column(String(255), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Store(id={self.id}, shop={self.shop}, user_id={self.user_id})>"


class CustomerModel(Base):
    """Modelo de base de datos para clientes sincronizados desde Shopify."""

    __tablename__ = "customers"
    __table_args__ = (
        UniqueConstraint("shopify_id", "store_id", name="uq_customers_shopify_id_store_id"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    shopify_id = Column(String(64), nullable=False)
    email = Column(String(255), nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    store_id = Column(String(36), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Customer(id={self.id}, shopify_id={self.shopify_id}, store_id={self.store_id})>"


class OrderModel(Base):
    """
    Modelo de base de datos para pedidos sincronizados desde Shopify.

    - customer_id es NULL para pedidos de invitado o cuyo cliente no se conoce
    - processed_at es NULL para pedidos aún no procesados
    """

    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("shopify_id", "store_id", name="uq_orders_shopify_id_store_id"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    shopify_id = Column(String(64), nullable=False)
    order_number = Column(String(64), nullable=True)
    total_price = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(8), nullable=True)
    financial_status = Column(String(50), nullable=True)
    fulfillment_status = Column(String(50), nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True, index=True)
    store_id = Column(String(36), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Order(id={self.id}, order_number={self.order_number}, store_id={self.store_id})>"
