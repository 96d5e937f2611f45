"""
Dependencias para inyección de repositorios.
"""
from fastapi import Depends

from storesync.domain.repositories.commerce_repository import ICommerceRepository
from storesync.infrastructure.database.session import Database, get_database
from storesync.infrastructure.repositories.commerce_repository import SqlAlchemyCommerceRepository


def get_commerce_repository(
    database: Database = Depends(get_database),
) -> ICommerceRepository:
    """
    Dependencia para obtener el repositorio de tiendas, clientes y pedidos.

    Args:
        database: Base de datos abierta en el startup

    Returns:
        ICommerceRepository: Repositorio sobre la session factory compartida
    """
    if database is None:
        raise RuntimeError("Base de datos no inicializada (startup no ejecutado)")
    return SqlAlchemyCommerceRepository(database.session_factory)
