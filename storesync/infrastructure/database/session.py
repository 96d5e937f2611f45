"""
Gestion del engine y sesiones de base de datos.

El engine ya no es un global de módulo: `Database` se abre en el startup de
la aplicación (o del script) y se cierra en el shutdown. Todo lo que necesita
sesiones recibe el `async_sessionmaker` por constructor.
"""
from typing import Optional

from fastapi import Request
from loguru import logger
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base


# Base para modelos de SQLAlchemy
Base = declarative_base()


def _create_engine_args(
    url: str,
    *,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: float = 30.0,
) -> dict:
    """
    Construye los argumentos del engine según el tipo de base de datos.
    PostgreSQL usa pool de conexiones acotado, SQLite no lo soporta.
    """
    args = {
        "echo": echo,
        "future": True,
    }

    # Configuración de pool solo para PostgreSQL
    if "postgresql" in url:
        args.update({
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_timeout": pool_timeout,
            "pool_pre_ping": True,  # Verifica conexión antes de usar
        })

    return args


class Database:
    """
    Ciclo de vida explícito del engine y la session factory.

    Ejemplo:
        db = Database(settings.effective_database_url)
        await db.create_all()
        ...
        await db.close()
    """

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: float = 30.0,
    ) -> None:
        self.url = url
        self.engine: AsyncEngine = create_async_engine(
            url,
            **_create_engine_args(
                url,
                echo=echo,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
            ),
        )
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(
            settings.effective_database_url,
            echo=settings.DEBUG,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )

    async def create_all(self) -> None:
        """Crea todas las tablas (entornos sin Alembic: dev y tests)."""
        # Registrar modelos en Base.metadata
        import storesync.infrastructure.database.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Cierra las conexiones de la base de datos."""
        await self.engine.dispose()
        logger.debug(f"Engine cerrado: {self.engine.url.render_as_string(hide_password=True)}")


def get_database(request: Request) -> Optional[Database]:
    """Database abierta en el startup (guardada en `app.state`)."""
    return getattr(request.app.state, "database", None)
