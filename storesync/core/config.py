"""
Configuración central de la aplicación.
Gestiona variables de entorno y configuraciones globales.
Soporta configuración dinamica para desarrollo (ENVIRONMENT=development)
y producción (ENVIRONMENT=production).
"""
import json
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


class Settings(BaseSettings):
    """
    Clase de configuración de la aplicación.
    Lee variables de entorno y proporciona valores por defecto.

    - DATABASE_URL se puede especificar completa o por componentes
    - Los parámetros SYNC_* acotan la concurrencia contra el pool de conexiones,
      que es compartido por los syncs de todas las tiendas
    """

    # Configuración de la aplicación
    APP_NAME: str = Field(default="StoreSync API")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuración del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # Base de datos - Componentes separados (recomendado para flexibilidad)
    DATABASE_HOST: str = Field(default="localhost")
    DATABASE_PORT: int = Field(default=5432)
    DATABASE_USER: str = Field(default="storesync")
    DATABASE_PASSWORD: str = Field(default="storesync")
    DATABASE_NAME: str = Field(default="storesync")

    # Base de datos - URL completa (override de componentes si se proporciona)
    DATABASE_URL: str = Field(default="")
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)
    DB_POOL_TIMEOUT: float = Field(default=30.0)

    # Seguridad (solo se decodifica el token del dashboard)
    SECRET_KEY: str = Field(default="change-this-secret-key-in-production")
    ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=30)

    # CORS (acepta lista JSON o "*" para todos los origenes)
    CORS_ORIGINS: str = Field(default="*")

    # Shopify Admin API
    SHOPIFY_API_VERSION: str = Field(default="2024-07")
    SHOPIFY_PAGE_LIMIT: int = Field(default=250)
    SHOPIFY_TIMEOUT_S: float = Field(default=30.0)
    SHOPIFY_RATE_LIMIT_RETRIES: int = Field(default=3)

    # Sync histórico
    SYNC_BATCH_SIZE: int = Field(default=50)
    SYNC_CONCURRENCY_LIMIT: int = Field(default=5)
    SYNC_FAIL_FAST: bool = Field(default=True)
    SYNC_TIMEOUT_SECONDS: float = Field(default=300.0)

    # Reintentos de escritura en la base de datos
    STORE_MAX_RETRIES: int = Field(default=3)
    STORE_RETRY_BASE_DELAY_S: float = Field(default=0.5)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/app.log")

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """
        Retorna la URL de base de datos efectiva.
        Si DATABASE_URL está definida, la usa directamente.
        Si no, construye la URL desde los componentes individuales.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )

    @computed_field
    @property
    def is_development(self) -> bool:
        """Indica si el entorno es de desarrollo."""
        return self.ENVIRONMENT.lower() == "development"

    class Config:
        """Configuración de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


def get_cors_origins(cors_string: str) -> List[str]:
    """
    Parsea la configuración de CORS.
    Acepta "*" para todos los origenes o una lista JSON.
    """
    if cors_string == "*":
        return ["*"]
    try:
        return json.loads(cors_string)
    except json.JSONDecodeError:
        # Si no es JSON válido, retornar como lista simple
        return [origin.strip() for origin in cors_string.split(",")]


# Instancia global de configuración
settings = Settings()
