"""
Configuracion central de la aplicacion.
Gestiona variables de entorno y configuraciones globales.

Agrupa tres bloques:
- Servidor/API (FastAPI, JWT, CORS, base de datos)
- Pipeline de sincronizacion con el catalogo upstream
- Resolucion de imagenes (buckets estaticos o almacen de assets)
"""
import json
from typing import List

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Clase de configuracion de la aplicacion.
    Lee variables de entorno (y `.env`) y proporciona valores por defecto.

    - DATABASE_URL se puede especificar completa o por componentes
    - IMAGE_STRATEGY selecciona como se construye `image_url`:
      'range' | 'asset_store' | 'transformation'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="Catalog BFF")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuracion del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=4001)

    # Base de datos - Componentes separados
    DATABASE_HOST: str = Field(default="localhost")
    DATABASE_PORT: int = Field(default=5432)
    DATABASE_USER: str = Field(default="catalog_user")
    DATABASE_PASSWORD: str = Field(default="catalog_pass")
    DATABASE_NAME: str = Field(default="catalog_db")

    # Base de datos - URL completa (override de componentes si se proporciona)
    DATABASE_URL: str = Field(default="")
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)

    # Seguridad (JWT del lado lectura)
    SECRET_KEY: str = Field(default="change-this-secret-key-in-production")
    ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60 * 24 * 7)

    # Usuario administrador inicial (rol comercial)
    ADMIN_EMAIL: str = Field(default="")
    ADMIN_PASSWORD: str = Field(default="")
    ADMIN_NAME: str = Field(default="Comercial Admin")

    # CORS (acepta lista JSON o "*" para todos los origenes)
    CORS_ORIGINS: str = Field(default="*")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/app.log")

    # Upstream (catalogo de terceros)
    UPSTREAM_BASE_URL: str = Field(default="")
    UPSTREAM_USERNAME: str = Field(default="")
    UPSTREAM_PASSWORD: str = Field(default="")
    UPSTREAM_LOGIN_PATH: str = Field(default="/autentificar")
    UPSTREAM_CATALOG_RESOURCE: str = Field(default="adArticulosCatalogo")
    UPSTREAM_TOKEN_HEADER: str = Field(default="x-access-token")
    UPSTREAM_TIMEOUT_S: float = Field(default=30.0)
    UPSTREAM_COMPANY_CODE: int = Field(default=1)

    # Sesion upstream
    TOKEN_SAFETY_MARGIN_S: int = Field(default=60)
    TOKEN_DEFAULT_TTL_S: int = Field(default=3600)

    # Paginacion y politica de fallos del sync
    SYNC_PAGE_SIZE: int = Field(default=100)
    SYNC_MAX_PAGES: int = Field(default=25)
    SYNC_REAUTH_ON_REJECTION: bool = Field(default=True)

    # Scheduling
    SYNC_ENABLED: bool = Field(default=True)
    SYNC_RUN_ON_STARTUP: bool = Field(default=True)
    SYNC_CRON: str = Field(default="0 3 * * *")
    SYNC_TIMEZONE: str = Field(default="Europe/Madrid")

    # Imagenes
    IMAGE_STRATEGY: str = Field(default="range")
    IMAGE_BASE_URL_LOW: str = Field(default="")
    IMAGE_BASE_URL_MID: str = Field(default="")
    IMAGE_BASE_URL_HIGH: str = Field(default="")

    # Almacen de assets (Cloudinary)
    CLOUDINARY_CLOUD_NAME: str = Field(default="")
    CLOUDINARY_API_KEY: str = Field(default="")
    CLOUDINARY_API_SECRET: str = Field(default="")
    CLOUDINARY_FOLDER: str = Field(default="articulos_guzman")
    CLOUDINARY_TRANSFORMATION: str = Field(default="f_auto,q_auto:good")

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """
        Retorna la URL de base de datos efectiva.
        Si DATABASE_URL esta definida, la usa directamente.
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

    @computed_field
    @property
    def upstream_configured(self) -> bool:
        """True si hay URL y credenciales del catalogo upstream."""
        return bool(self.UPSTREAM_BASE_URL and self.UPSTREAM_USERNAME and self.UPSTREAM_PASSWORD)

    @computed_field
    @property
    def cloudinary_configured(self) -> bool:
        """True si las credenciales de Cloudinary estan completas."""
        return bool(
            self.CLOUDINARY_CLOUD_NAME and self.CLOUDINARY_API_KEY and self.CLOUDINARY_API_SECRET
        )


def get_cors_origins(cors_string: str) -> List[str]:
    """
    Parsea la configuracion de CORS.
    Acepta "*" para todos los origenes o una lista JSON.
    """
    if cors_string == "*":
        return ["*"]
    try:
        return json.loads(cors_string)
    except json.JSONDecodeError:
        # Si no es JSON valido, retornar como lista simple
        return [origin.strip() for origin in cors_string.split(",")]


# Instancia global de configuracion
settings = Settings()
