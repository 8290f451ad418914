from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Optional
from functools import lru_cache
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str

    # Database Connection Pool Settings
    DB_POOL_SIZE: int = 10  # Base number of connections in pool
    DB_MAX_OVERFLOW: int = 20  # Extra connections allowed beyond pool_size
    DB_POOL_TIMEOUT: int = 30  # Seconds to wait for connection from pool
    DB_POOL_RECYCLE: int = 1800  # Recycle connections after 30 minutes

    # Legacy Oracle schemas (empty string = tables live in the default schema)
    DB_SCHEMA_FISCALIZACIONES: Optional[str] = "FISCALIZACIONES"
    DB_SCHEMA_DOCUMENTOS: Optional[str] = "DOCUMENTOS"

    # Stored functions that concatenate results/observations of a registration
    FUNCION_RESULTADOS: str = "documentos.courier_consultas.Gtime_getResultado"
    FUNCION_OBSERVACIONES: str = "documentos.courier_consultas.Gtime_getObservacion"

    # App Settings
    APP_NAME: str = "Fiscalizacion API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - accepts JSON string, comma-separated, or list
    CORS_ORIGINS: list[str] = ["*"]

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(',')]
        return v

    @field_validator('DB_SCHEMA_FISCALIZACIONES', 'DB_SCHEMA_DOCUMENTOS', mode='before')
    @classmethod
    def blank_schema_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def schema_translate_map(self) -> dict:
        """Maps the symbolic schemas used by the ORM models to real ones."""
        return {
            "fiscalizaciones": self.DB_SCHEMA_FISCALIZACIONES,
            "documentos": self.DB_SCHEMA_DOCUMENTOS,
        }

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
