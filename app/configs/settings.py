from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

"""
Se carga automáticamente desde el archivo `.env` o las variables de entorno del sistema.
    - Define la configuración principal del servicio de coaching.
    - Incluye parámetros para la base de datos, seguridad, negociación y disponibilidad.
    - Todos los campos tienen valor por defecto para poder arrancar sin `.env`.
"""
class Settings(BaseSettings):
    PROJECT_NAME: str = "coaching-negotiation"

    SQLALCHEMY_DATABASE_URI: str = "sqlite+aiosqlite:///./coaching.db"
    SQL_ECHO: bool = False
    SECRET_KEY: str = "dev-coaching-secret-change-me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    DEFAULT_TIMEZONE: str = "Africa/Lagos"
    DEFAULT_CURRENCY: str = "NGN"

    # Ventana de respuesta para solicitudes nuevas y contrapropuestas
    BOOKING_REQUEST_EXPIRY_HOURS: int = 48
    MAX_SLOTS_PER_BATCH: int = 20

    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100/minute"

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:8080",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
