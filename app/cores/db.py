"""
Motor asíncrono y fábrica de sesiones del servicio de coaching.
SQLite (aiosqlite) en desarrollo y pruebas; cualquier URL async de SQLAlchemy en producción.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from app.configs.settings import settings


def get_engine_kwargs(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    # Conexiones que el servidor cerró por inactividad
    return {"pool_pre_ping": True, "pool_recycle": 1800}


engine = create_async_engine(
    settings.SQLALCHEMY_DATABASE_URI,
    echo=settings.SQL_ECHO,
    **get_engine_kwargs(settings.SQLALCHEMY_DATABASE_URI)
)

# expire_on_commit=False: los servicios devuelven el objeto ya confirmado a la ruta
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False
)

Base = declarative_base()
