from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from fiscalizacion.config import settings


def normalize_database_url(url: str) -> str:
    """Point Oracle URLs at the async python-oracledb driver."""
    if url.startswith("oracle+oracledb_async://"):
        return url
    if url.startswith("oracle+oracledb://"):
        return url.replace("oracle+oracledb://", "oracle+oracledb_async://", 1)
    if url.startswith("oracle://"):
        return url.replace("oracle://", "oracle+oracledb_async://", 1)
    return url


def create_engine_for(url: str, schema_translate_map: Optional[dict] = None) -> AsyncEngine:
    """
    Create the async engine for a database URL.

    SQLite has no schemas and no pool settings, so both legacy schemas are
    translated to None there.
    """
    database_url = normalize_database_url(url)

    if database_url.startswith("sqlite"):
        engine = create_async_engine(
            database_url,
            echo=settings.DEBUG,
            connect_args={"check_same_thread": False},
        )
        translate = {"fiscalizaciones": None, "documentos": None}
    else:
        engine = create_async_engine(
            database_url,
            echo=settings.DEBUG,
            pool_pre_ping=True,  # Check connection health before use
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
        )
        translate = settings.schema_translate_map

    if schema_translate_map is not None:
        translate = schema_translate_map

    return engine.execution_options(schema_translate_map=translate)


engine = create_engine_for(settings.DATABASE_URL)

# Create async session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.

    Workflows commit each write themselves; anything still pending when the
    request fails is rolled back here.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    """Create the mapped tables. Only meant for local SQLite databases and tests."""
    from fiscalizacion import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
