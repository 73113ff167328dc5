"""
Database engine, session factory and schema helpers.
"""

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession
from loguru import logger

from .config import settings


def async_database_url(url: str) -> str:
    """Select the async driver for a configured database URL."""
    if url.startswith("postgres://"):
        return "postgresql+asyncpg://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


def enable_sqlite_foreign_keys(async_engine: AsyncEngine) -> None:
    """
    Turn on foreign key enforcement for every SQLite connection.

    File and publication cleanup relies on ON DELETE CASCADE / SET NULL,
    which SQLite ignores unless asked.
    """

    @event.listens_for(async_engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _engine_options(url: str) -> dict:
    options = {"echo": settings.DEBUG}
    if make_url(url).get_backend_name() != "sqlite":
        options.update(pool_pre_ping=True, pool_recycle=300)
    return options


database_url = async_database_url(settings.DATABASE_URL)

engine = create_async_engine(database_url, **_engine_options(database_url))
if engine.dialect.name == "sqlite":
    enable_sqlite_foreign_keys(engine)

AsyncSessionLocal = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncSession:
    """
    Request-scoped session.

    Anything raised while the request is being served rolls the session back,
    so a workflow that fails halfway leaves no partial writes behind.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            from app.utils.exceptions import PublishAPIException
            # Domain errors are expected API responses, not database failures
            if not isinstance(e, PublishAPIException):
                logger.opt(exception=e).error("Database session error: {}", str(e))
            await session.rollback()
            raise


async def create_tables():
    """Create any missing tables for the registered models."""
    from app import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def drop_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("Database tables dropped")
