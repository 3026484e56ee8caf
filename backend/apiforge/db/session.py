"""Async engine and session factory for the project store."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from apiforge.config import settings

engine = create_async_engine(
    str(settings.database_url),
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
)

# expire_on_commit=False: repository callers keep using returned projects after the session closes.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)
