# carebook/db/sql.py
from __future__ import annotations

from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from carebook.core.config import settings
from carebook.core.logging import get_logger

logger = get_logger(__name__)


engine = create_async_engine(
    settings.SQL_DSN,
    echo=settings.DB_ECHO,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
    pool_timeout=settings.DB_POOL_TIMEOUT,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    autoflush=False,
    class_=AsyncSession,
)


async def get_session() -> AsyncIterator[AsyncSession]:
    """
    Provide a DB session for each request.
    Commit when the handler returns, roll back (and log) when it raises.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as exc:
            await session.rollback()
            logger.warning("transaction_rolled_back", error=type(exc).__name__)
            raise


async def ping_db() -> bool:
    async with AsyncSessionLocal() as session:
        await session.execute(text("SELECT 1"))
        return True


async def init_db(*, drop_existing: bool = False) -> None:
    """
    Create all tables registered on Base.metadata.
    """
    from carebook.db.base import Base
    # Import all models so that Base.metadata knows them
    from carebook.modules.appointments import models as _appointments_models  # noqa: F401
    from carebook.modules.doctors import models as _doctors_models  # noqa: F401

    async with engine.begin() as conn:
        if drop_existing:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_schema_ready", dropped=drop_existing)
