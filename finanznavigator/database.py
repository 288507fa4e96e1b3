"""
database.py — async engine and sessions for the leads table.

The leads table is the only durable store: finished or consented profiles are
upserted there by session_store, everything else lives in the Redis session cache.

Usage in routes:
    from finanznavigator.database import get_db
    async def route(db: AsyncSession = Depends(get_db)): ...
"""
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from finanznavigator.config import settings


class Base(DeclarativeBase):
    """Declarative base for the Lead model; alembic/env.py imports it from here."""


async_engine = create_async_engine(
    settings.database_url,
    echo=False,               # lead rows carry contact data
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
)

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; a lead upsert commits with the response or not at all."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
