# db/session.py
"""
One session is one unit of work: it commits when the block finishes and
rolls back if the block raised.
"""
from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from db.engine import get_engine

_factory: async_sessionmaker[AsyncSession] | None = None


def session_factory() -> async_sessionmaker[AsyncSession]:
    global _factory
    engine = get_engine()
    # rebuilt after dispose_engine() swaps the engine out
    if _factory is None or _factory.kw.get("bind") is not engine:
        _factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    return _factory


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    async with session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency form of session_scope()."""
    async with session_scope() as session:
        yield session
