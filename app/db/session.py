from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.core.config import settings

engine = create_async_engine(settings.DATABASE_URL, echo=False, future=True)
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

def get_session_factory() -> async_sessionmaker:
    """Overridden in tests; background tasks use it to open their own sessions."""
    return async_session_factory

async def get_session(
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    async with session_factory() as session:
        yield session

async def init_db(bind: AsyncEngine = engine):
    # Registers every table on SQLModel.metadata
    import app.db.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
