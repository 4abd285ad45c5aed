from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from .settings import settings

DATABASE_URL = settings.DATABASE_URL

# aiosqlite connections are bound to the loop that opened them
engine_options = (
    {"poolclass": NullPool}
    if DATABASE_URL.startswith("sqlite")
    else {"pool_pre_ping": True}
)

async_engine: AsyncEngine = create_async_engine(
    DATABASE_URL,
    echo=False,
    **engine_options,
)

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)


async def get_db_async():
    session = AsyncSessionLocal()
    try:
        yield session
    finally:
        await session.close()


async def create_tables():
    import models.models  # noqa: F401  registers the tables on Base

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables():
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


Base = declarative_base()
