"""
Database configuration and session management
"""
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from backoffice.config import get_settings

# Base class for models
Base = declarative_base()


def get_async_url(url: str) -> str:
    """Convert database URL to async variant"""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://")
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///")
    return url


def create_engine_from_url(url: str, echo: bool = False, **kwargs) -> AsyncEngine:
    database_url = get_async_url(url)
    engine_kwargs = {
        "echo": echo,
        "future": True,
    }

    # SQLite doesn't support pool_size
    if not database_url.startswith("sqlite"):
        engine_kwargs["pool_size"] = 20
        engine_kwargs["max_overflow"] = 10

    engine_kwargs.update(kwargs)
    return create_async_engine(database_url, **engine_kwargs)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


async def create_tables(engine: AsyncEngine) -> None:
    # Import models so they register on Base.metadata
    import backoffice.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def get_engine() -> AsyncEngine:
    settings = get_settings()
    return create_engine_from_url(settings.DATABASE_URL, echo=settings.DEBUG)
