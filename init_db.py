"""Create the board's tables in the configured database"""
import asyncio

from backoffice.config import get_settings
from backoffice.database import Base, create_tables, get_engine


async def init():
    settings = get_settings()
    if settings.STORAGE_BACKEND != "sql":
        print(f"STORAGE_BACKEND is {settings.STORAGE_BACKEND!r}; no tables to create.")
        return

    engine = get_engine()
    try:
        await create_tables(engine)
    finally:
        await engine.dispose()
    print(f"Created tables: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    asyncio.run(init())
