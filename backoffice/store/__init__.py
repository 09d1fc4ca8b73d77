"""
Persistence backends behind the EntityStore contract
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from backoffice import models, schemas
from backoffice.config import Settings
from backoffice.database import create_engine_from_url, create_tables, make_session_factory
from backoffice.store.base import EntityStore, InvalidRecordError, StoreError
from backoffice.store.local import JsonFileStorage, KeyValueStorage, LocalEntityStore
from backoffice.store.sql import SqlEntityStore


@dataclass
class Stores:
    customers: EntityStore
    projects: EntityStore
    tasks: EntityStore
    invoices: EntityStore
    # Set for the SQL backend so the app can dispose it on shutdown
    engine: Optional[AsyncEngine] = None


def local_stores(storage: KeyValueStorage) -> Stores:
    return Stores(
        customers=LocalEntityStore(storage, "customer", schemas.Customer),
        projects=LocalEntityStore(storage, "project", schemas.Project),
        tasks=LocalEntityStore(storage, "task", schemas.Task),
        invoices=LocalEntityStore(storage, "invoice", schemas.Invoice),
    )


def sql_stores(session_factory) -> Stores:
    return Stores(
        customers=SqlEntityStore(session_factory, models.Customer, schemas.Customer),
        projects=SqlEntityStore(session_factory, models.Project, schemas.Project),
        tasks=SqlEntityStore(session_factory, models.Task, schemas.Task),
        invoices=SqlEntityStore(session_factory, models.Invoice, schemas.Invoice),
    )


async def build_stores(settings: Settings) -> Stores:
    """Stores for the configured backend; creates tables for the SQL backend."""
    if settings.STORAGE_BACKEND == "local":
        return local_stores(JsonFileStorage(settings.LOCAL_STORE_PATH, settings.STORAGE_KEY_PREFIX))
    if settings.STORAGE_BACKEND != "sql":
        raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")

    engine = create_engine_from_url(settings.DATABASE_URL, echo=settings.DEBUG)
    await create_tables(engine)
    stores = sql_stores(make_session_factory(engine))
    stores.engine = engine
    return stores


__all__ = [
    "EntityStore",
    "InvalidRecordError",
    "StoreError",
    "Stores",
    "JsonFileStorage",
    "KeyValueStorage",
    "LocalEntityStore",
    "SqlEntityStore",
    "local_stores",
    "sql_stores",
    "build_stores",
]
