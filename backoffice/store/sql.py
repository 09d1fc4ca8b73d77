"""
Relational persistence - one table per entity, snake_case columns
"""
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from backoffice.store.base import EntityStore, StoreError, T
from backoffice.utils.logger import get_logger

logger = get_logger(__name__)


def _column_values(record: BaseModel) -> Dict[str, Any]:
    values = {}
    for key, value in record.model_dump().items():
        if isinstance(value, Enum):
            value = value.value
        values[key] = value
    if "activities" in values:
        values["activities"] = [
            a.model_dump(mode="json", by_alias=True) for a in record.activities
        ]
    return values


class SqlEntityStore(EntityStore[T]):
    def __init__(self, session_factory: async_sessionmaker, orm_model, model: Type[T]):
        super().__init__(model)
        self.session_factory = session_factory
        self.orm_model = orm_model
        self.table = orm_model.__tablename__

    async def get_all(self) -> List[T]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(self.orm_model).order_by(self.orm_model.created_at.desc())
                )
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load {self.table}: {e}") from e
        return [self._validate(row) for row in rows]

    async def get_by_id(self, entity_id: str) -> Optional[T]:
        try:
            async with self.session_factory() as session:
                row = await session.get(self.orm_model, entity_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read {self.table} {entity_id}: {e}") from e
        return self._validate(row) if row is not None else None

    async def create(self, data: BaseModel) -> T:
        record = self._new_record(data)
        try:
            async with self.session_factory() as session:
                session.add(self.orm_model(**_column_values(record)))
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to insert into {self.table}: {e}") from e
        logger.debug(f"Inserted {self.table} row {record.id}")
        return record

    async def update(self, entity_id: str, changes: Dict[str, Any]) -> Optional[T]:
        try:
            async with self.session_factory() as session:
                row = await session.get(self.orm_model, entity_id)
                if row is None:
                    return None
                updated = self._merge(self._validate(row), changes)
                for key, value in _column_values(updated).items():
                    setattr(row, key, value)
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update {self.table} {entity_id}: {e}") from e
        return updated

    async def delete(self, entity_id: str) -> bool:
        try:
            async with self.session_factory() as session:
                row = await session.get(self.orm_model, entity_id)
                if row is None:
                    return False
                await session.delete(row)
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete {self.table} {entity_id}: {e}") from e
        return True
