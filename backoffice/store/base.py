"""
Entity store contract - one collection, get/create/update/delete by id
"""
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from backoffice.utils.helpers import utc_now

T = TypeVar("T", bound=BaseModel)

# Fields owned by the store; callers cannot overwrite them through update()
PROTECTED_FIELDS = {"id", "created_at", "updated_at"}


class StoreError(Exception):
    """Persistence backend failure (I/O, driver or decode error)."""


class InvalidRecordError(ValueError):
    """Changes that would leave a stored record invalid (caller input, not a backend failure)."""


class EntityStore(ABC, Generic[T]):
    """Persistence adapter over one collection of records."""

    def __init__(self, model: Type[T]):
        self.model = model

    @abstractmethod
    async def get_all(self) -> List[T]:
        ...

    @abstractmethod
    async def get_by_id(self, entity_id: str) -> Optional[T]:
        ...

    @abstractmethod
    async def create(self, data: BaseModel) -> T:
        """Persist a new record, assigning its id and timestamps."""

    @abstractmethod
    async def update(self, entity_id: str, changes: Dict[str, Any]) -> Optional[T]:
        """Merge changes over the stored record; None when the id is unknown."""

    @abstractmethod
    async def delete(self, entity_id: str) -> bool:
        """Hard delete; False when the id is unknown."""

    # --- Helpers shared by backends ---

    def _new_record(self, data: BaseModel) -> T:
        now = utc_now()
        values = data.model_dump()
        values.update(id=str(uuid.uuid4()), created_at=now, updated_at=now)
        return self._validate(values)

    def _merge(self, existing: T, changes: Dict[str, Any]) -> T:
        values = existing.model_dump()
        values.update({k: v for k, v in changes.items() if k not in PROTECTED_FIELDS})
        values["updated_at"] = utc_now()
        try:
            return self.model.model_validate(values)
        except ValidationError as e:
            raise InvalidRecordError(f"Invalid {self.model.__name__} changes: {e}") from e

    def _validate(self, values: Any) -> T:
        try:
            return self.model.model_validate(values)
        except ValidationError as e:
            raise StoreError(f"Invalid {self.model.__name__} record: {e}") from e
