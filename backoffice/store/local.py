"""
Local key-value persistence - each collection is a JSON array under a namespaced key
"""
import json
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel

from backoffice.store.base import EntityStore, StoreError, T
from backoffice.utils.logger import get_logger

logger = get_logger(__name__)


class KeyValueStorage(ABC):
    @abstractmethod
    def get(self, key: str) -> Any:
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class JsonFileStorage(KeyValueStorage):
    """Key-value storage kept as one JSON object in a file; keys are prefixed."""

    def __init__(self, path: str, prefix: str = "cocoroboard_"):
        self.path = path
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Failed to read {self.path}: {e}") from e

    def _write(self, data: Dict[str, Any]) -> None:
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StoreError(f"Failed to write {self.path}: {e}") from e

    def get(self, key: str) -> Any:
        return self._read().get(self._key(key))

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[self._key(key)] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if data.pop(self._key(key), None) is not None:
            self._write(data)

    def clear(self) -> None:
        data = self._read()
        kept = {k: v for k, v in data.items() if not k.startswith(self.prefix)}
        self._write(kept)


class LocalEntityStore(EntityStore[T]):
    """
    Entity store over a key-value storage. Every write serializes the
    whole collection back under its key.
    """

    def __init__(self, storage: KeyValueStorage, entity_name: str, model: Type[T]):
        super().__init__(model)
        self.storage = storage
        self.key = f"{entity_name}s"

    def _load(self) -> List[T]:
        items = self.storage.get(self.key) or []
        return [self._validate(item) for item in items]

    def _save(self, items: List[T]) -> None:
        self.storage.set(self.key, [item.model_dump(mode="json", by_alias=True) for item in items])

    async def get_all(self) -> List[T]:
        return self._load()

    async def get_by_id(self, entity_id: str) -> Optional[T]:
        return next((item for item in self._load() if item.id == entity_id), None)

    async def create(self, data: BaseModel) -> T:
        items = self._load()
        record = self._new_record(data)
        items.append(record)
        self._save(items)
        logger.debug(f"Created {self.key} record {record.id}")
        return record

    async def update(self, entity_id: str, changes: Dict[str, Any]) -> Optional[T]:
        items = self._load()
        for index, item in enumerate(items):
            if item.id == entity_id:
                updated = self._merge(item, changes)
                items[index] = updated
                self._save(items)
                return updated
        return None

    async def delete(self, entity_id: str) -> bool:
        items = self._load()
        remaining = [item for item in items if item.id != entity_id]
        if len(remaining) == len(items):
            return False
        self._save(remaining)
        return True
