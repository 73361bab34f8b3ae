"""
Key-value stores holding whole JSON documents under string keys.
"""
import copy
from typing import Any, Protocol

from sqlalchemy.orm import Session

from posterboy.models.store import StoreEntry


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...


class MemoryStore:
    """Process-local store; values are deep-copied in and out."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = copy.deepcopy(initial or {})

    def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)


class SqlStore:
    """Store backed by the ``store_entries`` table; every ``set`` commits."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Any | None:
        entry = self.db.query(StoreEntry).filter(StoreEntry.key == key).first()
        return copy.deepcopy(entry.value) if entry else None

    def set(self, key: str, value: Any) -> None:
        entry = self.db.query(StoreEntry).filter(StoreEntry.key == key).first()
        if entry is None:
            self.db.add(StoreEntry(key=key, value=value))
        else:
            # Assign a new object so the JSON column is flagged dirty
            entry.value = copy.deepcopy(value)
        self.db.commit()
