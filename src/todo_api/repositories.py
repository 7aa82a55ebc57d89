from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from functools import lru_cache
from threading import RLock
from typing import Any, Dict, List, Optional

from .models import (
    CREATED_AT_FIELD,
    ID_FIELD,
    OWNER_FIELD,
    PROTECTED_FIELDS,
    UPDATED_AT_FIELD,
    TodoEntity,
    new_identifier,
    parse_identifier,
    validate_document,
)
from .settings import get_settings

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
def pending_changes(record: TodoEntity, changes: Dict[str, Any]) -> Dict[str, Any]:
    """Return the subset of changes that would actually alter the record."""
    return {
        k: v
        for k, v in changes.items()
        if k not in PROTECTED_FIELDS and (k not in record or record[k] != v)
    }


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract document-store contract for todos.

    Every method either returns data or raises a typed failure from
    ``errors`` (MalformedIdentifier, ValidationFailed); anything else raised
    is a store fault and surfaces as a 500.
    """

    @abstractmethod
    def find_all(self) -> List[TodoEntity]:
        """Return every todo in store default order."""

    @abstractmethod
    def find_by_id(self, todo_id: str) -> Optional[TodoEntity]:
        """Return a todo by id, or None if absent. Raises MalformedIdentifier for bad ids."""

    @abstractmethod
    def create(self, fields: Dict[str, Any]) -> TodoEntity:
        """Validate, assign id and timestamps, insert and return the new todo."""

    @abstractmethod
    def update(self, record: TodoEntity, changes: Dict[str, Any]) -> TodoEntity:
        """Merge changes onto a previously fetched record, persist and return the result."""

    @abstractmethod
    def delete(self, record: TodoEntity) -> None:
        """Remove a previously fetched record."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory document store suitable for testing and default runtime.
    Documents are kept in insertion order.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, TodoEntity] = {}

    def find_all(self) -> List[TodoEntity]:
        with self._lock:
            # Return copies to avoid external mutation
            return [t.copy() for t in self._items.values()]

    def find_by_id(self, todo_id: str) -> Optional[TodoEntity]:
        key = parse_identifier(todo_id)
        with self._lock:
            item = self._items.get(key)
            return None if item is None else item.copy()

    def create(self, fields: Dict[str, Any]) -> TodoEntity:
        validate_document(fields)
        now = utcnow()
        entity: TodoEntity = {k: v for k, v in fields.items() if k not in PROTECTED_FIELDS}
        entity.update(
            {
                ID_FIELD: new_identifier(),
                OWNER_FIELD: fields[OWNER_FIELD],
                CREATED_AT_FIELD: now,
                UPDATED_AT_FIELD: now,
            }
        )
        with self._lock:
            self._items[entity[ID_FIELD]] = entity
        logger.debug("Inserted todo %s", entity[ID_FIELD])
        return entity.copy()

    def update(self, record: TodoEntity, changes: Dict[str, Any]) -> TodoEntity:
        with self._lock:
            existing = self._items.get(record[ID_FIELD])
            if existing is None:
                # Removed between lookup and write; the write is a no-op
                return record.copy()

            diff = pending_changes(existing, changes)
            if not diff:
                return existing.copy()

            updated = {**existing, **diff}
            validate_document(updated)
            updated[UPDATED_AT_FIELD] = utcnow()
            self._items[record[ID_FIELD]] = updated
            return updated.copy()

    def delete(self, record: TodoEntity) -> None:
        with self._lock:
            self._items.pop(record[ID_FIELD], None)


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_repository() -> Repository:
    """
    Return the process-wide repository selected by settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository (one JSON document per row)
    - mongo: MongoRepository (requires a reachable MongoDB)
    """
    settings = get_settings()
    logger.info("Using %s persistence backend", settings.persistence_backend)
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path)
    if settings.persistence_backend == "mongo":
        from .mongo import MongoRepository

        return MongoRepository.from_settings(settings)
    return InMemoryRepository()
