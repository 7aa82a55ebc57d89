from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient
from pymongo.collection import Collection

from .errors import MalformedIdentifier
from .models import (
    CREATED_AT_FIELD,
    ID_FIELD,
    OWNER_FIELD,
    PROTECTED_FIELDS,
    UPDATED_AT_FIELD,
    TodoEntity,
    validate_document,
)
from .repositories import Repository, pending_changes, utcnow
from .settings import Settings

logger = logging.getLogger(__name__)


def to_object_id(todo_id: str) -> ObjectId:
    """Cast a path identifier to an ObjectId, raising MalformedIdentifier on failure."""
    try:
        return ObjectId(todo_id)
    except (InvalidId, TypeError) as exc:
        raise MalformedIdentifier(todo_id) from exc


def bson_now() -> datetime:
    """Current UTC time truncated to the millisecond precision BSON stores."""
    now = utcnow()
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _to_entity(doc: Dict[str, Any]) -> TodoEntity:
    entity: TodoEntity = {k: v for k, v in doc.items() if k != "_id"}
    entity[ID_FIELD] = str(doc["_id"])
    return entity


class MongoRepository(Repository):
    """
    Document store backed by a MongoDB collection. Todo ids are the string
    form of the collection's ObjectId ``_id``.
    """

    def __init__(self, collection: Collection) -> None:
        self._collection = collection

    @classmethod
    def from_settings(cls, settings: Settings) -> "MongoRepository":
        client: MongoClient = MongoClient(settings.mongo_uri, tz_aware=True)
        logger.info(
            "Connected to MongoDB database=%s collection=%s",
            settings.mongo_db_name,
            settings.mongo_collection,
        )
        return cls(client[settings.mongo_db_name][settings.mongo_collection])

    def find_all(self) -> List[TodoEntity]:
        return [_to_entity(doc) for doc in self._collection.find({})]

    def find_by_id(self, todo_id: str) -> Optional[TodoEntity]:
        doc = self._collection.find_one({"_id": to_object_id(todo_id)})
        return _to_entity(doc) if doc else None

    def create(self, fields: Dict[str, Any]) -> TodoEntity:
        validate_document(fields)
        now = bson_now()
        doc: Dict[str, Any] = {k: v for k, v in fields.items() if k not in PROTECTED_FIELDS}
        doc.update({OWNER_FIELD: fields[OWNER_FIELD], CREATED_AT_FIELD: now, UPDATED_AT_FIELD: now})
        result = self._collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return _to_entity(doc)

    def update(self, record: TodoEntity, changes: Dict[str, Any]) -> TodoEntity:
        diff = pending_changes(record, changes)
        if not diff:
            return dict(record)

        merged = {**record, **diff}
        validate_document(merged)
        merged[UPDATED_AT_FIELD] = bson_now()
        self._collection.update_one(
            {"_id": to_object_id(record[ID_FIELD])},
            {"$set": {**diff, UPDATED_AT_FIELD: merged[UPDATED_AT_FIELD]}},
        )
        return merged

    def delete(self, record: TodoEntity) -> None:
        self._collection.delete_one({"_id": to_object_id(record[ID_FIELD])})
