import mongomock
import pytest
from bson import ObjectId

from todo_api.db import SQLiteRepository
from todo_api.errors import MalformedIdentifier, ValidationFailed
from todo_api.mongo import MongoRepository, to_object_id
from todo_api.repositories import InMemoryRepository, pending_changes


@pytest.fixture(params=["memory", "sqlite", "mongo"])
def repo(request, tmp_path):
    if request.param == "mongo":
        collection = mongomock.MongoClient(tz_aware=True).db.todos
        collection.drop()
        return MongoRepository(collection)
    if request.param == "sqlite":
        return SQLiteRepository(str(tmp_path / "todos.db"))
    return InMemoryRepository()


class TestRepositoryContract:
    def test_create_assigns_id_and_timestamps(self, repo):
        todo = repo.create({"title": "Buy milk", "status": "open", "owner": "u1"})
        assert len(todo["id"]) == 24
        assert todo["owner"] == "u1"
        assert todo["status"] == "open"
        assert todo["created_at"] == todo["updated_at"]

    def test_find_all_in_insertion_order(self, repo):
        assert repo.find_all() == []
        for title in ("a", "b", "c"):
            repo.create({"title": title, "owner": "u1"})
        assert [t["title"] for t in repo.find_all()] == ["a", "b", "c"]

    def test_find_by_id(self, repo):
        todo = repo.create({"title": "x", "owner": "u1"})
        assert repo.find_by_id(todo["id"]) == todo
        assert repo.find_by_id("0123456789abcdef01234567") is None

    def test_find_by_malformed_id_raises(self, repo):
        with pytest.raises(MalformedIdentifier):
            repo.find_by_id("42")

    def test_create_rejects_missing_title(self, repo):
        with pytest.raises(ValidationFailed) as excinfo:
            repo.create({"owner": "u1"})
        assert excinfo.value.details[0]["field"] == "title"
        assert repo.find_all() == []

    def test_update_merges_and_bumps_updated_at(self, repo):
        todo = repo.create({"title": "x", "notes": "n", "owner": "u1"})
        updated = repo.update(todo, {"title": "y"})
        assert updated["title"] == "y"
        assert updated["notes"] == "n"
        assert updated["updated_at"] >= todo["updated_at"]
        assert repo.find_by_id(todo["id"]) == updated

    def test_update_without_changes_is_a_no_op(self, repo):
        todo = repo.create({"title": "x", "owner": "u1"})
        assert repo.update(todo, {"title": "x"}) == todo
        assert repo.find_by_id(todo["id"]) == todo

    def test_update_never_touches_server_fields(self, repo):
        todo = repo.create({"title": "x", "owner": "u1"})
        updated = repo.update(todo, {"owner": "u2", "id": "ffffffffffffffffffffffff"})
        assert updated["owner"] == "u1"
        assert updated["id"] == todo["id"]

    def test_update_rejects_invalid_values(self, repo):
        todo = repo.create({"title": "x", "owner": "u1"})
        with pytest.raises(ValidationFailed):
            repo.update(todo, {"count": 1})
        assert repo.find_by_id(todo["id"]) == todo

    def test_delete(self, repo):
        todo = repo.create({"title": "x", "owner": "u1"})
        repo.delete(todo)
        assert repo.find_by_id(todo["id"]) is None


def test_sqlite_persists_across_instances(tmp_path):
    path = str(tmp_path / "nested" / "todos.db")
    todo = SQLiteRepository(path).create({"title": "kept", "owner": "u1"})
    assert SQLiteRepository(path).find_by_id(todo["id"]) == todo


def test_pending_changes_ignores_equal_and_protected_values():
    record = {"id": "a" * 24, "owner": "u1", "title": "x", "status": "open"}
    assert pending_changes(record, {"title": "x", "status": "done", "owner": "u2"}) == {
        "status": "done"
    }


def test_object_id_cast():
    oid = ObjectId()
    assert to_object_id(str(oid)) == oid
    with pytest.raises(MalformedIdentifier):
        to_object_id("not-an-object-id")


def test_mongo_returns_timestamps_as_stored():
    collection = mongomock.MongoClient(tz_aware=True).db.todos_timestamps
    collection.drop()
    repo = MongoRepository(collection)

    created = repo.create({"title": "x", "owner": "u1"})
    assert created["created_at"].microsecond % 1000 == 0
    assert repo.find_by_id(created["id"]) == created

    updated = repo.update(created, {"title": "y"})
    assert updated["updated_at"].microsecond % 1000 == 0
    assert repo.find_by_id(created["id"]) == updated
