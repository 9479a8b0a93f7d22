"""Tests for the remote and fallback stores and the store selector."""

import pytest
from pymongo.errors import AutoReconnect

from database import FallbackStore, Storage, strip_mongo_id


class TestFallbackStore:
    def test_seed_only_when_empty(self):
        store = FallbackStore()
        assert store.seed([{"id": "a"}]) is True
        assert store.seed([{"id": "b"}, {"id": "c"}]) is False
        assert [r["id"] for r in store.find()] == ["a"]

    def test_keeps_insertion_order(self):
        store = FallbackStore()
        for i in ("x", "y", "z"):
            store.insert({"id": i})
        assert [r["id"] for r in store.find()] == ["x", "y", "z"]

    def test_find_filters_by_exact_match(self):
        store = FallbackStore()
        store.insert_many([
            {"id": "1", "customerId": "c1"},
            {"id": "2", "customerId": "c2"},
            {"id": "3", "customerId": "c1"},
        ])
        assert [r["id"] for r in store.find({"customerId": "c1"})] == ["1", "3"]
        assert store.find({"customerId": "nobody"}) == []

    def test_returned_records_are_copies(self):
        store = FallbackStore()
        store.insert({"id": "1", "name": "Laptop"})
        store.find_one("1")["name"] = "changed"
        store.find()[0]["name"] = "changed"
        assert store.find_one("1")["name"] == "Laptop"

    def test_update_merges_fields(self):
        store = FallbackStore()
        store.insert({"id": "1", "name": "Laptop", "stock": 5})
        updated = store.update("1", {"stock": 7})
        assert updated == {"id": "1", "name": "Laptop", "stock": 7}
        assert store.update("missing", {"stock": 1}) is None

    def test_delete(self):
        store = FallbackStore()
        store.insert({"id": "1"})
        assert store.delete("1") is True
        assert store.delete("1") is False
        assert len(store) == 0


class TestRemoteStore:
    def test_hides_mongo_id(self, remote, collection):
        record = {"id": "p1", "name": "Laptop"}
        returned = remote.insert(record)
        assert "_id" not in returned
        assert "_id" in collection.docs[0]
        assert remote.find() == [{"id": "p1", "name": "Laptop"}]
        assert remote.find_one("p1") == {"id": "p1", "name": "Laptop"}

    def test_update_returns_new_document(self, remote):
        remote.insert({"id": "p1", "stock": 1})
        assert remote.update("p1", {"stock": 3}) == {"id": "p1", "stock": 3}
        assert remote.update("nope", {"stock": 3}) is None

    def test_delete_and_count(self, remote):
        remote.insert_many([{"id": "a"}, {"id": "b"}])
        assert remote.count() == 2
        assert remote.delete("a") is True
        assert remote.delete("a") is False
        assert remote.count() == 1

    def test_ensure_indexes_makes_id_unique(self, remote, collection):
        remote.ensure_indexes()
        assert collection.indexes == [("id", True)]

    def test_errors_propagate(self, remote, collection):
        collection.broken = True
        with pytest.raises(AutoReconnect):
            remote.find()
        with pytest.raises(AutoReconnect):
            remote.ping()


class TestStorage:
    def test_starts_on_fallback(self):
        storage = Storage()
        assert storage.connected is False
        assert storage.active() is storage.fallback

    def test_attach_and_detach(self, remote):
        storage = Storage()
        storage.attach(remote)
        assert storage.connected is True
        assert storage.active() is remote
        assert storage.detach() is remote
        assert storage.active() is storage.fallback
        assert storage.detach() is None


def test_strip_mongo_id_handles_lists_and_none():
    assert strip_mongo_id(None) is None
    assert strip_mongo_id([{"_id": 1, "id": "a"}]) == [{"id": "a"}]

